"""Parser for the awesome-leptos README.

Each ``## Section`` becomes an overview Document and every ``- [name](url) -
description`` entry becomes a Document of its own. ``extract_patterns``
groups related entries into derived pattern Documents.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Dict, Optional

from indexer.models import Document

logger = logging.getLogger(__name__)

_REPO_LINE_RE = re.compile(r"^-\s*\[(.*?)\]\((.*?)\)(?:\s*-\s*(.*))?$")

# Checked in order; the first keyword hit wins.
REPO_CATEGORIES = [
    (('example', 'demo'), 'example'),
    (('tutorial', 'guide'), 'tutorial'),
    (('component', 'library'), 'library'),
    (('template', 'starter'), 'template'),
    (('tool', 'utility'), 'tool'),
    (('app', 'application'), 'application'),
]

PATTERN_KEYWORDS = [
    (('routing', 'router'), 'Routing'),
    (('form', 'input'), 'Form Handling'),
    (('state', 'signal'), 'State Management'),
    (('api', 'fetch'), 'API Integration'),
    (('auth', 'login'), 'Authentication'),
    (('style', 'css'), 'Styling'),
    (('test', 'spec'), 'Testing'),
    (('ssr', 'server'), 'Server-Side Rendering'),
]


@dataclass
class RepoEntry:
    title: str
    url: str
    description: str
    category: str


@dataclass
class Section:
    title: str
    description: str
    content: str


def categorize_repo(title: str, description: str) -> str:
    text = f"{title} {description}".lower()
    for keywords, category in REPO_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return category
    return 'other'


def identify_pattern(doc: Document) -> Optional[str]:
    text = f"{doc.title} {doc.content}".lower()
    for keywords, pattern in PATTERN_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return pattern
    return None


def parse_sections(content: str) -> List[Section]:
    """Split the README on level-2 headings; the preamble is skipped."""
    sections = []
    for chunk in content.split('\n## ')[1:]:
        title, _, body = chunk.partition('\n')
        description_lines = []
        for line in body.splitlines():
            if line.lstrip().startswith(('-', '*', '#')):
                break
            description_lines.append(line.strip())
        sections.append(Section(
            title=title.strip(),
            description=' '.join(l for l in description_lines if l),
            content=body
        ))
    return sections


def parse_repos(content: str) -> List[RepoEntry]:
    repos = []
    for line in content.splitlines():
        match = _REPO_LINE_RE.match(line.strip())
        if match:
            title, url, description = match.group(1), match.group(2), match.group(3) or ''
            repos.append(RepoEntry(
                title=title.strip(),
                url=url.strip(),
                description=description.strip(),
                category=categorize_repo(title, description)
            ))
    return repos


class AwesomeLeptosParser:
    """Builds Documents from the awesome-leptos community list."""

    crate = 'leptos'
    version = 'latest'
    framework = 'leptos'

    @classmethod
    def parse(cls, content: str) -> List[Document]:
        items: List[Document] = []
        for section in parse_sections(content):
            if not section.title:
                continue
            repos = parse_repos(section.content)

            items.append(Document(
                crate=cls.crate,
                version=cls.version,
                title=section.title,
                content=section.description or f"{section.title} from awesome-leptos ({len(repos)} entries)",
                category='awesome-leptos',
                framework=cls.framework,
                tags=['community', section.title.lower()],
                examples=[]
            ))

            for repo in repos:
                if not repo.title:
                    continue
                items.append(Document(
                    crate=cls.crate,
                    version=cls.version,
                    title=repo.title,
                    content=repo.description or repo.title,
                    category=repo.category,
                    framework=cls.framework,
                    tags=['community', 'example', repo.category],
                    examples=[repo.url]
                ))

        logger.info(f"Parsed {len(items)} awesome-leptos entries")
        return items

    @classmethod
    def extract_patterns(cls, items: List[Document]) -> List[Document]:
        """Derive a pattern Document for every theme shared by two or more examples."""
        examples = [
            item for item in items
            if item.category in ('example', 'tutorial') or 'example' in item.tags
        ]

        groups: Dict[str, List[Document]] = {}
        for example in examples:
            pattern = identify_pattern(example)
            if pattern:
                groups.setdefault(pattern, []).append(example)

        patterns = []
        for pattern, members in groups.items():
            if len(members) < 2:
                continue
            listing = '\n'.join(f"- {m.title}: {m.content}" for m in members)
            patterns.append(Document(
                crate=cls.crate,
                version=cls.version,
                title=f"Common Pattern: {pattern}",
                content=f"Common implementation pattern found in multiple examples:\n\n{listing}",
                category='pattern',
                framework=cls.framework,
                tags=list(dict.fromkeys(['pattern'] + members[0].tags)),
                examples=[url for m in members for url in m.examples]
            ))
        return patterns
