"""Parser for rustdoc-generated HTML pages (docs.rs and framework API sites)."""

import re
import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from indexer.models import Document

logger = logging.getLogger(__name__)

# rustdoc marks item links with the kind of item as a CSS class
KIND_CATEGORIES = {
    'mod': 'module',
    'struct': 'struct',
    'enum': 'enum',
    'trait': 'trait',
    'fn': 'function',
    'macro': 'macro',
    'attr': 'macro',
    'derive': 'macro',
    'type': 'type',
    'constant': 'constant',
    'static': 'constant',
    'union': 'struct',
}

_DERIVE_RE = re.compile(r"derive\((.*?)\)")
_DOC_ATTR_RE = re.compile(r"#\s*\[(.*?)\]")


def clean_content(content: str) -> str:
    return re.sub(r"\s+", " ", content).strip()


def determine_category(text: str) -> str:
    if 'struct ' in text:
        return 'struct'
    if 'enum ' in text:
        return 'enum'
    if 'trait ' in text:
        return 'trait'
    if 'fn ' in text:
        return 'function'
    if 'type ' in text:
        return 'type'
    if 'const ' in text:
        return 'constant'
    return 'other'


def extract_examples(element: Tag) -> List[str]:
    """Code blocks under ``element``, trimmed, blanks skipped."""
    examples = []
    for block in element.find_all('pre'):
        code = block.get_text().strip()
        if code:
            examples.append(code)
    return examples


def extract_tags(category: str, block: Tag, doc_block: Optional[Tag]) -> List[str]:
    tags = [category]

    for attr in block.select('.attribute, .code-attribute'):
        text = attr.get_text().strip()
        derive = _DERIVE_RE.search(text)
        if derive:
            tags.extend(d.strip() for d in derive.group(1).split(',') if d.strip())
        elif text.startswith('#[') and text.endswith(']'):
            tags.append(text[2:-1].strip())

    if doc_block is not None:
        for match in _DOC_ATTR_RE.finditer(doc_block.get_text()):
            if match.group(1).strip():
                tags.append(match.group(1).strip())

    return list(dict.fromkeys(tags))


def _next_element(tag: Tag) -> Optional[Tag]:
    sibling = tag.find_next_sibling()
    return sibling if isinstance(sibling, Tag) else None


class DocsRsParser:
    """Turns a rustdoc page into Documents."""

    @classmethod
    def parse(cls, html: str, crate: str, version: str, framework: Optional[str] = None) -> List[Document]:
        """Parse module overview, items and impl blocks from ``html``.

        Entries without a title or without any text are skipped.
        """
        framework = framework or crate
        soup = BeautifulSoup(html, 'html.parser')
        items: List[Document] = []
        seen_titles = set()

        def add(title: str, content: str, category: str, tags: List[str], examples: List[str]):
            title = clean_content(title)
            content = clean_content(content)
            if not title or not content or (title, category) in seen_titles:
                return
            seen_titles.add((title, category))
            items.append(Document(
                crate=crate,
                version=version,
                title=title,
                content=content,
                category=category,
                framework=framework,
                tags=tags,
                examples=examples
            ))

        main = soup.select_one('#main-content') or soup.select_one('.main-content')
        if main is not None:
            docblock = main.select_one('.docblock')
            overview = docblock if docblock is not None else main
            add(f"{crate} - Module Documentation", overview.get_text(' '), 'module',
                ['module', 'overview'], extract_examples(overview))

        # Current rustdoc: <dl class="item-table"><dt><a class="struct">..</a></dt><dd>..</dd>
        for dt in soup.select('dl.item-table > dt'):
            link = dt.find('a')
            dd = _next_element(dt)
            if link is None or dd is None or dd.name != 'dd':
                continue
            kind = next((c for c in link.get('class', []) if c in KIND_CATEGORIES), None)
            category = KIND_CATEGORIES.get(kind, 'other')
            add(link.get_text(), dd.get_text(' '), category, extract_tags(category, dt, dd), extract_examples(dd))

        # Older rustdoc: .item-name followed by a .desc / .docblock-short sibling
        for name in soup.select('.item-row .item-name, .item-table .item-name'):
            desc = _next_element(name)
            if desc is None:
                continue
            link = name.find('a')
            kind = next((c for c in (link.get('class', []) if link else []) if c in KIND_CATEGORIES), None)
            category = KIND_CATEGORIES.get(kind) or determine_category(name.get_text(' '))
            add(name.get_text(), desc.get_text(' '), category, extract_tags(category, name, desc), [])

        # Item declarations documented by a following .docblock
        for block in soup.select('.item-decl, .module-item'):
            title_el = block.select_one('.item-name, .module-item-title')
            doc_block = _next_element(block)
            if title_el is None or doc_block is None or 'docblock' not in doc_block.get('class', []):
                continue
            category = determine_category(block.get_text(' '))
            add(title_el.get_text(), doc_block.get_text(' '), category,
                extract_tags(category, block, doc_block), extract_examples(doc_block))

        for block in soup.select('.impl-items'):
            header = block.find_previous_sibling()
            impl = header.select_one('.impl') if isinstance(header, Tag) else None
            if impl is None and isinstance(header, Tag) and 'impl' in header.get('class', []):
                impl = header
            if impl is None:
                continue
            add(f"Implementation {impl.get_text(' ')}", block.get_text(' '), 'implementation',
                ['impl'] + extract_tags('implementation', block, block), extract_examples(block))

        logger.info(f"Parsed {len(items)} documentation items for {crate} {version}")
        return items
