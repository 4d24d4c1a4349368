"""Harvests framework documentation into the document store.

A fetch pulls the framework's rustdoc page, the community list and issue
tracker named in its source configuration, and integration examples found
through GitHub search. Only the rustdoc page is mandatory: failures in the
GitHub-backed steps are logged and counted, and the fetch carries on.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Set

from indexer.models import ErrorSolution, Pattern
from indexer.sqlite_store import DocumentStore
from sources.loader import SourceConfig

from .awesome_parser import AwesomeLeptosParser
from .docsrs_parser import DocsRsParser
from .errors import FetchError, ToolError
from .github import GitHubClient, extract_error_from_issue, extract_integration_patterns
from .http import HttpFetcher

logger = logging.getLogger(__name__)


@dataclass
class FetchSummary:
    """Counts of what one fetch stored."""
    source: str
    documents: int = 0
    patterns: int = 0
    error_solutions: int = 0
    failed_steps: int = 0

    def format(self, title: str) -> str:
        text = (f"{title} documentation fetched and stored successfully "
                f"({self.documents} documents, {self.patterns} patterns, "
                f"{self.error_solutions} error solutions)")
        if self.failed_steps:
            text += f"; {self.failed_steps} optional step(s) failed, see server log"
        return text


class DocFetcher:
    """Fetches documentation for configured frameworks and stores it."""

    def __init__(self, store: DocumentStore, fetcher: HttpFetcher,
                 github: GitHubClient, sources: Dict[str, SourceConfig]):
        self.store = store
        self.fetcher = fetcher
        self.github = github
        self.sources = sources
        self._seeded: Set[str] = set()

    def get_source(self, name: str) -> SourceConfig:
        source = self.sources.get(name)
        if source is None:
            raise ToolError(f"No documentation source configured for '{name}'")
        return source

    async def seed(self, source: SourceConfig, summary: Optional[FetchSummary] = None) -> FetchSummary:
        """Store the source's built-in patterns and error solutions, once per process."""
        summary = summary or FetchSummary(source=source.name)
        if source.name in self._seeded:
            return summary
        for pattern in source.patterns:
            await self.store.insert_pattern(pattern)
            summary.patterns += 1
        for solution in source.error_solutions:
            await self.store.insert_error_solution(solution)
            summary.error_solutions += 1
        self._seeded.add(source.name)
        logger.info(f"Seeded {source.name}: {summary.patterns} patterns, {summary.error_solutions} error solutions")
        return summary

    async def seed_all(self) -> int:
        """Seed every configured source; returns the number of records stored."""
        total = 0
        for source in self.sources.values():
            summary = await self.seed(source)
            total += summary.patterns + summary.error_solutions
        return total

    async def fetch(self, name: str) -> FetchSummary:
        """Fetch and store everything configured for source ``name``."""
        source = self.get_source(name)
        summary = FetchSummary(source=source.name)

        html = await self.fetcher.get_text(source.docs_url)
        for doc in DocsRsParser.parse(html, source.crate, source.version, source.framework):
            await self.store.insert_document(doc)
            summary.documents += 1

        if source.awesome_list:
            await self._fetch_awesome_list(source, summary)
        if source.issue_repo:
            await self._fetch_error_patterns(source, summary)
        if source.integration_query:
            await self._fetch_integration_patterns(source, summary)

        await self.seed(source, summary)
        logger.info(f"Fetched {source.name}: {summary}")
        return summary

    async def _fetch_awesome_list(self, source: SourceConfig, summary: FetchSummary):
        ref = source.awesome_list
        try:
            content = await self.github.get_file(ref.owner, ref.repo, ref.path or 'README.md')
        except FetchError as e:
            logger.warning(f"Skipping {ref.owner}/{ref.repo} list: {e}")
            summary.failed_steps += 1
            return

        community = AwesomeLeptosParser.parse(content)
        for doc in community + AwesomeLeptosParser.extract_patterns(community):
            await self.store.insert_document(doc)
            summary.documents += 1

    async def _fetch_error_patterns(self, source: SourceConfig, summary: FetchSummary):
        ref = source.issue_repo
        try:
            issues = await self.github.list_issues(ref.owner, ref.repo, state='closed', labels=ref.labels)
        except FetchError as e:
            logger.warning(f"Skipping error patterns from {ref.owner}/{ref.repo}: {e}")
            summary.failed_steps += 1
            return

        for issue in issues:
            extracted = extract_error_from_issue(issue.get('body') or '')
            if extracted is None:
                continue
            await self.store.insert_error_solution(ErrorSolution(framework=source.framework, **extracted))
            summary.error_solutions += 1

    async def _fetch_integration_patterns(self, source: SourceConfig, summary: FetchSummary):
        try:
            repos = await self.github.search_repositories(source.integration_query)
        except FetchError as e:
            logger.warning(f"Skipping integration search for {source.name}: {e}")
            summary.failed_steps += 1
            return

        for repo in repos:
            owner = (repo.get('owner') or {}).get('login')
            name = repo.get('name')
            if not owner or not name:
                continue
            try:
                readme = await self.github.get_readme(owner, name)
            except FetchError as e:
                logger.warning(f"Error processing repo {owner}/{name}: {e}")
                continue

            for found in extract_integration_patterns(readme):
                await self.store.insert_pattern(Pattern(
                    name=found['name'],
                    description=found['description'],
                    code_template=found['code'],
                    framework='integration',
                    category='tauri-leptos'
                ))
                summary.patterns += 1
