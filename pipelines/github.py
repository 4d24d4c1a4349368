"""GitHub REST API access and the extractors applied to what it returns."""

import re
import base64
import logging
from typing import Any, Dict, List, Optional

from .http import HttpFetcher

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

_ERROR_CODE_RE = re.compile(r"error\[(E\d+)\]:(.*?)(?=\n|$)")
_SOLUTION_RE = re.compile(r"(?:Solution|Fix):\s*((?:(?!\n\n).)*(?:\n(?!\n).*)*)", re.DOTALL)
_RUST_BLOCK_RE = re.compile(r"```(?:rust)?\n([\s\S]*?)\n```")
_HEADING_RE = re.compile(r"#+\s*(.*?)(?:\n|$)")
_PATTERN_DESC_RE = re.compile(r"(?:Pattern|Example):\s*(.*?)(?:\n|$)", re.IGNORECASE)


def extract_error_from_issue(body: str) -> Optional[Dict[str, Optional[str]]]:
    """Pull ``error[Exxxx]: message`` plus a ``Solution:``/``Fix:`` section from an issue body."""
    if not body or 'error[' not in body:
        return None
    error_match = _ERROR_CODE_RE.search(body)
    solution_match = _SOLUTION_RE.search(body)
    if not error_match or not solution_match:
        return None

    solution = solution_match.group(1)
    code_match = _RUST_BLOCK_RE.search(solution)
    description = _RUST_BLOCK_RE.sub('', solution).strip()
    if not description:
        return None
    return {
        'error_pattern': f"{error_match.group(1)}: {error_match.group(2).strip()}",
        'solution': description,
        'example_fix': code_match.group(1).strip() if code_match else None,
    }


def extract_integration_patterns(content: str) -> List[Dict[str, str]]:
    """Code blocks in a README introduced by a heading or a ``Pattern:``/``Example:`` line."""
    patterns = []
    for match in _RUST_BLOCK_RE.finditer(content):
        code = match.group(1).strip()
        if not code:
            continue
        preceding = '\n'.join(content[:match.start()].split('\n')[-3:])
        title_match = _HEADING_RE.search(preceding)
        desc_match = _PATTERN_DESC_RE.search(preceding)
        if title_match or desc_match:
            patterns.append({
                'name': title_match.group(1).strip() if title_match and title_match.group(1).strip() else 'Integration Pattern',
                'description': desc_match.group(1).strip() if desc_match else 'Integration example between Tauri and Leptos',
                'code': code,
            })
    return patterns


class GitHubClient:
    """Thin client for the few GitHub endpoints the fetchers need."""

    def __init__(self, fetcher: HttpFetcher, token: Optional[str] = None,
                 api_url: str = GITHUB_API_URL):
        self.fetcher = fetcher
        self.token = token
        self.api_url = api_url.rstrip('/')

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/vnd.github+json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.fetcher.get_json(f"{self.api_url}{path}", headers=self._headers(), params=params)

    @staticmethod
    def _decode_content(payload: Dict[str, Any]) -> str:
        if payload.get('encoding') == 'base64':
            return base64.b64decode(payload.get('content', '')).decode('utf-8', errors='replace')
        return payload.get('content', '')

    async def get_file(self, owner: str, repo: str, path: str) -> str:
        """Text of ``path`` in the default branch."""
        payload = await self._get(f"/repos/{owner}/{repo}/contents/{path}")
        return self._decode_content(payload)

    async def get_readme(self, owner: str, repo: str) -> str:
        payload = await self._get(f"/repos/{owner}/{repo}/readme")
        return self._decode_content(payload)

    async def list_issues(self, owner: str, repo: str, state: str = 'closed',
                          labels: Optional[str] = None, per_page: int = 100) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {'state': state, 'per_page': per_page}
        if labels:
            params['labels'] = labels
        return await self._get(f"/repos/{owner}/{repo}/issues", params=params)

    async def search_repositories(self, query: str, sort: str = 'stars',
                                  order: str = 'desc', per_page: int = 10) -> List[Dict[str, Any]]:
        payload = await self._get('/search/repositories', params={
            'q': query, 'sort': sort, 'order': order, 'per_page': per_page
        })
        return payload.get('items', [])
