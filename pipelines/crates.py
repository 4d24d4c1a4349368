"""crates.io lookups: dependency freshness for Cargo manifests and crate
documentation hints for code snippets."""

import re
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import FetchError, NotFoundError, ToolError
from .http import HttpFetcher

logger = logging.getLogger(__name__)

CRATES_IO_URL = "https://crates.io/api/v1/crates"

DEPENDENCY_SECTIONS = ('dependencies', 'dev-dependencies', 'build-dependencies')

# ``use foo::bar`` / ``use foo::{a, b}`` or a qualified path ``foo::bar``
_CRATE_USE_RE = re.compile(r"(?:use\s+([\w:]+)(?:\s*::\s*\{[^}]*\})?)|(?:(\w+)::([\w:]+))")

# Path roots that never name an external crate
_NON_CRATE_ROOTS = {'crate', 'self', 'super', 'Self', 'std', 'core', 'alloc'}


class ManifestError(ToolError):
    """The project directory or its Cargo.toml is missing or unreadable."""


@dataclass
class DependencyReport:
    section: str
    crate: str
    current_version: str
    latest_version: str
    description: str
    outdated: bool

    def format(self) -> str:
        return (f"[{self.section}] {self.crate}:\n"
                f"  Current: {self.current_version}\n"
                f"  Latest: {self.latest_version}\n"
                f"  Outdated: {str(self.outdated).lower()}\n"
                f"  Description: {self.description}")


@dataclass
class CrateSuggestion:
    name: str
    documentation: Optional[str]
    description: Optional[str]
    item: str = ''

    def format(self) -> str:
        item = f"::{self.item}" if self.item else ''
        return (f"- {self.name}{item}: {self.documentation or 'No documentation URL found.'} "
                f"({self.description or 'No description'})")


def dependency_version(spec: Any) -> Optional[str]:
    """Version requirement from a dependency entry, which may be a table."""
    if isinstance(spec, str):
        return spec
    if isinstance(spec, dict):
        return spec.get('version')
    return None


def clean_version(version: str) -> str:
    return re.sub(r"[\^~=\s]", '', version)


def load_manifest(project_path: str) -> Dict[str, Any]:
    """Read and parse ``Cargo.toml`` from a project directory."""
    project_dir = Path(project_path).expanduser().resolve()
    if not project_dir.exists():
        raise ManifestError(f"Project directory not found: {project_path}")
    if not project_dir.is_dir():
        raise ManifestError(f"Provided path is not a directory: {project_path}")

    cargo_path = project_dir / 'Cargo.toml'
    if not cargo_path.is_file():
        raise ManifestError(f"'Cargo.toml' not found in project directory: {project_path}")

    with open(cargo_path, 'rb') as f:
        return tomllib.load(f)


def find_used_crates(code: str) -> Dict[str, str]:
    """Map each crate referenced in ``code`` to the last item used from it."""
    crates: Dict[str, str] = {}
    for match in _CRATE_USE_RE.finditer(code):
        if match.group(1):
            parts = [p for p in match.group(1).split('::') if p]
            if not parts:
                continue
            crate, item = parts[0], parts[-1] if len(parts) > 1 else ''
        else:
            crate, item = match.group(2), match.group(3)
        if crate in _NON_CRATE_ROOTS:
            continue
        if item or crate not in crates:
            crates[crate] = item
    return crates


class CratesClient:
    """crates.io API client."""

    def __init__(self, fetcher: HttpFetcher, api_url: str = CRATES_IO_URL):
        self.fetcher = fetcher
        self.api_url = api_url.rstrip('/')

    async def get_crate(self, name: str) -> Dict[str, Any]:
        payload = await self.fetcher.get_json(f"{self.api_url}/{name}")
        return payload.get('crate', {})

    async def dependency_report(self, section: str, crate: str, spec: Any) -> DependencyReport:
        version = dependency_version(spec) or '*'
        try:
            info = await self.get_crate(crate)
        except NotFoundError:
            return DependencyReport(section, crate, version, 'Not Found', 'Crate not found on crates.io', False)
        except FetchError as e:
            logger.warning(f"Error fetching crate info for {crate}: {e}")
            return DependencyReport(section, crate, version, 'Error', 'Error fetching crate information', False)

        latest = info.get('max_stable_version') or info.get('max_version') or 'unknown'
        return DependencyReport(
            section=section,
            crate=crate,
            current_version=version,
            latest_version=latest,
            description=(info.get('description') or 'No description').strip(),
            outdated=clean_version(version) != latest
        )

    async def analyze_manifest(self, project_path: str) -> str:
        """Report every dependency's pinned and latest version."""
        manifest = load_manifest(project_path)

        reports: List[DependencyReport] = []
        for section in DEPENDENCY_SECTIONS:
            for crate, spec in (manifest.get(section) or {}).items():
                reports.append(await self.dependency_report(section, crate, spec))

        output = '\n\n'.join(report.format() for report in reports) or 'No dependencies declared.'
        if not (Path(project_path).expanduser().resolve() / 'Cargo.lock').exists():
            output += ("\n\nNote: 'Cargo.lock' file not found. Consider running `cargo build` "
                       "to generate it for better dependency analysis and linting.")
        return output

    async def suggest_documentation(self, code: str) -> str:
        """Documentation links for the crates a code snippet uses."""
        suggestions: List[CrateSuggestion] = []
        for crate, item in find_used_crates(code).items():
            try:
                info = await self.get_crate(crate)
            except NotFoundError:
                continue
            except FetchError as e:
                logger.warning(f"Error fetching crate info for {crate}: {e}")
                continue
            suggestions.append(CrateSuggestion(
                name=info.get('name', crate),
                documentation=info.get('documentation'),
                description=info.get('description'),
                item=item
            ))

        if not suggestions:
            return 'No documentation found for the crates used in the code snippet.'
        return 'Documentation suggestions:\n' + '\n'.join(s.format() for s in suggestions)
