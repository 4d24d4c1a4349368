"""Documentation source loader for rustdoc-mcp.

Each ``<framework>.yaml`` file in this directory describes where a framework's
documentation lives (docs.rs page, GitHub lists and issue trackers) and the
built-in patterns and error solutions seeded into the store for it.
"""

import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
import logging

from indexer.models import Pattern, ErrorSolution

logger = logging.getLogger(__name__)

SOURCES_DIR = Path(__file__).parent


@dataclass
class RepoRef:
    """A GitHub repository, optionally narrowed to a file or issue labels."""
    owner: str
    repo: str
    path: Optional[str] = None
    labels: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['RepoRef']:
        if not data:
            return None
        return cls(
            owner=data['owner'],
            repo=data['repo'],
            path=data.get('path'),
            labels=data.get('labels')
        )


@dataclass
class SourceConfig:
    """Configuration for one framework's documentation."""
    name: str
    crate: str
    version: str
    docs_url: str
    framework: str = ""
    title: str = ""
    awesome_list: Optional[RepoRef] = None
    issue_repo: Optional[RepoRef] = None
    integration_query: Optional[str] = None
    patterns: List[Pattern] = field(default_factory=list)
    error_solutions: List[ErrorSolution] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.name:
            raise ValueError("Source name cannot be empty")
        if not self.docs_url:
            raise ValueError(f"Source {self.name} must have a docs_url")
        if not self.framework:
            self.framework = self.name
        if not self.title:
            self.title = self.name.capitalize()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SourceConfig':
        """Create SourceConfig from dictionary."""
        framework = data.get('framework') or data['name']
        patterns = [
            Pattern(framework=p.get('framework', framework), **{k: v for k, v in p.items() if k != 'framework'})
            for p in data.get('patterns') or []
        ]
        error_solutions = [
            ErrorSolution(framework=e.get('framework', framework), **{k: v for k, v in e.items() if k != 'framework'})
            for e in data.get('error_solutions') or []
        ]
        return cls(
            name=data['name'],
            crate=data.get('crate', data['name']),
            version=str(data.get('version', 'latest')),
            docs_url=data.get('docs_url', ''),
            framework=framework,
            title=data.get('title', ''),
            awesome_list=RepoRef.from_dict(data.get('awesome_list')),
            issue_repo=RepoRef.from_dict(data.get('issue_repo')),
            integration_query=data.get('integration_query'),
            patterns=patterns,
            error_solutions=error_solutions,
            enabled=data.get('enabled', True)
        )


class SourceLoader:
    """Loads source configurations from YAML files."""

    def __init__(self, sources_dir: Optional[Path] = None):
        """Initialize source loader.

        Args:
            sources_dir: Directory containing source YAML files.
                        Defaults to the directory of this module.
        """
        self.sources_dir = Path(sources_dir) if sources_dir is not None else SOURCES_DIR
        self._cache: Dict[str, SourceConfig] = {}

    def load_source_config(self, source_name: str) -> Optional[SourceConfig]:
        """Load configuration for a specific source.

        Args:
            source_name: Name of the source (without .yaml extension)

        Returns:
            SourceConfig if found and valid, None otherwise
        """
        if source_name in self._cache:
            return self._cache[source_name]

        yaml_file = self.sources_dir / f"{source_name}.yaml"
        if not yaml_file.exists():
            logger.warning(f"Source configuration not found: {yaml_file}")
            return None

        try:
            with open(yaml_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML file {yaml_file}: {e}")
            return None

        if not data:
            logger.error(f"Empty or invalid YAML file: {yaml_file}")
            return None

        if data.get('name', source_name) != source_name:
            logger.warning(f"Source name mismatch in {yaml_file}: {data['name']} != {source_name}")
        data['name'] = source_name

        try:
            config = SourceConfig.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Invalid source configuration in {yaml_file}: {e}")
            return None

        self._cache[source_name] = config
        logger.info(f"Loaded source configuration: {source_name}")
        return config

    def load_all_sources(self) -> Dict[str, SourceConfig]:
        """Load all source configurations from the sources directory."""
        sources = {}
        if not self.sources_dir.exists():
            logger.warning(f"Sources directory not found: {self.sources_dir}")
            return sources

        for yaml_file in sorted(self.sources_dir.glob("*.yaml")):
            config = self.load_source_config(yaml_file.stem)
            if config:
                sources[yaml_file.stem] = config

        logger.info(f"Loaded {len(sources)} source configurations")
        return sources

    def get_enabled_sources(self) -> Dict[str, SourceConfig]:
        """All enabled source configurations, keyed by name."""
        return {name: config for name, config in self.load_all_sources().items() if config.enabled}

    def reload_cache(self):
        """Clear cache to force reload of all configurations."""
        self._cache.clear()
        logger.info("Source configuration cache cleared")


# Global source loader instance
_source_loader = SourceLoader()


def load_source_config(source_name: str) -> Optional[SourceConfig]:
    """Convenience function to load a source configuration."""
    return _source_loader.load_source_config(source_name)


def get_enabled_sources() -> Dict[str, SourceConfig]:
    """Convenience function to get enabled source configurations."""
    return _source_loader.get_enabled_sources()
