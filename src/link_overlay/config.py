"""Configuration management for link-overlay."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


# Default paths
DEFAULT_HOME_DIR = Path.home() / ".link-overlay"
DEFAULT_DB_PATH = DEFAULT_HOME_DIR / "links.db"
DEFAULT_CONFIG_PATH = DEFAULT_HOME_DIR / "config.yaml"

DEFAULT_ROUTE = "/standalone-title"
DEFAULT_QUERY_PARAM = "t"


def _resolve_env(value: Optional[str]) -> Optional[str]:
    """Resolve a ``${ENV_VAR}`` reference to its environment value."""
    if value and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1])
    return value


@dataclass
class TitleGenerationConfig:
    """LLM configuration for heading title generation."""
    backend: Optional[str] = None  # "anthropic", "openai", or None (disabled)
    model: Optional[str] = None  # e.g., "claude-3-haiku-20240307", "gpt-4o-mini"
    api_key: Optional[str] = None
    max_tokens: int = 1024

    def __post_init__(self):
        self.api_key = _resolve_env(self.api_key)

    @property
    def enabled(self) -> bool:
        """Check if title generation is configured."""
        return bool(self.backend and self.model)


@dataclass
class LinkConfig:
    """Where rewritten links point."""
    route: str = DEFAULT_ROUTE
    query_param: str = DEFAULT_QUERY_PARAM


@dataclass
class Config:
    """Main configuration."""
    db_path: Path = DEFAULT_DB_PATH
    titles: TitleGenerationConfig = field(default_factory=TitleGenerationConfig)
    links: LinkConfig = field(default_factory=LinkConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        titles_data = data.get("titles", {})
        titles = TitleGenerationConfig(
            backend=titles_data.get("backend"),
            model=titles_data.get("model"),
            api_key=titles_data.get("api_key"),
            max_tokens=titles_data.get("max_tokens", 1024),
        )

        links_data = data.get("links", {})
        links = LinkConfig(
            route=links_data.get("route", DEFAULT_ROUTE),
            query_param=links_data.get("query_param", DEFAULT_QUERY_PARAM),
        )

        db_path = DEFAULT_DB_PATH
        if "db_path" in data:
            db_path = Path(data["db_path"]).expanduser()

        return cls(db_path=db_path, titles=titles, links=links)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to YAML file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "db_path": str(self.db_path),
            "links": {
                "route": self.links.route,
                "query_param": self.links.query_param,
            },
        }

        # Only write the titles section once a backend is chosen
        if self.titles.enabled:
            data["titles"] = {
                "backend": self.titles.backend,
                "model": self.titles.model,
                "max_tokens": self.titles.max_tokens,
            }
            if self.titles.api_key:
                data["titles"]["api_key"] = self.titles.api_key

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reload_config() -> Config:
    """Reload configuration from disk."""
    global _config
    _config = Config.load()
    return _config
