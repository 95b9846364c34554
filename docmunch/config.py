# === FILE: docmunch/config.py ===
"""
Project configuration for docmunch: the ``.docmunch.yaml`` file listing the
documentation sources to keep in sync, plus crawl tuning settings.
Pydantic describes the schema and validates the data.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = ".docmunch.yaml"
DEFAULT_OUTPUT_DIR = ".ai/docs"


class CrawlSettings(BaseModel):
    """Tuning knobs for a single crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    delay: float = Field(0.2, ge=0, description="Politeness delay between requests (seconds).")
    timeout: float = Field(30.0, gt=0, description="Per-request timeout (seconds).")
    retry_times: int = Field(2, ge=0, description="Retries on 5xx/429 and connection errors.")
    backoff_base: float = Field(0.5, ge=0, description="Base of the exponential retry backoff.")
    user_agent: str = Field("docmunch/0.1 (+https://pypi.org/project/docmunch/)", min_length=1)
    browser_fallback: bool = Field(
        True, description="Re-render the first page in a browser when it yields no links."
    )
    render_wait_ms: int = Field(1000, ge=0, description="Extra wait after network idle.")


class SourceConfig(BaseModel):
    """One documentation source."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    crawl: bool = False
    max_depth: int = Field(2, ge=0)
    output: str = Field(..., min_length=1)

    @field_validator("url")
    def _require_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"source url must be http(s): {v}")
        return v

    @property
    def is_directory_output(self) -> bool:
        return not self.output.endswith(".md")


class DocmunchConfig(BaseModel):
    """Top-level ``.docmunch.yaml``."""
    model_config = ConfigDict(extra="ignore")

    version: int = 1
    output_dir: str = DEFAULT_OUTPUT_DIR
    sources: List[SourceConfig] = Field(default_factory=list)

    def get_source(self, name: str) -> Optional[SourceConfig]:
        for source in self.sources:
            if source.name == name:
                return source
        return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of {path} must be a mapping, got {type(data).__name__}")
    return data


def find_config_file(start_dir: Union[str, Path, None] = None) -> Optional[Path]:
    """Walk up from *start_dir* (default: cwd) looking for ``.docmunch.yaml``."""
    directory = Path(start_dir or Path.cwd()).expanduser().resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(start_dir: Union[str, Path, None] = None) -> Optional[Tuple[DocmunchConfig, Path]]:
    """
    Locate and parse the project config.

    Returns ``(config, path)``, or None when no config file exists up the tree.
    Malformed YAML raises ValueError, a non-mapping document TypeError, and
    schema problems pydantic's ValidationError.
    """
    path = find_config_file(start_dir)
    if path is None:
        return None
    return DocmunchConfig(**_read_yaml(path)), path


def save_config(config: DocmunchConfig, path: Union[str, Path]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = config.model_dump(mode="json")
    p.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True, width=10_000),
        encoding="utf-8",
    )
    return p


def add_source(config: DocmunchConfig, source: SourceConfig) -> None:
    """Insert *source*, replacing an existing one with the same name in place."""
    for idx, existing in enumerate(config.sources):
        if existing.name == source.name:
            config.sources[idx] = source
            return
    config.sources.append(source)
