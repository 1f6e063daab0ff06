"""Application configuration loaded from config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

MIRROR_BACKENDS = ("auto", "supabase", "sqlite", "none")


def _check_range(name: str, value: float, low: float, high: float | None = None) -> None:
    if value < low or (high is not None and value > high):
        bound = f"between {low} and {high}" if high is not None else f">= {low}"
        raise ValueError(f"{name} must be {bound}, got {value}")


@dataclass(frozen=True)
class LLMConfig:
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 8192
    max_searches: int = 5
    timeout: int = 120
    max_attempts: int = 5
    backoff_base: float = 3.0
    jitter: float = 1.0

    def __post_init__(self) -> None:
        _check_range("max_tokens", self.max_tokens, 1, 64000)
        _check_range("max_searches", self.max_searches, 1, 20)
        _check_range("timeout", self.timeout, 1)
        _check_range("max_attempts", self.max_attempts, 1, 10)
        if self.backoff_base <= 0:
            raise ValueError(f"backoff_base must be > 0, got {self.backoff_base}")
        _check_range("jitter", self.jitter, 0)


@dataclass(frozen=True)
class BatchConfig:
    chunk_size: int = 2

    def __post_init__(self) -> None:
        _check_range("chunk_size", self.chunk_size, 1, 50)


@dataclass(frozen=True)
class MirrorConfig:
    backend: str = "auto"
    table: str = "company_extractions"
    sqlite_path: str = "~/.company-extractor/mirror.db"

    def __post_init__(self) -> None:
        if self.backend not in MIRROR_BACKENDS:
            raise ValueError(
                f"backend must be one of {', '.join(MIRROR_BACKENDS)}, got {self.backend!r}"
            )

    @property
    def resolved_sqlite_path(self) -> Path:
        return Path(self.sqlite_path).expanduser()


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    mirror: MirrorConfig = field(default_factory=MirrorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        # Look for config.yaml relative to the project root
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        batch=BatchConfig(**raw.get("batch", {})),
        mirror=MirrorConfig(**raw.get("mirror", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
    )
