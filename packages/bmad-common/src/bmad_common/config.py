from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

ENV_CORE_PATH = "BMAD_CORE_PATH"
ENV_EXPANSION_PACKS_PATH = "BMAD_EXPANSION_PACKS_PATH"
ENV_LOG_LEVEL = "BMAD_LOG_LEVEL"


def _load_toml(path: Path) -> dict:
    """Load a TOML file, returning empty dict if missing."""
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base (1 level deep for TOML sections)."""
    merged = dict(base)
    for key, val in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(val, dict)
        ):
            merged[key] = {**merged[key], **val}
        else:
            merged[key] = val
    return merged


@dataclass(frozen=True, slots=True)
class ContentConfig:
    root: str = "./bmad-core"
    expansion_packs: str | None = None

    @property
    def root_path(self) -> Path:
        return Path(self.root).expanduser()

    @property
    def expansion_packs_path(self) -> Path:
        """Explicit pack root, or the ``expansion-packs`` sibling of the content root."""
        if self.expansion_packs:
            return Path(self.expansion_packs).expanduser()
        return self.root_path.parent / "expansion-packs"


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: str = "INFO"
    json: bool = False


@dataclass(frozen=True, slots=True)
class ServerConfig:
    name: str = "bmad-method"
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class BmadConfig:
    """Top-level configuration, parsed from bmad.toml."""
    content: ContentConfig = field(default_factory=ContentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_toml(
        cls, path: Path | str = "bmad.toml"
    ) -> BmadConfig:
        path = Path(path)
        raw = _load_toml(path)
        return cls._from_raw(raw)

    @classmethod
    def load(
        cls,
        project_dir: Path | str | None = None,
        environ: dict[str, str] | None = None,
    ) -> BmadConfig:
        """Load config with global → project → environment layering.

        Resolution order (later wins):
        1. Built-in defaults
        2. ~/.bmad/config.toml (global)
        3. .bmad/config.toml or bmad.toml (project)
        4. BMAD_CORE_PATH / BMAD_EXPANSION_PACKS_PATH / BMAD_LOG_LEVEL
        """
        global_path = Path.home() / ".bmad" / "config.toml"

        project_dir = (
            Path.cwd() if project_dir is None else Path(project_dir)
        )

        # Project config: .bmad/config.toml takes priority
        project_path = project_dir / ".bmad" / "config.toml"
        if not project_path.exists():
            project_path = project_dir / "bmad.toml"

        global_raw = _load_toml(global_path)
        project_raw = _load_toml(project_path)
        merged = _deep_merge(global_raw, project_raw)

        config = cls._from_raw(merged)
        return config.with_environment(os.environ if environ is None else environ)

    def with_environment(self, environ: dict[str, str]) -> BmadConfig:
        """Return a copy with environment-variable overrides applied."""
        content = self.content
        if environ.get(ENV_CORE_PATH):
            content = replace(content, root=environ[ENV_CORE_PATH])
        if environ.get(ENV_EXPANSION_PACKS_PATH):
            content = replace(
                content, expansion_packs=environ[ENV_EXPANSION_PACKS_PATH]
            )

        logging_cfg = self.logging
        if environ.get(ENV_LOG_LEVEL):
            logging_cfg = replace(logging_cfg, level=environ[ENV_LOG_LEVEL].upper())

        return replace(self, content=content, logging=logging_cfg)

    def with_content_root(self, root: Path | str) -> BmadConfig:
        return replace(self, content=replace(self.content, root=str(root)))

    @classmethod
    def _from_raw(cls, raw: dict) -> BmadConfig:
        """Build BmadConfig from a raw TOML dict."""
        content_raw = raw.get("content", {})
        logging_raw = raw.get("logging", {})
        server_raw = raw.get("server", {})

        def _pick(section: dict, dc: type) -> dict:
            fields = dc.__dataclass_fields__
            return {
                k: v for k, v in section.items() if k in fields
            }

        return cls(
            content=ContentConfig(**_pick(content_raw, ContentConfig)),
            logging=LoggingConfig(**_pick(logging_raw, LoggingConfig)),
            server=ServerConfig(**_pick(server_raw, ServerConfig)),
        )
