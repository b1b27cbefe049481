"""Searchlight configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (SEARCHLIGHT_GENERATION_MODEL, SEARCHLIGHT_EMBEDDING_MODEL,
     SEARCHLIGHT_SEARCH_ENGINE)
  3. Per-project searchlight.yaml  (current working directory)
  4. Global ~/.searchlight/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".searchlight"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "searchlight.yaml"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Does NOT match max_tokens or top_k.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["search", "fetch", "render", "chunking", "embedding", "generation", "retrieval"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class SearchCfg:
    """Web search configuration (searchlight.yaml: search:)."""

    engine: str = "google"
    max_results: int = 1
    timeout: float = 20.0


@dataclass
class FetchCfg:
    """Page fetch configuration (searchlight.yaml: fetch:).

    Attributes:
        timeout: Connect + read timeout in seconds.
        max_bytes: Response body cap; larger bodies abort the fetch.
        max_redirects: Redirects followed before the fetch is aborted.
        concurrency: Number of results fetched at once (1 = one at a time).
    """

    timeout: float = 30.0
    max_bytes: int = 20 * 1024 * 1024
    max_redirects: int = 3
    concurrency: int = 1


@dataclass
class RenderCfg:
    """Headless-browser fallback for script-generated pages (searchlight.yaml: render:)."""

    enabled: bool = True
    settle_delay_ms: int = 5_000
    readiness_timeout_ms: int = 10_000
    headless: bool = True


@dataclass
class ChunkingCfg:
    """Text splitter configuration (searchlight.yaml: chunking:)."""

    chunk_size: int = 1_000
    overlap: float = 0.2


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (searchlight.yaml: embedding:)."""

    model: str = "openai/text-embedding-ada-002"
    batch_size: int = 64


@dataclass
class GenerationCfg:
    """LLM generation configuration (searchlight.yaml: generation:)."""

    model: str = "openai/gpt-4-1106-preview"
    temperature: float = 0.2
    max_tokens: int = 1_024


@dataclass
class RetrievalCfg:
    """Retrieval configuration (searchlight.yaml: retrieval:)."""

    top_k: int = 4


@dataclass
class SearchlightConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    search: SearchCfg = field(default_factory=SearchCfg)
    fetch: FetchCfg = field(default_factory=FetchCfg)
    render: RenderCfg = field(default_factory=RenderCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: SearchlightConfig) -> None:
    if cfg.search.max_results < 1:
        raise ConfigError(f"search.max_results must be >= 1, got {cfg.search.max_results}")
    if cfg.fetch.concurrency < 1:
        raise ConfigError(f"fetch.concurrency must be >= 1, got {cfg.fetch.concurrency}")
    if cfg.chunking.chunk_size < 1:
        raise ConfigError(f"chunking.chunk_size must be >= 1, got {cfg.chunking.chunk_size}")
    if not 0.0 <= cfg.chunking.overlap < 1.0:
        raise ConfigError(f"chunking.overlap must be in [0.0, 1.0), got {cfg.chunking.overlap}")
    if cfg.retrieval.top_k < 1:
        raise ConfigError(f"retrieval.top_k must be >= 1, got {cfg.retrieval.top_k}")
    if cfg.render.settle_delay_ms < 0 or cfg.render.readiness_timeout_ms < 0:
        raise ConfigError("render delays must be >= 0 milliseconds")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> SearchlightConfig:
    """Build a *SearchlightConfig* from a merged raw YAML dict."""
    cfg = SearchlightConfig()

    if "search" in data:
        s = data["search"] or {}
        cfg.search = SearchCfg(
            engine=str(s.get("engine", cfg.search.engine)),
            max_results=int(s.get("max_results", cfg.search.max_results)),
            timeout=float(s.get("timeout", cfg.search.timeout)),
        )

    if "fetch" in data:
        f = data["fetch"] or {}
        cfg.fetch = FetchCfg(
            timeout=float(f.get("timeout", cfg.fetch.timeout)),
            max_bytes=int(f.get("max_bytes", cfg.fetch.max_bytes)),
            max_redirects=int(f.get("max_redirects", cfg.fetch.max_redirects)),
            concurrency=int(f.get("concurrency", cfg.fetch.concurrency)),
        )

    if "render" in data:
        r = data["render"] or {}
        cfg.render = RenderCfg(
            enabled=bool(r.get("enabled", cfg.render.enabled)),
            settle_delay_ms=int(r.get("settle_delay_ms", cfg.render.settle_delay_ms)),
            readiness_timeout_ms=int(
                r.get("readiness_timeout_ms", cfg.render.readiness_timeout_ms)
            ),
            headless=bool(r.get("headless", cfg.render.headless)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
            overlap=float(c.get("overlap", cfg.chunking.overlap)),
        )

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            batch_size=int(e.get("batch_size", cfg.embedding.batch_size)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
        )

    if "retrieval" in data:
        rt = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            top_k=int(rt.get("top_k", cfg.retrieval.top_k)),
        )

    return cfg


def _apply_env_overrides(cfg: SearchlightConfig) -> SearchlightConfig:
    """Apply SEARCHLIGHT_* environment variable overrides."""
    if model := os.environ.get("SEARCHLIGHT_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("SEARCHLIGHT_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if engine := os.environ.get("SEARCHLIGHT_SEARCH_ENGINE"):
        cfg.search.engine = engine
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SearchlightConfig:
    """Load and return a merged *SearchlightConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *searchlight.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields or a value
            is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.searchlight/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Searchlight global configuration — model defaults only.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "#   export SERP_API_KEY=...\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-ada-002\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4-1106-preview\n"
            "  temperature: 0.2\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
