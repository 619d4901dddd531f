"""gatewayrag configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (GATEWAYRAG_DB, GATEWAYRAG_EMBEDDING_MODEL,
     GATEWAYRAG_GENERATION_MODEL, PORT, LOG_LEVEL; ``.env`` is loaded first)
  3. Per-project gatewayrag.yaml  (current working directory)
  4. Global ~/.gatewayrag/config.yaml  (model defaults only — no API keys)
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
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".gatewayrag"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "gatewayrag.yaml"

# Fields that suggest an API key; forbidden in every config file.
# Does NOT match legitimate config keys like max_tokens or top_k.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # github_token, access_token (suffix)
    r"|^token$"                  # exactly "token"
    r"|_secret$"                 # client_secret (suffix)
    r"|^secret$"                 # exactly "secret"
    r"|passw(?:ord|d)"           # password, passwd
    r"|credential",              # credential, credentials
    re.IGNORECASE,
)

# Known top-level sections; unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["database", "embedding", "generation", "retrieval", "ingest", "server"]
)

_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """Knowledge base location (gatewayrag.yaml: database:)."""

    path: str = "gatewayrag.db"


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (gatewayrag.yaml: embedding:)."""

    model: str = "gemini/text-embedding-004"
    dimensions: int = 768


@dataclass
class GenerationCfg:
    """Answer generation configuration (gatewayrag.yaml: generation:)."""

    model: str = "gemini/gemini-2.5-flash"
    max_tokens: int = 2048
    temperature: float = 0.0


@dataclass
class RetrievalCfg:
    """Retrieval and prompt limits (gatewayrag.yaml: retrieval:).

    Attributes:
        top_k: Chunks fetched per question when the request gives none.
        max_context_chunks: Chunks rendered into the prompt context.
        title_max_chars: Title length in the context block before "...".
        body_max_chars: Body length in the context block before "...".
    """

    top_k: int = 5
    max_context_chunks: int = 10
    title_max_chars: int = 160
    body_max_chars: int = 1200


@dataclass
class IngestCfg:
    """Ingestion pipeline configuration (gatewayrag.yaml: ingest:)."""

    max_chunk_chars: int = 2000
    max_pages: int = 50
    fetch_timeout: int = 30


@dataclass
class ServerCfg:
    """HTTP server configuration (gatewayrag.yaml: server:)."""

    host: str = "0.0.0.0"
    port: int = 8080
    request_timeout: float = 15.0
    log_level: str = "INFO"


@dataclass
class GatewayConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    server: ServerCfg = field(default_factory=ServerCfg)


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
                        f"Config file '{source}' contains a forbidden key '{full}'.\n"
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


def _validate(cfg: GatewayConfig) -> None:
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if cfg.ingest.max_chunk_chars < 1:
        raise ConfigError(
            f"ingest.max_chunk_chars must be >= 1, got {cfg.ingest.max_chunk_chars}"
        )
    if cfg.server.request_timeout <= 0:
        raise ConfigError(
            f"server.request_timeout must be > 0, got {cfg.server.request_timeout}"
        )
    if cfg.server.log_level not in _LOG_LEVELS:
        raise ConfigError(
            f"server.log_level must be one of {', '.join(sorted(_LOG_LEVELS))}, "
            f"got '{cfg.server.log_level}'"
        )


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


def _cfg_from_dict(data: dict[str, Any]) -> GatewayConfig:
    """Build a *GatewayConfig* from a merged raw YAML dict."""
    cfg = GatewayConfig()

    if "database" in data:
        d = data["database"]
        cfg.database = DatabaseCfg(path=str(d.get("path", cfg.database.path)))

    if "embedding" in data:
        e = data["embedding"]
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
        )

    if "generation" in data:
        g = data["generation"]
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
        )

    if "retrieval" in data:
        r = data["retrieval"]
        cfg.retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", cfg.retrieval.top_k)),
            max_context_chunks=int(
                r.get("max_context_chunks", cfg.retrieval.max_context_chunks)
            ),
            title_max_chars=int(r.get("title_max_chars", cfg.retrieval.title_max_chars)),
            body_max_chars=int(r.get("body_max_chars", cfg.retrieval.body_max_chars)),
        )

    if "ingest" in data:
        i = data["ingest"]
        cfg.ingest = IngestCfg(
            max_chunk_chars=int(i.get("max_chunk_chars", cfg.ingest.max_chunk_chars)),
            max_pages=int(i.get("max_pages", cfg.ingest.max_pages)),
            fetch_timeout=int(i.get("fetch_timeout", cfg.ingest.fetch_timeout)),
        )

    if "server" in data:
        s = data["server"]
        cfg.server = ServerCfg(
            host=str(s.get("host", cfg.server.host)),
            port=int(s.get("port", cfg.server.port)),
            request_timeout=float(s.get("request_timeout", cfg.server.request_timeout)),
            log_level=str(s.get("log_level", cfg.server.log_level)).upper(),
        )

    return cfg


def _apply_env_overrides(cfg: GatewayConfig) -> GatewayConfig:
    """Apply environment variable overrides (layer 2)."""
    if path := os.environ.get("GATEWAYRAG_DB"):
        cfg.database.path = path
    if model := os.environ.get("GATEWAYRAG_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("GATEWAYRAG_GENERATION_MODEL"):
        cfg.generation.model = model
    if port := os.environ.get("PORT"):
        try:
            cfg.server.port = int(port)
        except ValueError as exc:
            raise ConfigError(f"PORT must be an integer, got '{port}'") from exc
    if level := os.environ.get("LOG_LEVEL"):
        cfg.server.log_level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
    load_env_file: bool = True,
) -> GatewayConfig:
    """Load and return a merged *GatewayConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *gatewayrag.yaml* and *.env*.
            Defaults to CWD.
        global_config_path: Override the global config path (for testing).
        load_env_file: Read ``.env`` from *project_dir* before env overrides.

    Returns:
        Fully merged *GatewayConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    if load_env_file:
        load_dotenv(search_dir / ".env", override=False)

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_project, project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg
