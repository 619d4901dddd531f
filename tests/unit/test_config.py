"""Tests for gatewayrag config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from gatewayrag.config import ConfigError, GatewayConfig, load_config

_ENV_VARS = (
    "GATEWAYRAG_DB",
    "GATEWAYRAG_EMBEDDING_MODEL",
    "GATEWAYRAG_GENERATION_MODEL",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also removes values a .env file added.
    for name in _ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data), encoding="utf-8")


def _load(tmp_path: Path, global_data: dict | None = None, project_data: dict | None = None) -> GatewayConfig:
    global_path = tmp_path / "home" / "config.yaml"
    if global_data is not None:
        _write_yaml(global_path, global_data)
    if project_data is not None:
        _write_yaml(tmp_path / "gatewayrag.yaml", project_data)
    return load_config(project_dir=tmp_path, global_config_path=global_path)


# ---------------------------------------------------------------------------
# Defaults: no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = _load(tmp_path)

    assert cfg.database.path == "gatewayrag.db"
    assert cfg.embedding.model == "gemini/text-embedding-004"
    assert cfg.embedding.dimensions == 768
    assert cfg.generation.model == "gemini/gemini-2.5-flash"
    assert cfg.retrieval.top_k == 5
    assert cfg.retrieval.max_context_chunks == 10
    assert cfg.retrieval.title_max_chars == 160
    assert cfg.retrieval.body_max_chars == 1200
    assert cfg.ingest.max_chunk_chars == 2000
    assert cfg.ingest.max_pages == 50
    assert cfg.server.port == 8080
    assert cfg.server.request_timeout == 15.0
    assert cfg.server.log_level == "INFO"


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    global_path = tmp_path / "config.yaml"
    global_path.write_text("", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)
    assert cfg.embedding.model == "gemini/text-embedding-004"


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    cfg = _load(tmp_path, global_data={"generation": {"model": "openai/gpt-4o-mini"}})
    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.generation.max_tokens == 2048


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    cfg = _load(
        tmp_path,
        global_data={"retrieval": {"top_k": 8, "body_max_chars": 900}},
        project_data={"retrieval": {"top_k": 3}},
    )
    assert cfg.retrieval.top_k == 3
    assert cfg.retrieval.body_max_chars == 900


def test_load_config_all_sections(tmp_path: Path) -> None:
    cfg = _load(
        tmp_path,
        project_data={
            "database": {"path": "data/kb.db"},
            "ingest": {"max_chunk_chars": 1500, "max_pages": 20, "fetch_timeout": 10},
            "server": {"host": "127.0.0.1", "port": 9000, "request_timeout": 30, "log_level": "debug"},
        },
    )
    assert cfg.database.path == "data/kb.db"
    assert cfg.ingest.max_chunk_chars == 1500
    assert cfg.ingest.max_pages == 20
    assert cfg.ingest.fetch_timeout == 10
    assert cfg.server.host == "127.0.0.1"
    assert cfg.server.port == 9000
    assert cfg.server.request_timeout == 30.0
    assert cfg.server.log_level == "DEBUG"


# ---------------------------------------------------------------------------
# Forbidden keys / validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("bad_key", ["api_key", "gemini_api_key", "token", "client_secret", "password"])
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    with pytest.raises(ConfigError, match="forbidden key"):
        _load(tmp_path, global_data={bad_key: "x"})


def test_project_config_rejects_nested_api_key(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="forbidden key 'embedding.api_key'"):
        _load(tmp_path, project_data={"embedding": {"api_key": "AIza..."}})


def test_max_tokens_is_not_a_forbidden_key(tmp_path: Path) -> None:
    cfg = _load(tmp_path, global_data={"generation": {"max_tokens": 1024}})
    assert cfg.generation.max_tokens == 1024


def test_invalid_log_level_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="log_level"):
        _load(tmp_path, project_data={"server": {"log_level": "LOUD"}})


def test_non_positive_timeout_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="request_timeout"):
        _load(tmp_path, project_data={"server": {"request_timeout": 0}})


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        _load(tmp_path, project_data={"reranker": {"enabled": True}})
    assert any("reranker" in str(w.message) for w in caught)


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


def test_env_var_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GATEWAYRAG_DB", "/srv/kb.db")
    monkeypatch.setenv("GATEWAYRAG_EMBEDDING_MODEL", "openai/text-embedding-3-small")
    monkeypatch.setenv("GATEWAYRAG_GENERATION_MODEL", "openai/gpt-4o")
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("LOG_LEVEL", "warning")
    cfg = _load(tmp_path, project_data={"server": {"port": 7000}})
    assert cfg.database.path == "/srv/kb.db"
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.generation.model == "openai/gpt-4o"
    assert cfg.server.port == 9090
    assert cfg.server.log_level == "WARNING"


def test_env_port_not_integer_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "http")
    with pytest.raises(ConfigError, match="PORT"):
        _load(tmp_path)


def test_dotenv_file_loaded(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("GATEWAYRAG_DB=from-dotenv.db\n", encoding="utf-8")
    cfg = _load(tmp_path)
    assert cfg.database.path == "from-dotenv.db"


def test_dotenv_does_not_override_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("GATEWAYRAG_DB=from-dotenv.db\n", encoding="utf-8")
    monkeypatch.setenv("GATEWAYRAG_DB", "from-env.db")
    cfg = _load(tmp_path)
    assert cfg.database.path == "from-env.db"
