# tests/core/config/test_loader.py
"""
Testes do carregador de configuração (load_config).

Os testes asseguram que:
- o arquivo defaults é obrigatório
- o arquivo local é opcional e vence no merge
- YAML e JSON são aceitos; outros formatos são rejeitados
- documento vazio equivale a `{}`
- raiz diferente de dict é rejeitada

Limites explícitos:
    - Não valida semântica das chaves (ver test_settings.py)
"""

import json
from pathlib import Path

import pytest

try:
    from dagflow.core.config.loader import load_config, load_config_with_hash
    from dagflow.core.config.errors import (
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        UnsupportedConfigFormatError,
    )
except Exception as e:  # noqa: BLE001
    load_config = None
    load_config_with_hash = None
    DefaultsNotFoundError = None
    InvalidConfigRootTypeError = None
    UnsupportedConfigFormatError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if load_config is None:
        pytest.fail(f"Config loader not importable. Import error: {_IMPORT_ERR}")


def test_missing_defaults_raises(tmp_path: Path):
    """Defaults ausente é erro fatal, mesmo com local presente."""
    _require_imports()
    local = tmp_path / "local.yaml"
    local.write_text("engine: {}\n", encoding="utf-8")

    with pytest.raises(DefaultsNotFoundError):
        load_config(defaults_path=tmp_path / "defaults.yaml", local_path=local)


def test_missing_local_is_ok(tmp_path: Path, project_like_config_defaults_yaml):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")

    out = load_config(defaults_path=defaults, local_path=tmp_path / "local.yaml")

    assert out["engine"]["max_parallelism"] == 4
    assert out["checkpoint"]["enabled"] is False


def test_load_defaults_and_local(tmp_path: Path, project_like_config_defaults_yaml, project_like_config_local_yaml):
    """
    Override local vence e chaves não sobrescritas são preservadas.

    Invariantes:
        - `engine.max_parallelism` vem do local
        - `engine.cancel_grace_ms` e `progress.channel` vêm dos defaults
    """
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    local = tmp_path / "local.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local.write_text(project_like_config_local_yaml, encoding="utf-8")

    out = load_config(defaults_path=defaults, local_path=local)

    assert out["engine"]["max_parallelism"] == 2
    assert out["engine"]["cancel_grace_ms"] == 1000
    assert out["checkpoint"]["enabled"] is True
    assert out["progress"]["channel"] == "workflow-progress"


def test_json_defaults_are_supported(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.json"
    defaults.write_text(json.dumps({"engine": {"max_parallelism": 8}}), encoding="utf-8")

    assert load_config(defaults_path=defaults) == {"engine": {"max_parallelism": 8}}


def test_empty_document_is_empty_dict(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("", encoding="utf-8")

    assert load_config(defaults_path=defaults) == {}


def test_invalid_root_type_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=defaults)


def test_unsupported_extension_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.toml"
    defaults.write_text("a = 1\n", encoding="utf-8")

    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=defaults)


def test_load_with_hash_is_stable(tmp_path: Path, project_like_config_defaults_yaml):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")

    cfg1, h1 = load_config_with_hash(defaults_path=defaults)
    cfg2, h2 = load_config_with_hash(defaults_path=defaults)

    assert cfg1 == cfg2
    assert h1 == h2
    assert len(h1) == 64
