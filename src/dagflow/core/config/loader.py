# src/dagflow/core/config/loader.py
"""
Loader de configuração do dagflow.

A configuração efetiva do engine é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional; ignorado se não existir)

Formatos aceitos: YAML (`.yaml`, `.yml`, via PyYAML `safe_load`) e JSON.

Decisões arquiteturais:
    - Documento vazio equivale a `{}`
    - A raiz precisa ser um mapa
    - O override local sempre vence, via `deep_merge`
    - Não há leitura de variáveis de ambiente nem defaults implícitos

Invariantes:
    - O resultado é sempre um `dict` puro
    - Defaults nunca são mutados pelo override

Limites explícitos:
    - Não interpreta as chaves (ver `settings.EngineSettings`)
    - Não persiste configuração nem hash
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import json

import yaml  # PyYAML

from .merge import deep_merge
from .hashing import compute_config_hash
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


PathLike = Union[str, Path]


def _read_document(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de configuração e valida o tipo da raiz.

    Args:
        path (Path): Caminho do arquivo.

    Returns:
        Dict[str, Any]: Conteúdo carregado.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se a raiz não for um dict.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")

    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text) if text.strip() else None
    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: PathLike,
    local_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva.

    Args:
        defaults_path: Caminho do arquivo base (obrigatório).
        local_path: Caminho opcional de overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se o formato não for suportado.
        InvalidConfigRootTypeError: Se a raiz não for um dicionário.
        ConfigTypeConflictError: Em conflito estrutural durante o merge.
    """
    effective = _read_document(Path(defaults_path))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _read_document(local_file))

    return effective


def load_config_with_hash(
    *,
    defaults_path: PathLike,
    local_path: Optional[PathLike] = None,
) -> Tuple[Dict[str, Any], str]:
    """Como `load_config`, devolvendo também o hash da configuração efetiva."""
    config = load_config(defaults_path=defaults_path, local_path=local_path)
    return config, compute_config_hash(config)
