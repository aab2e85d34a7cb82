# src/dagflow/core/config/merge.py
"""
Deep-merge de configuração (defaults + overrides locais).

Política de merge (v1):
    - dict + dict → merge recursivo por chave
    - list        → substituição integral pelo override
    - escalar     → substituição direta
    - `None` em qualquer lado → substituição (permite "desligar" um default)
    - tipos incompatíveis → ConfigTypeConflictError

Invariantes:
    - Nenhum input é mutado; o retorno é sempre um novo dict
    - Chaves ausentes no override são preservadas da base
    - O mesmo par (base, override) produz sempre o mesmo resultado

Limites explícitos:
    - Não carrega arquivos
    - Não valida semântica (isso é papel de `EngineSettings`)
"""

from copy import deepcopy
from typing import Any, Dict, List, Optional

from .errors import ConfigTypeConflictError


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compatible(base_value: Any, override_value: Any) -> bool:
    if base_value is None or override_value is None:
        return True
    if _is_number(base_value) and _is_number(override_value):
        # 1000 (int) sobrescrito por 1500.0 (float) é legítimo em YAML
        return True
    return type(base_value) is type(override_value)


def deep_merge(
    base: Dict[str, Any],
    override: Dict[str, Any],
    _path: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Combina `override` sobre `base` sem mutar nenhum dos dois.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se uma chave tiver tipos incompatíveis
            entre base e override. A mensagem inclui o caminho pontuado
            da chave (ex.: `engine.max_parallelism`).
    """
    path = list(_path or [])

    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    merged: Dict[str, Any] = deepcopy(base)

    for key, value in override.items():
        key_path = path + [str(key)]

        if key not in merged:
            merged[key] = deepcopy(value)
            continue

        current = merged[key]

        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value, key_path)
        elif isinstance(value, list) and (current is None or isinstance(current, list)):
            merged[key] = deepcopy(value)
        elif _compatible(current, value):
            merged[key] = deepcopy(value)
        else:
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{'.'.join(key_path)}': "
                f"{type(current).__name__} vs {type(value).__name__}"
            )

    return merged
