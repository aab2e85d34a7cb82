# src/dagflow/core/config/hashing.py
"""
Hash determinístico da configuração efetiva.

O hash identifica estruturalmente a configuração usada por uma run e é
gravado no Manifest (`inputs.config_hash`). A serialização canônica é a
mesma usada pelos checkpoints (`dagflow.core.hashing`), garantindo que
dicts equivalentes (independente da ordem de chaves) produzam o mesmo
valor hexadecimal de 64 caracteres.
"""

from typing import Any, Dict

from dagflow.core.hashing import content_hash


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o SHA-256 da configuração resolvida.

    Args:
        config (Dict[str, Any]): Configuração efetiva.

    Returns:
        str: Hash hexadecimal (64 caracteres).

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return content_hash(config)
