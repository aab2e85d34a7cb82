# src/dagflow/core/hashing.py
"""
Serialização JSON canônica e hashing SHA-256 do dagflow.

Este módulo centraliza a política de serialização canônica utilizada
em todo o core para produzir identidades determinísticas:
    - hash da configuração efetiva (rastreabilidade de runs)
    - hash de checkpoints (endereçamento por conteúdo)

Política (v1):
    - Ordenação estável de chaves (`sort_keys=True`)
    - Separadores compactos (`(",", ":")`)
    - UTF-8 sem escape de não-ASCII
    - NaN/Infinity rejeitados (não são JSON válido)
    - SHA-256 em hexadecimal minúsculo (64 caracteres)

Invariantes:
    - Estruturas equivalentes produzem a mesma string canônica
    - A mesma string canônica produz sempre o mesmo hash

Limites explícitos:
    - Não converte tipos não serializáveis (levanta TypeError/ValueError)
    - Não persiste nada
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """
    Serializa um valor em JSON canônico.

    Args:
        value (Any): Valor composto apenas de tipos JSON nativos.

    Returns:
        str: Representação JSON canônica.

    Raises:
        TypeError: Se algum valor não for serializável em JSON.
        ValueError: Se houver NaN/Infinity ou referência circular.
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def content_hash(value: Any) -> str:
    """Hash SHA-256 do JSON canônico de `value`."""
    return sha256_hex(canonical_json(value))
