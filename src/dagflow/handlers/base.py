# src/dagflow/handlers/base.py
"""Utilitários compartilhados pelos handlers embutidos."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping


def unwrap(record: Any) -> Any:
    """
    Extrai o valor útil de um registro de saída upstream.

    Um registro com uma única porta (ex.: `{"result": [...]}`) é reduzido
    ao valor dessa porta; registros com várias portas são usados inteiros.
    """
    if isinstance(record, Mapping) and len(record) == 1:
        return next(iter(record.values()))
    return record


def as_items(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    if isinstance(value, tuple):
        return list(value)
    return [value]


def item_context(item: Any, base: Mapping[str, Any]) -> Dict[str, Any]:
    """Contexto de avaliação por item: `item`, `item.<campo>` e campos soltos."""
    ctx: Dict[str, Any] = dict(base)
    if isinstance(item, Mapping):
        for key, value in item.items():
            ctx.setdefault(str(key), value)
            ctx[f"item.{key}"] = value
    ctx["item"] = item
    return ctx
