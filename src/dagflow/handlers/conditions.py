# src/dagflow/handlers/conditions.py
"""
Avaliação de condições textuais usadas por Filter e Transform.

Gramática (v1):
    - literais: `true`, `1` → verdadeiro; `false`, `0`, vazio → falso
    - comparação: `a == b`, `a != b` (texto, ou numérica se ambos forem números)
    - comparação numérica: `a >= b`, `a <= b`, `a > b`, `a < b`
    - pertinência: `a.contains("b")`
    - qualquer outro valor: verdadeiro se o valor resolvido não for vazio

Operandos são resolvidos contra o contexto: nomes presentes no contexto
viram seus valores; literais entre aspas perdem as aspas; o resto é
usado como texto literal. Nenhum código é avaliado.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from dagflow.core.graph.interpolation import render_value

_CONTAINS = re.compile(r"^(?P<left>.+?)\.contains\((?P<arg>.*)\)$")
_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")
_TRUE = {"true", "1"}
_FALSE = {"false", "0", ""}


def _unquote(token: str) -> Optional[str]:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return token[1:-1]
    return None


def resolve_value(token: str, context: Mapping[str, Any]) -> str:
    token = token.strip()
    literal = _unquote(token)
    if literal is not None:
        return literal
    if token in context:
        return render_value(context[token])
    return token


def _number(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


def _compare(left: str, op: str, right: str) -> bool:
    ln, rn = _number(left), _number(right)
    if op in ("==", "!="):
        equal = (ln == rn) if ln is not None and rn is not None else left == right
        return equal if op == "==" else not equal
    if ln is None or rn is None:
        return False
    if op == ">=":
        return ln >= rn
    if op == "<=":
        return ln <= rn
    if op == ">":
        return ln > rn
    return ln < rn


def evaluate_condition(condition: str, context: Mapping[str, Any]) -> bool:
    text = (condition or "").strip()
    lowered = text.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False

    match = _CONTAINS.match(text)
    if match:
        haystack = resolve_value(match.group("left"), context)
        needle = resolve_value(match.group("arg"), context)
        return needle in haystack

    for op in _OPERATORS:
        if op in text:
            left, right = text.split(op, 1)
            return _compare(resolve_value(left, context), op, resolve_value(right, context))

    value = resolve_value(text, context).strip().lower()
    return value not in _FALSE
