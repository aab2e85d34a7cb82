# src/dagflow/handlers/transform.py
"""
Handler do tipo Transform.

Opera sobre `inputs["data"]` conforme `operation`:

- map: `function` é um template `{{item}}` renderizado por item; o
  resultado é decodificado como JSON quando possível. Os nomes
  `uppercase`, `lowercase`, `trim` e `json_parse` aplicam a operação
  textual correspondente a cada item.
- filter: mantém os itens para os quais a condição `function` é verdadeira.
- reduce: `function` ∈ {sum, count, min, max, concat}.
- custom: rejeitado (código arbitrário não é avaliado).

Saída: `{"result": ...}`.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

from dagflow.core.graph.interpolation import interpolate, render_value
from dagflow.core.pipeline.handler import HandlerCall

from .base import as_items, item_context, unwrap
from .conditions import evaluate_condition


def _json_parse(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


_TEXT_OPS: Dict[str, Callable[[Any], Any]] = {
    "uppercase": lambda v: render_value(v).upper(),
    "lowercase": lambda v: render_value(v).lower(),
    "trim": lambda v: render_value(v).strip(),
    "json_parse": _json_parse,
}


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def _numbers(items: List[Any]) -> List[float]:
    out: List[float] = []
    for item in items:
        if isinstance(item, bool):
            raise ValueError("reduce expects numeric items")
        out.append(float(item) if not isinstance(item, (int, float)) else item)
    return out


def _reduce(kind: str, items: List[Any]) -> Any:
    if kind == "count":
        return len(items)
    if kind == "concat":
        return "".join(render_value(i) for i in items)
    if kind == "sum":
        return sum(_numbers(items))
    if kind in ("min", "max"):
        if not items:
            return None
        nums = _numbers(items)
        return min(nums) if kind == "min" else max(nums)
    raise ValueError(f"unsupported reduce function: {kind!r}")


class TransformHandler:
    def run(self, call: HandlerCall) -> Dict[str, Any]:
        operation = (call.config.get("operation") or "").strip().lower()
        function = call.config.get("function") or ""
        data = unwrap(call.inputs.get("data"))
        scalar = not isinstance(data, (list, tuple))

        if operation == "custom":
            raise ValueError("custom transforms are not supported")

        if operation == "map":
            op = _TEXT_OPS.get(function.strip().lower())
            if op is not None:
                mapped = [op(i) for i in as_items(data)]
            else:
                mapped = [_decode(interpolate(function, item_context(i, call.context))) for i in as_items(data)]
            result: Any = mapped[0] if scalar and mapped else mapped
        elif operation == "filter":
            result = [i for i in as_items(data) if evaluate_condition(function, item_context(i, call.context))]
        elif operation == "reduce":
            result = _reduce(function.strip().lower(), as_items(data))
        else:
            raise ValueError(f"unknown transform operation: {operation!r}")

        return {"result": result}
