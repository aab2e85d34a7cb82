# src/dagflow/handlers/filter.py
"""
Handler do tipo Filter.

Avalia `condition` para cada item de `inputs["data"]` (ou uma vez para
um valor escalar) e separa os itens em `passed` e `failed`.
Apenas o modo `javascript` (gramática de `conditions`) é suportado;
`jsonpath` é rejeitado.
"""

from __future__ import annotations

from typing import Any, Dict, List

from dagflow.core.pipeline.handler import HandlerCall

from .base import as_items, item_context, unwrap
from .conditions import evaluate_condition


class FilterHandler:
    def run(self, call: HandlerCall) -> Dict[str, Any]:
        mode = (call.config.get("mode") or "javascript").strip().lower()
        if mode != "javascript":
            raise ValueError(f"unsupported filter mode: {mode!r}")

        condition = call.config.get("condition") or ""
        passed: List[Any] = []
        failed: List[Any] = []
        for item in as_items(unwrap(call.inputs.get("data"))):
            if evaluate_condition(condition, item_context(item, call.context)):
                passed.append(item)
            else:
                failed.append(item)
        return {"passed": passed, "failed": failed}
