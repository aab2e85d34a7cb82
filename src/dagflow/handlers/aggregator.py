# src/dagflow/handlers/aggregator.py
"""
Handler do tipo Aggregator.

Combina os registros recebidos nas portas de entrada, na ordem das
arestas. A política de espera (`wait_for_all` / `required_inputs`) é
aplicada pelo executor antes do handler rodar.

Estratégias:
    - merge:  mapas combinados (porta posterior vence); valores que não
              são mapas entram sob o id da porta
    - concat: lista com os valores (listas são achatadas um nível)
    - first / last: primeiro / último valor recebido

Saída: `{"merged": ..., "count": <número de entradas recebidas>}`.
"""

from __future__ import annotations

from typing import Any, Dict, List

from dagflow.core.pipeline.handler import HandlerCall

from .base import unwrap

STRATEGIES = ("merge", "concat", "first", "last")


class AggregatorHandler:
    def run(self, call: HandlerCall) -> Dict[str, Any]:
        strategy = (call.config.get("strategy") or "merge").strip().lower()
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown aggregation strategy: {strategy!r}")

        ports = list(call.inputs)
        values = [unwrap(call.inputs[p]) for p in ports]

        if strategy == "merge":
            merged: Any = {}
            for port, value in zip(ports, values):
                if isinstance(value, dict):
                    merged.update(value)
                else:
                    merged[port] = value
        elif strategy == "concat":
            out: List[Any] = []
            for value in values:
                if isinstance(value, list):
                    out.extend(value)
                else:
                    out.append(value)
            merged = out
        elif strategy == "first":
            merged = values[0] if values else None
        else:
            merged = values[-1] if values else None

        call.log("debug", "aggregated inputs", strategy=strategy, count=len(values))
        return {"merged": merged, "count": len(values)}
