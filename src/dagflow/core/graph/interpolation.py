# src/dagflow/core/graph/interpolation.py
"""Interpolação de placeholders `{{nome}}` em valores de configuração."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Mapping

_PLACEHOLDER = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def render_value(value: Any) -> str:
    """Texto usado na substituição: strings verbatim, o resto em JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def interpolate(template: str, context: Mapping[str, Any]) -> str:
    """
    Substitui `{{nome}}` pelos valores de `context`.

    Placeholders sem chave correspondente permanecem intactos, para que o
    handler possa decidir se isso é um erro.
    """

    def _sub(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key in context:
            return render_value(context[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


def interpolate_config(config: Mapping[str, str], context: Mapping[str, Any]) -> Dict[str, str]:
    return {k: interpolate(v, context) for k, v in config.items()}
