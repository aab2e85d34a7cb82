# src/dagflow/core/graph/serialization.py
"""
Serialização JSON de workflows (import/export).

Formato do documento (chaves camelCase):

    {
      "id": "...", "name": "...", "description": "...",
      "nodes": [{"id", "label", "type", "x", "y", "config",
                 "comments"?, "variables"?, "requiredInputs"?,
                 "waitForAll"?, "timeout"?, "retryPolicy"?}],
      "edges": [{"id", "source", "target"}],
      "metadata": {...}
    }

Decisões arquiteturais:
    - Valores de `config`/`variables` de qualquer tipo JSON são coagidos
      para texto: números e booleanos viram sua forma textual, arrays e
      objetos viram JSON, `null` vira string vazia
    - Documento sem `id` recebe um UUID novo
    - Tags de tipo desconhecidas falham com `UnknownNodeType`
    - Estrutura malformada falha com `WorkflowFormatError`
    - Campos opcionais ausentes não são emitidos no export

Limites explícitos:
    - Não valida estrutura do grafo (ver `engine.validator`)
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from dagflow.core.errors import WORKFLOW_FORMAT_ERROR
from dagflow.core.exceptions import WorkflowFormatError

from .model import Edge, Node, NodeType, RetryPolicy, Workflow


def coerce_config_value(value: Any) -> str:
    """Converte um valor JSON arbitrário na forma textual de config."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _coerce_mapping(raw: Any, *, where: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise _format_error(f"{where} must be an object", where=where)
    return {str(k): coerce_config_value(v) for k, v in raw.items()}


def _format_error(message: str, **details: Any) -> WorkflowFormatError:
    details["code"] = WORKFLOW_FORMAT_ERROR
    return WorkflowFormatError(
        message,
        details=details,
        hint="Confira o documento JSON do workflow (ids, tipos e chaves camelCase).",
    )


def _require_str(data: Mapping[str, Any], key: str, *, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise _format_error(f"{where}.{key} must be a non-empty string", where=where, key=key)
    return value


def _optional_int(data: Mapping[str, Any], key: str, *, where: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _format_error(f"{where}.{key} must be a number", where=where, key=key)
    return int(value)


def _position(data: Mapping[str, Any], key: str, *, where: str) -> float:
    value = data.get(key)
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise _format_error(f"{where}.{key} must be a number", where=where, key=key)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise _format_error(f"{where}.{key} must be a number", where=where, key=key) from e


def node_from_dict(data: Mapping[str, Any]) -> Node:
    if not isinstance(data, Mapping):
        raise _format_error("node entry must be an object", where="nodes")
    node_id = _require_str(data, "id", where="node")
    where = f"node[{node_id}]"

    retry_raw = data.get("retryPolicy")
    if retry_raw is not None and not isinstance(retry_raw, Mapping):
        raise _format_error(f"{where}.retryPolicy must be an object", where=where)

    wait_for_all = data.get("waitForAll")
    if wait_for_all is not None:
        wait_for_all = coerce_config_value(wait_for_all) == "true"

    variables = data.get("variables")

    return Node(
        id=node_id,
        type=NodeType.parse(data.get("type")),
        label=str(data.get("label") or node_id),
        config=_coerce_mapping(data.get("config"), where=f"{where}.config"),
        x=_position(data, "x", where=where),
        y=_position(data, "y", where=where),
        comments=data.get("comments"),
        variables=None if variables is None else _coerce_mapping(variables, where=f"{where}.variables"),
        required_inputs=_optional_int(data, "requiredInputs", where=where),
        wait_for_all=wait_for_all,
        timeout=_optional_int(data, "timeout", where=where),
        retry_policy=None if retry_raw is None else RetryPolicy.from_dict(retry_raw),
    )


def node_to_dict(node: Node) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": node.id,
        "label": node.label,
        "type": node.type.value,
        "x": node.x,
        "y": node.y,
        "config": dict(node.config),
    }
    if node.comments is not None:
        out["comments"] = node.comments
    if node.variables is not None:
        out["variables"] = dict(node.variables)
    if node.required_inputs is not None:
        out["requiredInputs"] = node.required_inputs
    if node.wait_for_all is not None:
        out["waitForAll"] = node.wait_for_all
    if node.timeout is not None:
        out["timeout"] = node.timeout
    if node.retry_policy is not None:
        out["retryPolicy"] = node.retry_policy.to_dict()
    return out


def edge_from_dict(data: Mapping[str, Any]) -> Edge:
    if not isinstance(data, Mapping):
        raise _format_error("edge entry must be an object", where="edges")
    source = _require_str(data, "source", where="edge")
    target = _require_str(data, "target", where="edge")
    edge_id = data.get("id") or f"{source}->{target}"
    return Edge(id=str(edge_id), source=source, target=target)


def workflow_from_dict(data: Mapping[str, Any]) -> Workflow:
    """
    Constrói um Workflow a partir do documento JSON já decodificado.

    Raises:
        WorkflowFormatError: Se a estrutura for inválida.
        UnknownNodeType: Se algum nó tiver tipo fora do catálogo.
    """
    if not isinstance(data, Mapping):
        raise _format_error("workflow document must be an object", where="root")

    nodes_raw = data.get("nodes") or []
    edges_raw = data.get("edges") or []
    if not isinstance(nodes_raw, list) or not isinstance(edges_raw, list):
        raise _format_error("nodes and edges must be arrays", where="root")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise _format_error("metadata must be an object", where="root")

    return Workflow(
        id=str(data.get("id") or uuid.uuid4()),
        name=str(data.get("name") or ""),
        description=data.get("description"),
        nodes=tuple(node_from_dict(n) for n in nodes_raw),
        edges=tuple(edge_from_dict(e) for e in edges_raw),
        metadata=dict(metadata),
    )


def workflow_to_dict(workflow: Workflow) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": workflow.id,
        "name": workflow.name,
        "nodes": [node_to_dict(n) for n in workflow.nodes],
        "edges": [{"id": e.id, "source": e.source, "target": e.target} for e in workflow.edges],
    }
    if workflow.description is not None:
        out["description"] = workflow.description
    if workflow.metadata:
        out["metadata"] = dict(workflow.metadata)
    return out


def workflow_from_json(text: str) -> Workflow:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise _format_error(f"invalid JSON: {e.msg}", where="root", line=e.lineno) from e
    return workflow_from_dict(data)


def workflow_to_json(workflow: Workflow) -> str:
    return json.dumps(workflow_to_dict(workflow), ensure_ascii=False, indent=2)


def export_workflow(workflow: Workflow, path: Union[str, Path]) -> None:
    """Grava o workflow como JSON legível (diretórios criados sob demanda)."""
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(workflow_to_json(workflow), encoding="utf-8")


def import_workflow(path: Union[str, Path]) -> Workflow:
    """
    Lê um workflow de um arquivo JSON.

    Raises:
        OSError: Em falha de leitura.
        WorkflowFormatError: Em JSON inválido ou estrutura malformada.
    """
    return workflow_from_json(Path(path).read_text(encoding="utf-8"))


def workflows_equal(a: Workflow, b: Workflow) -> bool:
    """Igualdade estrutural (mesma forma serializada)."""
    return workflow_to_dict(a) == workflow_to_dict(b)


__all__: List[str] = [
    "coerce_config_value",
    "edge_from_dict",
    "export_workflow",
    "import_workflow",
    "node_from_dict",
    "node_to_dict",
    "workflow_from_dict",
    "workflow_from_json",
    "workflow_to_dict",
    "workflow_to_json",
    "workflows_equal",
]
