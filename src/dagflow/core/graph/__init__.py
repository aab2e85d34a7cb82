# src/dagflow/core/graph/__init__.py
"""
Modelo de grafo do dagflow.

- **model**: `NodeType`, `RetryPolicy`, `Node`, `Edge`, `Workflow`
- **interpolation**: placeholders `{{nome}}` em valores de config
- **serialization**: documento JSON camelCase, import/export em arquivo
"""

from .model import Edge, Node, NodeType, RetryPolicy, Workflow
from .interpolation import interpolate, interpolate_config
from .serialization import (
    export_workflow,
    import_workflow,
    workflow_from_dict,
    workflow_from_json,
    workflow_to_dict,
    workflow_to_json,
)

__all__ = [
    "Edge",
    "Node",
    "NodeType",
    "RetryPolicy",
    "Workflow",
    "export_workflow",
    "import_workflow",
    "interpolate",
    "interpolate_config",
    "workflow_from_dict",
    "workflow_from_json",
    "workflow_to_dict",
    "workflow_to_json",
]
