# src/dagflow/core/pipeline/__init__.py
"""
# Pipeline Core (dagflow)

Este pacote define os **contratos canônicos** entre o executor e as
unidades de trabalho associadas aos tipos de nó.

## Componentes

- **types**
  - `ExecutionStatus`: estados de um nó durante a run
  - `NodeExecutionResult`: snapshot imutável do estado de um nó
  - `RunStatus` / `RunResult`: resultado agregado da run

- **handler**
  - `HandlerCall`: entrada de uma tentativa de execução
  - `HandlerRegistry`: handlers por `NodeType`

- **context**
  - `RunContext`: logs estruturados e warnings da run

- **cancellation**
  - `CancellationToken`: cancelamento cooperativo

## Princípios Fundamentais

- Handlers **não conhecem** o executor nem o scheduler
- Handlers **não controlam** ordem de execução
- Dados fluem apenas por arestas (registro de inputs) e config interpolada

## Limites Explícitos

- Não planeja nem executa workflows
- Não contém semântica de negócio de tipos de nó
"""

from .cancellation import CancellationToken
from .context import RunContext
from .handler import HandlerCall, HandlerRegistry
from .types import ExecutionStatus, NodeExecutionResult, RunResult, RunStatus

__all__ = [
    "CancellationToken",
    "ExecutionStatus",
    "HandlerCall",
    "HandlerRegistry",
    "NodeExecutionResult",
    "RunContext",
    "RunResult",
    "RunStatus",
]
