# src/dagflow/core/engine/__init__.py
"""
Engine do dagflow.

Este pacote contém a implementação responsável por **validar**,
**planejar** e **executar** workflows.

Componentes principais:
    - planner   → ordenação topológica determinística (Kahn)
    - validator → checagens estruturais e `would_create_cycle`
    - executor  → execução assíncrona com concorrência limitada, retry,
                  timeout, cancelamento e agregação de entradas
    - manager   → registro de runs concorrentes (start/cancel/wait/resume)
    - progress  → canal de eventos de progresso

Princípios fundamentais:
    - Validação e execução são responsabilidades separadas
    - A ordem de despacho é determinística para o mesmo grafo
    - Toda transição de estado é observável

Invariantes:
    - Um nó só roda quando seus inputs requeridos estão satisfeitos
    - Cada nó termina no máximo uma vez por run

Limites explícitos:
    - Não define a semântica de negócio dos tipos de nó
    - Não depende de UI ou serviços externos
"""

from .executor import WorkflowExecutor, execute_workflow
from .manager import WorkflowManager
from .planner import count_sorted, topological_order
from .progress import EventRecorder, ProgressChannel, ProgressEvent
from .validator import ValidationResult, validate_workflow, would_create_cycle

__all__ = [
    "EventRecorder",
    "ProgressChannel",
    "ProgressEvent",
    "ValidationResult",
    "WorkflowExecutor",
    "WorkflowManager",
    "count_sorted",
    "execute_workflow",
    "topological_order",
    "validate_workflow",
    "would_create_cycle",
]
