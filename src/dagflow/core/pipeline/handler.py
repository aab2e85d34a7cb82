# src/dagflow/core/pipeline/handler.py
"""
Contrato de handlers de nó e registry por tipo.

Um handler é a unidade de trabalho opaca associada a um `NodeType`.
O executor não conhece a semântica de negócio de nenhum tipo: apenas
resolve o handler pelo tipo do nó e o invoca com um `HandlerCall`.

Contrato mínimo (duck typing):
    - objeto com método `run(call)`, ou
    - callable `fn(call)`
    - o retorno é o registro de saída (`dict`), ou um awaitable que
      resolve para ele; `None` equivale a `{}`

Decisões arquiteturais:
    - Handlers `async` são aguardados no event loop
    - Handlers síncronos rodam em thread (`asyncio.to_thread`) para que I/O
      bloqueante não trave o scheduler
    - Exceções levantadas pelo handler contam como tentativa falha

Invariantes:
    - No máximo um handler por `NodeType` no registry
    - O `HandlerCall` é imutável; `inputs`/`context` são cópias da run

Limites explícitos:
    - Não aplica retry, timeout nem cancelamento (papel do executor)
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from dagflow.core.graph.model import Node, NodeType

from .cancellation import CancellationToken
from .context import RunContext


@dataclass(frozen=True)
class HandlerCall:
    """
    Entrada entregue a um handler em uma tentativa.

    Campos:
        - node: nó sendo executado
        - inputs: registro de entrada `{porta: saída do upstream}`
        - context: contexto achatado `{"<nó>.<porta>": valor}` + variáveis do nó
        - config: config do nó já interpolada contra `context`
        - token: token de cancelamento da run
        - attempt: número da tentativa (1-based)
        - ctx: contexto da run (logs e warnings)
    """

    node: Node
    inputs: Dict[str, Any]
    context: Dict[str, Any]
    config: Dict[str, str]
    token: CancellationToken
    attempt: int = 1
    ctx: Optional[RunContext] = field(default=None, repr=False)

    def log(self, level: str, message: str, **extra: Any) -> None:
        if self.ctx is not None:
            self.ctx.log(node_id=self.node.id, level=level, message=message, attempt=self.attempt, **extra)


HandlerFn = Callable[[HandlerCall], Union[Mapping[str, Any], None, Awaitable[Any]]]


def resolve_callable(handler: Any) -> HandlerFn:
    """Normaliza um handler (objeto com `run` ou callable) para um callable."""
    run = getattr(handler, "run", None)
    if callable(run):
        return run
    if callable(handler):
        return handler
    raise TypeError(f"handler must be callable or expose run(call): {handler!r}")


def is_async_handler(fn: HandlerFn) -> bool:
    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, "__call__", None)
    return inspect.iscoroutinefunction(call)


class HandlerRegistry:
    """Mapa `NodeType → handler`, com registro explícito."""

    def __init__(self, handlers: Optional[Mapping[Union[NodeType, str], Any]] = None):
        self._handlers: Dict[NodeType, HandlerFn] = {}
        for node_type, handler in (handlers or {}).items():
            self.register(node_type, handler)

    def register(self, node_type: Union[NodeType, str], handler: Any, *, replace: bool = False) -> None:
        key = NodeType.parse(node_type)
        if key in self._handlers and not replace:
            raise ValueError(f"handler already registered for node type: {key.value}")
        self._handlers[key] = resolve_callable(handler)

    def unregister(self, node_type: Union[NodeType, str]) -> None:
        self._handlers.pop(NodeType.parse(node_type), None)

    def get(self, node_type: Union[NodeType, str]) -> Optional[HandlerFn]:
        return self._handlers.get(NodeType.parse(node_type))

    def has(self, node_type: Union[NodeType, str]) -> bool:
        return NodeType.parse(node_type) in self._handlers

    def list_types(self) -> List[NodeType]:
        return list(self._handlers)
