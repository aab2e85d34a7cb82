# src/dagflow/core/engine/progress.py
"""
Canal de progresso de execução ("workflow-progress").

O executor publica um `ProgressEvent` a cada transição de status de um
nó. Observadores assinam o canal com um callback; quem assina depois
não recebe eventos anteriores.

Decisões arquiteturais:
    - Entrega síncrona, no event loop, na ordem de publicação
    - Cada evento carrega uma cópia do NodeExecutionResult
    - Um assinante que levanta exceção nunca interrompe a run: a falha é
      registrada em `delivery_errors` (best-effort), que guarda só as
      MAX_DELIVERY_ERRORS mais recentes
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from dagflow.core.config.settings import DEFAULT_PROGRESS_CHANNEL
from dagflow.core.pipeline.types import NodeExecutionResult

MAX_DELIVERY_ERRORS = 100


@dataclass(frozen=True)
class ProgressEvent:
    channel: str
    run_id: str
    workflow_id: str
    result: NodeExecutionResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel": self.channel,
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "result": self.result.to_dict(),
        }


ProgressCallback = Callable[[ProgressEvent], Any]


class Subscription:
    def __init__(self, channel: "ProgressChannel", callback: ProgressCallback):
        self._channel = channel
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._channel._remove(self)


class ProgressChannel:
    """Canal push de eventos de progresso."""

    def __init__(self, name: str = DEFAULT_PROGRESS_CHANNEL, *, max_delivery_errors: int = MAX_DELIVERY_ERRORS):
        self.name = name
        self._subs: List[Subscription] = []
        self._lock = threading.Lock()
        self.delivery_errors: Deque[Dict[str, Any]] = deque(maxlen=max_delivery_errors)

    def subscribe(self, callback: ProgressCallback) -> Subscription:
        sub = Subscription(self, callback)
        with self._lock:
            self._subs.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def publish(self, *, run_id: str, workflow_id: str, result: NodeExecutionResult) -> ProgressEvent:
        event = ProgressEvent(channel=self.name, run_id=run_id, workflow_id=workflow_id, result=result.copy())
        with self._lock:
            subs = list(self._subs)
        for sub in subs:
            try:
                sub.callback(event)
            except Exception as exc:
                self.delivery_errors.append(
                    {
                        "run_id": run_id,
                        "node_id": result.node_id,
                        "status": result.status.value,
                        "exception_class": exc.__class__.__name__,
                        "message": str(exc),
                    }
                )
        return event


class EventRecorder:
    """Assinante que acumula eventos em memória (útil para inspeção e testes)."""

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id
        self.events: List[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        if self.run_id is None or event.run_id == self.run_id:
            self.events.append(event)

    def statuses(self, node_id: str) -> List[str]:
        return [e.result.status.value for e in self.events if e.result.node_id == node_id]
