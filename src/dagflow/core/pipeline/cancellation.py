# src/dagflow/core/pipeline/cancellation.py
"""
Token de cancelamento cooperativo.

Um `CancellationToken` é criado por run e repassado a cada handler.
Handlers assíncronos podem aguardar `wait()` ou consultar
`is_cancelled`; handlers síncronos (executados em thread) consultam
`is_cancelled` ou chamam `raise_if_cancelled()`.

Decisões arquiteturais:
    - A flag é um `threading.Event`, legível de qualquer thread
    - Esperas assíncronas são acordadas via `call_soon_threadsafe`
    - Cancelar é idempotente; a primeira razão prevalece
"""

from __future__ import annotations

import asyncio
import threading
from typing import List, Optional, Tuple

from dagflow.core.exceptions import NodeCancelledError


class CancellationToken:
    def __init__(self) -> None:
        self._flag = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, asyncio.Event]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._flag.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "Cancelled") -> None:
        with self._lock:
            if self._flag.is_set():
                return
            self._reason = reason
            self._flag.set()
            waiters, self._waiters = self._waiters, []
        for loop, event in waiters:
            if not loop.is_closed():
                loop.call_soon_threadsafe(event.set)

    async def wait(self) -> None:
        """Suspende até o token ser cancelado."""
        if self._flag.is_set():
            return
        event = asyncio.Event()
        entry = (asyncio.get_running_loop(), event)
        with self._lock:
            if self._flag.is_set():
                return
            self._waiters.append(entry)
        try:
            await event.wait()
        finally:
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)

    async def sleep(self, seconds: float) -> bool:
        """
        Dorme `seconds`, acordando antes se o token for cancelado.

        Returns:
            bool: True se o sono terminou por cancelamento.
        """
        if seconds <= 0:
            return self.is_cancelled
        try:
            await asyncio.wait_for(self.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def raise_if_cancelled(self, *, node_id: Optional[str] = None) -> None:
        if self._flag.is_set():
            raise NodeCancelledError(
                self._reason or "Cancelled",
                details={"node_id": node_id} if node_id else {},
            )
