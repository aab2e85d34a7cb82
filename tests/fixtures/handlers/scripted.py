# tests/fixtures/handlers/scripted.py
"""
Handler assíncrono dirigido pela config do nó.

Chaves reconhecidas na config (todas strings, como no documento):
    - result:     valor devolvido em `{"result": ...}` (padrão: id do nó)
    - sleep_ms:   espera antes de responder
    - fail:       "true" → toda tentativa falha
    - fail_times: quantidade de tentativas iniciais que falham
    - error:      mensagem da exceção levantada

O handler registra chamadas, inputs recebidos e o pico de concorrência,
para que os testes possam inspecionar o comportamento do executor.
"""

import asyncio
import time
from typing import Any, Dict, List, Tuple


class ScriptedHandler:
    def __init__(self):
        self.calls: List[Tuple[str, int, float]] = []
        self.inputs: Dict[str, Dict[str, Any]] = {}
        self.configs: Dict[str, Dict[str, str]] = {}
        self.active = 0
        self.max_active = 0

    def attempts(self, node_id: str) -> List[float]:
        return [ts for nid, _, ts in self.calls if nid == node_id]

    def called(self, node_id: str) -> bool:
        return any(nid == node_id for nid, _, _ in self.calls)

    async def run(self, call):
        cfg = call.config
        self.calls.append((call.node.id, call.attempt, time.monotonic()))
        self.inputs[call.node.id] = call.inputs
        self.configs[call.node.id] = cfg
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            sleep_ms = float(cfg.get("sleep_ms") or 0)
            if sleep_ms:
                await asyncio.sleep(sleep_ms / 1000.0)
            fail_times = int(cfg.get("fail_times") or 0)
            if cfg.get("fail") == "true" or call.attempt <= fail_times:
                raise RuntimeError(cfg.get("error") or f"{call.node.id} failed")
            return {"result": cfg.get("result", call.node.id)}
        finally:
            self.active -= 1
