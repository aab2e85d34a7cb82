# src/dagflow/core/engine/manager.py
"""
Gerenciador de runs concorrentes.

Cada chamada a `start()` valida o workflow, cria um `WorkflowExecutor`
e agenda sua execução como task asyncio, devolvendo um run_id novo.
O manager mantém o registro `run_id → task/executor` para consultas,
cancelamento e obtenção do resultado.

Decisões arquiteturais:
    - Validação acontece antes de qualquer run: workflow inválido nunca
      recebe run_id
    - `cancel()` aguarda o término da run; ao retornar, `is_running()`
      já é False
    - Uma run abortada por falha fatal (CheckpointStorageError) fica
      registrada; `wait()` repropaga a exceção
    - Resume: nós com sucesso em um checkpoint são semeados e não rodam
      de novo

Limites explícitos:
    - Não persiste o registro de runs entre processos
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from dagflow.core.checkpoint.store import CheckpointStore
from dagflow.core.config.settings import EngineSettings
from dagflow.core.exceptions import RunNotFoundError
from dagflow.core.graph.model import Workflow
from dagflow.core.pipeline.context import RUN_SCOPE
from dagflow.core.pipeline.handler import HandlerRegistry
from dagflow.core.pipeline.types import ExecutionStatus, NodeExecutionResult, RunResult
from dagflow.core.registry.catalog import NodeTypeRegistry, default_registry

from .executor import WorkflowExecutor
from .progress import ProgressChannel
from .validator import validate_workflow


@dataclass
class _RunHandle:
    executor: WorkflowExecutor
    task: "asyncio.Task[RunResult]"


def seed_from_checkpoint_state(state: Any) -> Dict[str, NodeExecutionResult]:
    """Extrai os resultados com sucesso gravados pelo executor em um checkpoint."""
    if not isinstance(state, Mapping):
        return {}
    results = state.get("results") or {}
    if not isinstance(results, Mapping):
        return {}
    seeded: Dict[str, NodeExecutionResult] = {}
    for node_id, raw in results.items():
        if not isinstance(raw, Mapping):
            continue
        result = NodeExecutionResult.from_dict(raw)
        if result.status == ExecutionStatus.SUCCESS:
            seeded[str(node_id)] = result
    return seeded


class WorkflowManager:
    def __init__(
        self,
        *,
        handlers: HandlerRegistry,
        settings: Optional[EngineSettings] = None,
        registry: Optional[NodeTypeRegistry] = None,
        channel: Optional[ProgressChannel] = None,
        checkpoint_store: Optional[CheckpointStore] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.handlers = handlers
        self.settings = settings or EngineSettings()
        self.registry = registry or default_registry()
        self.channel = channel or ProgressChannel(self.settings.progress_channel)
        self.checkpoint_store = checkpoint_store
        self.config = config
        self._runs: Dict[str, _RunHandle] = {}

    def _handle(self, run_id: str) -> _RunHandle:
        handle = self._runs.get(run_id)
        if handle is None:
            raise RunNotFoundError(f"Unknown run: {run_id}", details={"run_id": run_id})
        return handle

    async def start(
        self,
        workflow: Workflow,
        *,
        seed_results: Optional[Mapping[str, NodeExecutionResult]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Valida e agenda uma run.

        Returns:
            str: run_id (UUID) da nova run.

        Raises:
            ValidationError: Workflow inválido (nenhuma run é criada).
        """
        validation = validate_workflow(workflow, self.registry)

        executor = WorkflowExecutor(
            workflow,
            handlers=self.handlers,
            settings=self.settings,
            registry=self.registry,
            channel=self.channel,
            checkpoint_store=self.checkpoint_store,
            config=self.config,
            seed_results=seed_results,
        )
        executor.ctx.meta.update(meta or {})
        for warning in validation.warnings:
            executor.ctx.log(node_id=RUN_SCOPE, level="warning", message=warning)

        task = asyncio.ensure_future(executor.run())
        self._runs[executor.run_id] = _RunHandle(executor=executor, task=task)
        return executor.run_id

    async def resume(
        self,
        workflow: Workflow,
        commit_hash: str,
        *,
        store: Optional[CheckpointStore] = None,
    ) -> str:
        """
        Inicia uma run semeada com os nós bem-sucedidos de um checkpoint.

        `store` indica de onde ler o checkpoint; por padrão, o store do manager.
        A run retomada grava checkpoints apenas no store do manager.

        Raises:
            CheckpointNotFound: hash desconhecido.
            ValueError: nenhum store disponível.
        """
        source = store if store is not None else self.checkpoint_store
        if source is None:
            raise ValueError("resume requires a checkpoint store")
        state = source.get_state(workflow.id, commit_hash)
        return await self.start(
            workflow,
            seed_results=seed_from_checkpoint_state(state),
            meta={"resumed_from": commit_hash},
        )

    def is_running(self, run_id: str) -> bool:
        handle = self._runs.get(run_id)
        return handle is not None and not handle.task.done()

    async def cancel(self, run_id: str) -> bool:
        """
        Cancela uma run e aguarda seu término.

        Returns:
            bool: True se a run estava ativa e foi cancelada.
        """
        handle = self._runs.get(run_id)
        if handle is None or handle.task.done():
            return False
        handle.executor.cancel()
        await asyncio.gather(handle.task, return_exceptions=True)
        return True

    async def wait(self, run_id: str) -> RunResult:
        """Aguarda a run e devolve o resultado (repropaga falha fatal)."""
        handle = self._handle(run_id)
        return await asyncio.shield(handle.task)

    def snapshot(self, run_id: str) -> Dict[str, NodeExecutionResult]:
        return self._handle(run_id).executor.snapshot()

    def executor(self, run_id: str) -> WorkflowExecutor:
        return self._handle(run_id).executor

    def run_ids(self, *, active_only: bool = False) -> List[str]:
        return [rid for rid, h in self._runs.items() if not active_only or not h.task.done()]

    async def shutdown(self) -> None:
        """Cancela todas as runs ativas."""
        for run_id in self.run_ids(active_only=True):
            await self.cancel(run_id)
