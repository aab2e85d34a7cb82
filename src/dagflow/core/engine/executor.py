# src/dagflow/core/engine/executor.py
"""
Executor assíncrono de workflows.

Ajustes em relação a um engine sequencial:
- Nós independentes rodam em paralelo, limitado por `max_parallelism`.
- Cada nó passa por retry com backoff exponencial e timeout por tentativa.
- Cancelamento cooperativo com janela de tolerância (`cancel_grace_ms`).
- Falhas nunca atravessam a run: exceções de handler viram
  NodeExecutionResult com status `error` e payload estruturado.
- Dependentes de nós que falharam viram `skipped` (transitivamente).

Regras de elegibilidade de um nó com upstreams U:
- required = `required_inputs` (limitado a |U|) ou |U| quando ausente
- `wait_for_all` exige sucesso de todos os upstreams
- elegível quando #sucessos >= required; nós sem upstream são elegíveis
- insatisfazível quando `wait_for_all` e algum upstream falhou, ou
  #sucessos + #pendentes < required → `skipped` (UPSTREAM_FAILED)

Registro de inputs:
- arestas de entrada (na ordem declarada) são mapeadas posicionalmente
  para os ids de porta de entrada da NodeSpec; arestas excedentes usam o
  id do nó de origem como chave
- só upstreams com sucesso contribuem com valor
- o contexto achatado `{"<origem>.<porta>": valor}` + variáveis do nó é
  usado para interpolar `{{...}}` na config

Rastreabilidade:
- toda transição gera exatamente um ProgressEvent, um log no RunContext
  e um evento no Manifest
- com store de checkpoints configurado, grava "Workflow started",
  um checkpoint por nó terminal e "Workflow completed/cancelled"
- falha de armazenamento de checkpoint é a única falha fatal da run:
  aborta a execução e propaga CheckpointStorageError
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from copy import deepcopy
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from dagflow import __version__
from dagflow.core import errors as codes
from dagflow.core.checkpoint.store import CheckpointStore
from dagflow.core.config.hashing import compute_config_hash
from dagflow.core.config.settings import EngineSettings
from dagflow.core.errors import DagflowErrorPayload
from dagflow.core.exceptions import (
    CheckpointSerializationError,
    CheckpointStorageError,
    DagflowException,
    NodeTimeoutError,
    to_error_payload,
)
from dagflow.core.graph.interpolation import interpolate_config
from dagflow.core.graph.model import Node, RetryPolicy, Workflow
from dagflow.core.graph.serialization import workflow_to_dict
from dagflow.core.hashing import content_hash
from dagflow.core.pipeline.cancellation import CancellationToken
from dagflow.core.pipeline.context import RUN_SCOPE, RunContext
from dagflow.core.pipeline.handler import HandlerCall, HandlerFn, HandlerRegistry, is_async_handler
from dagflow.core.pipeline.types import ExecutionStatus, NodeExecutionResult, RunResult, RunStatus
from dagflow.core.registry.catalog import NodeTypeRegistry, default_registry
from dagflow.core.traceability import manifest as mf

from .planner import topological_order
from .progress import ProgressChannel


_SINGLE_ATTEMPT = RetryPolicy(max_attempts=1, backoff_multiplier=1.0, initial_delay_ms=0)

_FAILED = (ExecutionStatus.ERROR, ExecutionStatus.SKIPPED)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowExecutor:
    """
    Executor de uma única run de um workflow.

    Uma instância pertence a exatamente uma run: possui o mapa de status,
    o RunContext, o Manifest e o token de cancelamento dessa run.
    O workflow deve ter sido validado antes (ver `validate_workflow`).
    """

    def __init__(
        self,
        workflow: Workflow,
        *,
        handlers: HandlerRegistry,
        settings: Optional[EngineSettings] = None,
        registry: Optional[NodeTypeRegistry] = None,
        channel: Optional[ProgressChannel] = None,
        checkpoint_store: Optional[CheckpointStore] = None,
        config: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
        seed_results: Optional[Mapping[str, NodeExecutionResult]] = None,
    ):
        self.workflow = workflow
        self.handlers = handlers
        self.settings = settings or EngineSettings()
        self.registry = registry or default_registry()
        self.channel = channel or ProgressChannel(self.settings.progress_channel)
        self.checkpoint_store = checkpoint_store
        self.run_id = run_id or str(uuid.uuid4())
        self.token = CancellationToken()

        started = _now()
        effective_config = dict(config or self.settings.to_dict())
        self.ctx = RunContext(
            run_id=self.run_id,
            created_at=started,
            config=effective_config,
            workflow_id=workflow.id,
        )
        self.manifest = mf.create_manifest(
            run_id=self.run_id,
            workflow_id=workflow.id,
            started_at=started,
            engine_version=__version__,
            config_hash=compute_config_hash(effective_config),
            workflow_hash=content_hash(workflow_to_dict(workflow)),
        )

        self._nodes: Dict[str, Node] = {n.id: n for n in workflow.nodes}
        self._preds: Dict[str, List[str]] = {n.id: workflow.predecessors(n.id) for n in workflow.nodes}
        self._results: Dict[str, NodeExecutionResult] = {
            n.id: NodeExecutionResult(node_id=n.id) for n in workflow.nodes
        }
        self._seeded: Set[str] = set()
        for node_id, seeded in (seed_results or {}).items():
            if node_id in self._results and seeded.status == ExecutionStatus.SUCCESS:
                self._results[node_id] = seeded.copy()
                self._seeded.add(node_id)

        self._order: List[str] = []
        self._started_at = started
        self._result: Optional[RunResult] = None

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, NodeExecutionResult]:
        """Cópia do mapa de status (seguro para observadores)."""
        return {k: v.copy() for k, v in self._results.items()}

    @property
    def result(self) -> Optional[RunResult]:
        return self._result

    def cancel(self, reason: str = "Cancelled") -> None:
        self.token.cancel(reason)

    # ------------------------------------------------------------------
    # Transições
    # ------------------------------------------------------------------
    def _transition(
        self,
        node_id: str,
        status: ExecutionStatus,
        *,
        delay_ms: float = 0.0,
        **changes: Any,
    ) -> bool:
        """
        Aplica uma transição de status e publica o evento.

        Um nó já terminal nunca muda de status (ex.: um handler que
        termina depois de o nó ter sido marcado como cancelado).
        """
        current = self._results[node_id]
        if current.status.is_terminal:
            return False

        ts = _now()
        if status == ExecutionStatus.RUNNING and current.start_time is None:
            changes["start_time"] = ts.isoformat()
        if status.is_terminal:
            changes["end_time"] = ts.isoformat()
            start = current.start_time or changes.get("start_time")
            if start:
                changes["duration_ms"] = mf._ms_between(datetime.fromisoformat(start), ts)

        new = replace(current, status=status, **changes)
        self._results[node_id] = new

        node = self._nodes[node_id]
        self.ctx.log(
            node_id=node_id,
            level="error" if status == ExecutionStatus.ERROR else "info",
            message=f"{node.label} ({node.type.value}) -> {status.value}",
            status=status.value,
            attempt=new.attempts,
        )
        self._record_manifest(new, ts, delay_ms)
        self.channel.publish(run_id=self.run_id, workflow_id=self.workflow.id, result=new)
        return True

    def _record_manifest(self, result: NodeExecutionResult, ts: datetime, delay_ms: float) -> None:
        node = self._nodes[result.node_id]
        if result.status == ExecutionStatus.RUNNING:
            mf.node_started(self.manifest, node_id=node.id, node_type=node.type.value, ts=ts, attempt=result.attempts)
        elif result.status == ExecutionStatus.RETRYING:
            mf.node_retrying(
                self.manifest,
                node_id=node.id,
                ts=ts,
                attempt=result.attempts,
                error=result.error or "",
                delay_ms=delay_ms,
            )
        elif result.status == ExecutionStatus.SUCCESS:
            mf.node_finished(self.manifest, node_id=node.id, ts=ts, output_keys=list(result.output))
        elif result.status == ExecutionStatus.ERROR:
            mf.node_failed(self.manifest, node_id=node.id, ts=ts, error=result.error or "", error_type=result.error_type)
        elif result.status == ExecutionStatus.SKIPPED:
            failed = [p for p in self._preds[node.id] if self._results[p].status in _FAILED]
            mf.node_skipped(self.manifest, node_id=node.id, ts=ts, reason=result.error or "", failed_upstreams=failed)

    def _fail(self, node_id: str, payload: DagflowErrorPayload, attempts: Optional[int] = None) -> None:
        changes: Dict[str, Any] = {"error": payload.message, "error_type": payload.type}
        if attempts is not None:
            changes["attempts"] = attempts
        self._transition(node_id, ExecutionStatus.ERROR, **changes)

    # ------------------------------------------------------------------
    # Elegibilidade
    # ------------------------------------------------------------------
    def _required(self, node: Node) -> int:
        preds = self._preds[node.id]
        if node.effective_wait_for_all():
            return len(preds)
        if node.required_inputs is None:
            return len(preds)
        return min(node.required_inputs, len(preds))

    def _upstream_counts(self, node_id: str) -> Tuple[List[str], List[str], List[str]]:
        succeeded, failed, pending = [], [], []
        for p in self._preds[node_id]:
            status = self._results[p].status
            if status == ExecutionStatus.SUCCESS:
                succeeded.append(p)
            elif status in _FAILED:
                failed.append(p)
            else:
                pending.append(p)
        return succeeded, failed, pending

    def _is_eligible(self, node: Node) -> bool:
        succeeded, _, _ = self._upstream_counts(node.id)
        return len(succeeded) >= self._required(node)

    def _is_unsatisfiable(self, node: Node) -> bool:
        succeeded, failed, pending = self._upstream_counts(node.id)
        if node.effective_wait_for_all() and failed:
            return True
        return len(succeeded) + len(pending) < self._required(node)

    def _propagate_skips(self) -> List[str]:
        """Marca `skipped` os nós ociosos que nunca poderão rodar (em ordem topológica)."""
        skipped: List[str] = []
        for node_id in self._order:
            if self._results[node_id].status != ExecutionStatus.IDLE:
                continue
            node = self._nodes[node_id]
            if self._is_unsatisfiable(node):
                _, failed, _ = self._upstream_counts(node_id)
                payload = codes.upstream_failed(node_id=node_id, failed_upstreams=failed)
                self._transition(node_id, ExecutionStatus.SKIPPED, error=payload.message, error_type=payload.type)
                skipped.append(node_id)
        return skipped

    # ------------------------------------------------------------------
    # Entradas do handler
    # ------------------------------------------------------------------
    def _gather(self, node: Node) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        port_ids = self.registry.get(node.type).input_ids if self.registry.has(node.type) else []
        inputs: Dict[str, Any] = {}
        context: Dict[str, Any] = {}

        for position, edge in enumerate(self.workflow.inbound(node.id)):
            upstream = self._results.get(edge.source)
            if upstream is None or upstream.status != ExecutionStatus.SUCCESS:
                continue
            key = port_ids[position] if position < len(port_ids) else edge.source
            inputs[key] = deepcopy(upstream.output)
            for port, value in upstream.output.items():
                context[f"{edge.source}.{port}"] = deepcopy(value)

        for name, value in (node.variables or {}).items():
            context[name] = value

        return inputs, context

    # ------------------------------------------------------------------
    # Execução de um nó
    # ------------------------------------------------------------------
    async def _invoke(self, fn: HandlerFn, call: HandlerCall, timeout_ms: Optional[int]) -> Dict[str, Any]:
        async def _call() -> Any:
            if is_async_handler(fn):
                value = fn(call)
            else:
                value = await asyncio.to_thread(fn, call)
            if inspect.isawaitable(value):
                value = await value
            return value

        if not timeout_ms:
            value = await _call()
        else:
            # só o prazo do nó vira NodeTimeoutError; TimeoutError do handler é falha comum
            task = asyncio.ensure_future(_call())
            try:
                done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000.0)
            finally:
                if not task.done():
                    task.cancel()
            if task not in done:
                await asyncio.gather(task, return_exceptions=True)
                payload = codes.node_timeout(node_id=call.node.id, timeout_ms=timeout_ms, attempts=call.attempt)
                raise NodeTimeoutError(payload.message, details=payload.details, hint=payload.hint)
            value = task.result()

        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise TypeError(f"handler must return a mapping, got {type(value).__name__}")
        return dict(value)

    async def _run_node(self, node: Node) -> None:
        policy = node.retry_policy or self.settings.default_retry or _SINGLE_ATTEMPT
        timeout_ms = node.effective_timeout() or self.settings.default_timeout_ms

        fn = self.handlers.get(node.type)
        if fn is None:
            self._transition(node.id, ExecutionStatus.RUNNING, attempts=1)
            self._fail(node.id, codes.no_handler(node_id=node.id, node_type=node.type.value))
            return

        inputs, context = self._gather(node)
        config = interpolate_config(node.config, context)

        for attempt in range(1, policy.max_attempts + 1):
            if self.token.is_cancelled:
                return
            if not self._transition(node.id, ExecutionStatus.RUNNING, attempts=attempt, error=None, error_type=None):
                return

            call = HandlerCall(
                node=node,
                inputs=deepcopy(inputs),
                context=dict(context),
                config=dict(config),
                token=self.token,
                attempt=attempt,
                ctx=self.ctx,
            )
            try:
                output = await self._invoke(fn, call, timeout_ms)
            except asyncio.CancelledError:
                raise
            except DagflowException as exc:
                payload = exc.to_payload()
            except Exception as exc:
                payload = codes.handler_failed(
                    node_id=node.id,
                    attempts=attempt,
                    exception_class=exc.__class__.__name__,
                    message=str(exc) or exc.__class__.__name__,
                )
            else:
                self._transition(node.id, ExecutionStatus.SUCCESS, output=output)
                return

            if self.token.is_cancelled:
                return

            if attempt < policy.max_attempts:
                delay_ms = policy.delay_ms(attempt)
                self._transition(
                    node.id,
                    ExecutionStatus.RETRYING,
                    error=payload.message,
                    error_type=payload.type,
                    delay_ms=delay_ms,
                )
                if await self.token.sleep(delay_ms / 1000.0):
                    return
            else:
                self._fail(node.id, payload)

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------
    def _checkpoint_state(self, current_node: Optional[str]) -> Dict[str, Any]:
        context: Dict[str, Any] = {}
        for node_id, r in self._results.items():
            if r.status == ExecutionStatus.SUCCESS:
                for port, value in r.output.items():
                    context[f"{node_id}.{port}"] = value
        return {
            "workflow_id": self.workflow.id,
            "run_id": self.run_id,
            "current_node": current_node,
            "results": {k: v.to_dict() for k, v in self._results.items()},
            "context": context,
        }

    async def _checkpoint(self, message: str, current_node: Optional[str] = None) -> None:
        """
        Grava um checkpoint fora do event loop.

        O estado é capturado antes do `to_thread`, no loop; o I/O do store
        (arquivo, lock) roda em thread e não trava o despacho.
        """
        if self.checkpoint_store is None:
            return
        state = self._checkpoint_state(current_node)
        try:
            cp = await asyncio.to_thread(
                self.checkpoint_store.create_checkpoint, self.workflow.id, message, state
            )
        except CheckpointSerializationError as exc:
            self.ctx.add_warning(node_id=current_node or RUN_SCOPE, message=f"checkpoint skipped: {exc}")
            return
        self.ctx.log(node_id=current_node or RUN_SCOPE, level="info", message=message, commit_hash=cp.commit_hash)

    async def _checkpoint_terminal(self, node_id: str) -> None:
        node = self._nodes[node_id]
        status = self._results[node_id].status.value
        await self._checkpoint(f"Node completed: {node.label} ({node.type.value}) - Status: {status}", node_id)

    # ------------------------------------------------------------------
    # Loop principal
    # ------------------------------------------------------------------
    def _warn_clamped_inputs(self) -> None:
        for node in self.workflow.nodes:
            inbound = len(self._preds[node.id])
            if node.required_inputs is not None and node.required_inputs > inbound:
                self.ctx.add_warning(
                    node_id=node.id,
                    message=f"requiredInputs={node.required_inputs} clamped to {inbound} inbound edge(s)",
                )

    async def _settle_after_cancel(self, in_flight: Dict["asyncio.Task[None]", str]) -> None:
        for node_id in list(in_flight.values()):
            self._fail(node_id, codes.node_cancelled(node_id=node_id))

        if in_flight:
            grace = self.settings.cancel_grace_ms / 1000.0
            _, pending = await asyncio.wait(set(in_flight), timeout=grace)
            for task in pending:
                task.cancel()
            await asyncio.gather(*in_flight, return_exceptions=True)
        in_flight.clear()

    def _collect(self, task: "asyncio.Task[None]", node_id: str) -> None:
        if task.cancelled():
            self._fail(node_id, codes.node_cancelled(node_id=node_id))
            return
        exc = task.exception()
        if exc is not None:
            self._fail(node_id, to_error_payload(exc))
        elif not self._results[node_id].status.is_terminal:
            # _run_node só retorna sem estado terminal quando a run foi cancelada
            self._fail(node_id, codes.node_cancelled(node_id=node_id))

    async def run(self) -> RunResult:
        """
        Executa a run até todos os nós alcançáveis terminarem ou a run ser cancelada.

        Returns:
            RunResult: Resultado agregado.

        Raises:
            CycleError: Se o workflow for cíclico.
            CheckpointStorageError: Falha fatal do store de checkpoints.
        """
        self._order = topological_order(self.workflow.nodes, self.workflow.edges)
        mf.add_event(self.manifest, event_type="run_started", ts=self._started_at,
                     payload={"order": list(self._order), "seeded": sorted(self._seeded)})
        self.ctx.log(node_id=RUN_SCOPE, level="info", message=f"Workflow started: {self.workflow.name}",
                     order=list(self._order))
        self._warn_clamped_inputs()

        in_flight: Dict["asyncio.Task[None]", str] = {}
        cancel_waiter = asyncio.ensure_future(self.token.wait())

        try:
            await self._checkpoint(f"Workflow started: {self.workflow.name}")

            while not self.token.is_cancelled:
                for node_id in self._propagate_skips():
                    await self._checkpoint_terminal(node_id)

                for node_id in self._order:
                    if len(in_flight) >= self.settings.max_parallelism:
                        break
                    if node_id in in_flight.values() or self._results[node_id].status != ExecutionStatus.IDLE:
                        continue
                    node = self._nodes[node_id]
                    if self._is_eligible(node):
                        task = asyncio.ensure_future(self._run_node(node))
                        in_flight[task] = node_id

                if not in_flight:
                    break

                done, _ = await asyncio.wait(
                    set(in_flight) | {cancel_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for task in done:
                    if task is cancel_waiter:
                        continue
                    node_id = in_flight.pop(task)
                    self._collect(task, node_id)
                    if self._results[node_id].status.is_terminal:
                        await self._checkpoint_terminal(node_id)

            if self.token.is_cancelled:
                await self._settle_after_cancel(in_flight)

        except CheckpointStorageError:
            self.token.cancel("checkpoint storage failure")
            for task in in_flight:
                task.cancel()
            await asyncio.gather(*in_flight, return_exceptions=True)
            mf.run_finished(self.manifest, ts=_now(), status=RunStatus.FAILED.value)
            raise
        finally:
            if not cancel_waiter.done():
                cancel_waiter.cancel()
                await asyncio.gather(cancel_waiter, return_exceptions=True)

        if self.token.is_cancelled:
            status = RunStatus.CANCELLED
        elif any(r.status in _FAILED for r in self._results.values()):
            status = RunStatus.FAILED
        else:
            status = RunStatus.COMPLETED

        finished = _now()
        verb = "cancelled" if status == RunStatus.CANCELLED else "completed"
        await self._checkpoint(f"Workflow {verb}: {self.workflow.name}")
        self.ctx.log(node_id=RUN_SCOPE, level="info", message=f"Workflow {verb}: {self.workflow.name}",
                     status=status.value)
        mf.run_finished(self.manifest, ts=finished, status=status.value)

        self._result = RunResult(
            run_id=self.run_id,
            workflow_id=self.workflow.id,
            status=status,
            results=self.snapshot(),
            order=list(self._order),
            started_at=self._started_at.isoformat(),
            finished_at=finished.isoformat(),
        )
        return self._result


async def execute_workflow(
    workflow: Workflow,
    *,
    handlers: HandlerRegistry,
    settings: Optional[EngineSettings] = None,
    channel: Optional[ProgressChannel] = None,
    checkpoint_store: Optional[CheckpointStore] = None,
) -> RunResult:
    """Atalho: cria um executor e aguarda a run inteira."""
    executor = WorkflowExecutor(
        workflow,
        handlers=handlers,
        settings=settings,
        channel=channel,
        checkpoint_store=checkpoint_store,
    )
    return await executor.run()
