# src/dagflow/service.py
"""
Superfície de comandos do dagflow.

`WorkflowService` é a fachada usada por uma UI ou por uma aplicação
hospedeira: cada método corresponde a um comando (validar, ordenar,
executar, cancelar, importar/exportar, checkpoints, progresso).

Decisões arquiteturais:
    - Um único ProgressChannel por serviço, compartilhado por todas as runs
    - Store de checkpoints opcional; sem store, os comandos de checkpoint
      usam um store em memória criado sob demanda, que não é repassado
      ao manager (runs só gravam checkpoints com store configurado)
    - Workflows executados ou importados ficam indexados por id, para
      que `resume_workflow` aceite apenas o id

Limites explícitos:
    - Não expõe transporte (HTTP, IPC); isso é papel da aplicação hospedeira
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dagflow.core.checkpoint import Checkpoint, CheckpointStore, InMemoryCheckpointStore, store_from_root
from dagflow.core.config.loader import load_config
from dagflow.core.config.settings import EngineSettings
from dagflow.core.engine.manager import WorkflowManager
from dagflow.core.engine.planner import topological_order
from dagflow.core.engine.progress import ProgressCallback, ProgressChannel, Subscription
from dagflow.core.engine.validator import ValidationResult, validate_workflow
from dagflow.core.graph.model import Workflow
from dagflow.core.graph.serialization import export_workflow as _export
from dagflow.core.graph.serialization import import_workflow as _import
from dagflow.core.pipeline.handler import HandlerRegistry
from dagflow.core.pipeline.types import NodeExecutionResult, RunResult
from dagflow.core.registry.catalog import NodeTypeRegistry, default_registry
from dagflow.handlers import default_handlers
from dagflow.report.run_report import build_run_report, generate_run_report_md


class WorkflowService:
    def __init__(
        self,
        *,
        handlers: Optional[HandlerRegistry] = None,
        settings: Optional[EngineSettings] = None,
        registry: Optional[NodeTypeRegistry] = None,
        checkpoint_store: Optional[CheckpointStore] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.settings = settings or EngineSettings()
        self.registry = registry or default_registry()
        self.handlers = handlers if handlers is not None else default_handlers()
        self.channel = ProgressChannel(self.settings.progress_channel)
        self.checkpoint_store = checkpoint_store
        self.manager = WorkflowManager(
            handlers=self.handlers,
            settings=self.settings,
            registry=self.registry,
            channel=self.channel,
            checkpoint_store=checkpoint_store,
            config=config,
        )
        self._workflows: Dict[str, Workflow] = {}

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict[str, Any]] = None,
        *,
        handlers: Optional[HandlerRegistry] = None,
    ) -> "WorkflowService":
        """
        Monta o serviço a partir da configuração efetiva.

        Com `checkpoint.enabled`, usa store em arquivo (`checkpoint.root_dir`)
        ou em memória quando `root_dir` é null.

        Raises:
            InvalidConfigValueError: Configuração fora do domínio.
        """
        settings = EngineSettings.from_config(config)
        store = store_from_root(settings.checkpoint_root_dir) if settings.checkpoint_enabled else None
        return cls(handlers=handlers, settings=settings, checkpoint_store=store, config=config)

    @classmethod
    def from_files(
        cls,
        *,
        defaults_path: Path,
        local_path: Optional[Path] = None,
        handlers: Optional[HandlerRegistry] = None,
    ) -> "WorkflowService":
        return cls.from_config(load_config(defaults_path=defaults_path, local_path=local_path), handlers=handlers)

    def _store(self) -> CheckpointStore:
        # o store criado aqui serve só aos comandos; runs continuam sem checkpoints
        if self.checkpoint_store is None:
            self.checkpoint_store = InMemoryCheckpointStore()
        return self.checkpoint_store

    def _remember(self, workflow: Workflow) -> Workflow:
        self._workflows[workflow.id] = workflow
        return workflow

    # ------------------------------------------------------------------
    # Estrutura
    # ------------------------------------------------------------------
    def validate_workflow(self, workflow: Workflow) -> ValidationResult:
        return validate_workflow(workflow, self.registry)

    def get_execution_order(self, workflow: Workflow) -> List[str]:
        return topological_order(workflow.nodes, workflow.edges)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    async def execute_workflow(self, workflow: Workflow) -> str:
        """Valida e inicia uma run; devolve o run_id sem aguardar o término."""
        run_id = await self.manager.start(workflow)
        self._remember(workflow)
        return run_id

    def is_workflow_running(self, run_id: str) -> bool:
        return self.manager.is_running(run_id)

    async def cancel_workflow(self, run_id: str) -> bool:
        return await self.manager.cancel(run_id)

    async def wait_for_run(self, run_id: str) -> RunResult:
        return await self.manager.wait(run_id)

    def get_run_snapshot(self, run_id: str) -> Dict[str, NodeExecutionResult]:
        return self.manager.snapshot(run_id)

    async def resume_workflow(self, workflow: Union[Workflow, str], commit_hash: str) -> str:
        """
        Retoma a partir de um checkpoint: nós com sucesso não rodam de novo.

        Raises:
            KeyError: id de workflow desconhecido para este serviço.
            CheckpointNotFound: hash inexistente.
        """
        if isinstance(workflow, str):
            if workflow not in self._workflows:
                raise KeyError(f"Unknown workflow: {workflow}")
            workflow = self._workflows[workflow]
        return await self.manager.resume(self._remember(workflow), commit_hash, store=self._store())

    def render_run_report(self, run_id: str) -> str:
        """
        Markdown da run concluída.

        Raises:
            RunNotFoundError: run desconhecida.
            RuntimeError: run ainda em andamento.
        """
        executor = self.manager.executor(run_id)
        if executor.result is None:
            raise RuntimeError(f"Run still in progress: {run_id}")
        report = build_run_report(executor.result, workflow=executor.workflow, manifest=executor.manifest)
        return generate_run_report_md(report)

    def subscribe(self, callback: ProgressCallback) -> Subscription:
        return self.channel.subscribe(callback)

    # ------------------------------------------------------------------
    # Arquivos
    # ------------------------------------------------------------------
    def export_workflow(self, workflow: Workflow, destination_path: Union[str, Path]) -> None:
        _export(workflow, destination_path)

    def import_workflow(self, source_path: Union[str, Path]) -> Workflow:
        return self._remember(_import(source_path))

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------
    def init_workflow_checkpoint(self, workflow_id: str) -> Checkpoint:
        return self._store().init_workflow(workflow_id)

    def create_checkpoint(self, workflow_id: str, message: str, serialized_state: Any) -> Checkpoint:
        return self._store().create_checkpoint(workflow_id, message, serialized_state)

    def get_checkpoint_history(self, workflow_id: str) -> List[Checkpoint]:
        return self._store().get_history(workflow_id)

    def get_checkpoint_state(self, workflow_id: str, commit_hash: str) -> Any:
        return self._store().get_state(workflow_id, commit_hash)

    async def shutdown(self) -> None:
        await self.manager.shutdown()
