# src/dagflow/core/pipeline/types.py
"""
Tipos canônicos de execução do dagflow.

Este módulo define as estruturas e enums que padronizam a comunicação
entre executor, observadores de progresso, store de checkpoints e camadas
de rastreabilidade.

Componentes principais:
    - ExecutionStatus     → estados de um nó durante a run
    - NodeExecutionResult → snapshot imutável do estado de um nó
    - RunStatus           → estado final de uma run
    - RunResult           → resultado agregado de uma run

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (`to_dict`/`from_dict`)
    - Transições criam novas instâncias (dataclasses.replace), nunca mutam
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Enums possuem valores textuais canônicos
    - `error`/`error_type` só são preenchidos em `error` e `skipped`
    - `duration_ms` só existe quando `start_time` e `end_time` existem

Limites explícitos:
    - Não executa nós
    - Não decide políticas de retry, timeout ou elegibilidade

Este módulo existe para garantir consistência e clareza semântica
no estado observável de uma execução.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class ExecutionStatus(str, Enum):
    """
    Estados de um nó em uma run.

    Ciclo de vida:
        idle → running → success
        idle → running → retrying → running → ... → success | error
        idle → skipped            (dependência falhou; terminal)
        running → error           (cancelamento, timeout, falha)

    Decisões arquiteturais:
        - `skipped` é terminal e distinto de `error`: o nó nunca rodou
        - Nós não alcançados em uma run cancelada permanecem `idle`
    """

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    RETRYING = "retrying"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR, ExecutionStatus.SKIPPED)


@dataclass(frozen=True)
class NodeExecutionResult:
    """
    Snapshot imutável do estado de execução de um nó.

    Campos:
        - node_id: identificador do nó
        - status: estado atual
        - output: registro de saída produzido pelo handler
        - error: mensagem de erro (falha, timeout, cancelamento, skip)
        - error_type: código estável (`HANDLER_FAILED`, `TIMEOUT`, ...)
        - attempts: tentativas iniciadas até o momento
        - start_time / end_time: timestamps ISO-8601 UTC
        - duration_ms: duração total (inclui esperas de backoff)
    """

    node_id: str
    status: ExecutionStatus = ExecutionStatus.IDLE
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_type: Optional[str] = None
    attempts: int = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_ms: Optional[int] = None

    def copy(self) -> "NodeExecutionResult":
        """Cópia profunda, segura para entregar a observadores."""
        return NodeExecutionResult(
            node_id=self.node_id,
            status=self.status,
            output=deepcopy(self.output),
            error=self.error,
            error_type=self.error_type,
            attempts=self.attempts,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_ms=self.duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "status": self.status.value,
            "output": deepcopy(self.output),
            "error": self.error,
            "error_type": self.error_type,
            "attempts": self.attempts,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NodeExecutionResult":
        return cls(
            node_id=str(data["node_id"]),
            status=ExecutionStatus(data.get("status", "idle")),
            output=deepcopy(dict(data.get("output") or {})),
            error=data.get("error"),
            error_type=data.get("error_type"),
            attempts=int(data.get("attempts", 0) or 0),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            duration_ms=data.get("duration_ms"),
        )


class RunStatus(str, Enum):
    """Estado final de uma run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class RunResult:
    """
    Resultado agregado de uma run.

    `status` é `failed` quando ao menos um nó terminou em `error` ou
    `skipped`; `cancelled` quando a run foi cancelada; `completed` caso
    contrário. `order` é a ordem topológica usada no despacho.
    """

    run_id: str
    workflow_id: str
    status: RunStatus
    results: Dict[str, NodeExecutionResult] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    def result(self, node_id: str) -> NodeExecutionResult:
        return self.results[node_id]

    def statuses(self) -> Dict[str, ExecutionStatus]:
        return {k: v.status for k, v in self.results.items()}

    def outputs(self) -> Dict[str, Dict[str, Any]]:
        return {k: deepcopy(v.output) for k, v in self.results.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "order": list(self.order),
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "results": {k: v.to_dict() for k, v in self.results.items()},
        }
