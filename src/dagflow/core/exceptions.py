# src/dagflow/core/exceptions.py
"""
dagflow: Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do dagflow.

Objetivo:
- Permitir que validador, engine e store levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para DagflowErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Cada classe expõe um `code` estável do catálogo em `dagflow.core.errors`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional

from dagflow.core import errors as codes


@dataclass(frozen=True, eq=False)
class DagflowException(Exception):
    """Base class para exceções internas do dagflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    code: ClassVar[str] = "DAGFLOW_ERROR"

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def to_payload(self) -> codes.DagflowErrorPayload:
        return codes.DagflowErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Validação estrutural
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ValidationError(DagflowException):
    """Workflow estruturalmente inválido.

    O código específico da violação (aresta pendente, self-loop, config
    ausente, ...) vem em `details["code"]`; `code` da classe é genérico.
    """

    code: ClassVar[str] = "VALIDATION_ERROR"

    @property
    def violation(self) -> str:
        return str(self.details.get("code", self.code))


@dataclass(frozen=True, eq=False)
class CycleError(ValidationError):
    """O grafo contém ciclo; `details["nodes"]` lista os nós residuais."""

    code: ClassVar[str] = codes.VALIDATION_CYCLE


@dataclass(frozen=True, eq=False)
class UnknownNodeType(ValidationError):
    """Tag de tipo de nó fora do catálogo fechado."""

    code: ClassVar[str] = codes.VALIDATION_UNKNOWN_NODE_TYPE


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ExecutionError(DagflowException):
    """Falha de execução de um nó.

    Nunca atravessa a fronteira de uma run: é convertida em
    NodeExecutionResult com status `error`.
    """

    code: ClassVar[str] = codes.EXECUTION_HANDLER_FAILED


@dataclass(frozen=True, eq=False)
class NodeTimeoutError(ExecutionError):
    code: ClassVar[str] = codes.EXECUTION_TIMEOUT


@dataclass(frozen=True, eq=False)
class NodeCancelledError(ExecutionError):
    code: ClassVar[str] = codes.EXECUTION_CANCELLED


@dataclass(frozen=True, eq=False)
class HandlerNotFoundError(ExecutionError):
    code: ClassVar[str] = codes.EXECUTION_NO_HANDLER


# ---------------------------------------------------------------------------
# Checkpoints
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class CheckpointError(DagflowException):
    code: ClassVar[str] = "CHECKPOINT_ERROR"


@dataclass(frozen=True, eq=False)
class CheckpointNotFound(CheckpointError):
    """Hash desconhecido para o workflow informado."""

    code: ClassVar[str] = codes.CHECKPOINT_NOT_FOUND


@dataclass(frozen=True, eq=False)
class CheckpointSerializationError(CheckpointError):
    """Estado não serializável em JSON canônico."""

    code: ClassVar[str] = codes.CHECKPOINT_SERIALIZATION


@dataclass(frozen=True, eq=False)
class CheckpointStorageError(CheckpointError):
    """Falha de I/O do backend. Dentro de uma run é fatal e aborta a execução."""

    code: ClassVar[str] = codes.CHECKPOINT_STORAGE


# ---------------------------------------------------------------------------
# Superfície de comandos
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class WorkflowFormatError(DagflowException):
    """Documento JSON de workflow malformado (import)."""

    code: ClassVar[str] = codes.WORKFLOW_FORMAT_ERROR


@dataclass(frozen=True, eq=False)
class RunNotFoundError(DagflowException):
    code: ClassVar[str] = "RUN_NOT_FOUND"


def to_error_payload(exc: BaseException) -> codes.DagflowErrorPayload:
    """Converte exceções em DagflowErrorPayload (serializável, acionável).

    Regras:
    - DagflowException: já vem com message/details/hint.
    - Outras exceções: encapsular como HANDLER_FAILED sem expor stack trace.
    """
    if isinstance(exc, DagflowException):
        return exc.to_payload()

    return codes.DagflowErrorPayload(
        type=codes.EXECUTION_HANDLER_FAILED,
        message=str(exc) or exc.__class__.__name__,
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique o log da run e a configuração do nó",
    )
