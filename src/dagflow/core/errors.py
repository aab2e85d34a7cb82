# src/dagflow/core/errors.py
"""
dagflow: Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do dagflow.
Erros são considerados artefatos de domínio e fazem parte do contrato
operacional do engine, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma correção implícita é permitida: o validador reporta, não conserta.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DagflowErrorPayload:
    """
    Payload canônico de erro do dagflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
      (ids de nós/arestas envolvidos, tentativa, etc.)
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        # o chamador deve garantir que details seja serializável
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Validação estrutural
VALIDATION_DUPLICATE_NODE = "VALIDATION_DUPLICATE_NODE"
VALIDATION_DUPLICATE_EDGE_ID = "VALIDATION_DUPLICATE_EDGE_ID"
VALIDATION_UNKNOWN_NODE_TYPE = "VALIDATION_UNKNOWN_NODE_TYPE"
VALIDATION_DANGLING_EDGE = "VALIDATION_DANGLING_EDGE"
VALIDATION_DUPLICATE_EDGE = "VALIDATION_DUPLICATE_EDGE"
VALIDATION_SELF_LOOP = "VALIDATION_SELF_LOOP"
VALIDATION_MISSING_CONFIG = "VALIDATION_MISSING_CONFIG"
VALIDATION_INVALID_POLICY = "VALIDATION_INVALID_POLICY"
VALIDATION_CYCLE = "VALIDATION_CYCLE"

# Execução (por nó): valores de `NodeExecutionResult.error_type`
EXECUTION_HANDLER_FAILED = "HANDLER_FAILED"
EXECUTION_TIMEOUT = "TIMEOUT"
EXECUTION_CANCELLED = "CANCELLED"
EXECUTION_NO_HANDLER = "NO_HANDLER"
EXECUTION_UPSTREAM_FAILED = "UPSTREAM_FAILED"

# Checkpoints
CHECKPOINT_NOT_FOUND = "CHECKPOINT_NOT_FOUND"
CHECKPOINT_SERIALIZATION = "CHECKPOINT_SERIALIZATION"
CHECKPOINT_STORAGE = "CHECKPOINT_STORAGE"

# Formato de workflow (import/export)
WORKFLOW_FORMAT_ERROR = "WORKFLOW_FORMAT_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def handler_failed(
    *,
    node_id: str,
    attempts: int,
    exception_class: str,
    message: str,
    hint: str = "Verifique a configuração do nó e o handler registrado para o seu tipo.",
) -> DagflowErrorPayload:
    return DagflowErrorPayload(
        type=EXECUTION_HANDLER_FAILED,
        message=message or exception_class,
        details={
            "node_id": node_id,
            "attempts": attempts,
            "exception_class": exception_class,
        },
        hint=hint,
    )


def node_timeout(
    *,
    node_id: str,
    timeout_ms: int,
    attempts: int,
    hint: str = "Aumente `timeout` do nó ou reduza o trabalho realizado pelo handler.",
) -> DagflowErrorPayload:
    return DagflowErrorPayload(
        type=EXECUTION_TIMEOUT,
        message=f"TimeoutError: node exceeded {timeout_ms}ms",
        details={"node_id": node_id, "timeout_ms": timeout_ms, "attempts": attempts},
        hint=hint,
    )


def node_cancelled(*, node_id: str) -> DagflowErrorPayload:
    return DagflowErrorPayload(
        type=EXECUTION_CANCELLED,
        message="Cancelled",
        details={"node_id": node_id},
        hint=None,
    )


def no_handler(*, node_id: str, node_type: str) -> DagflowErrorPayload:
    return DagflowErrorPayload(
        type=EXECUTION_NO_HANDLER,
        message=f"No executor found for node type: {node_type}",
        details={"node_id": node_id, "node_type": node_type},
        hint="Registre um handler para este tipo de nó no HandlerRegistry.",
    )


def upstream_failed(*, node_id: str, failed_upstreams: List[str]) -> DagflowErrorPayload:
    joined = ", ".join(failed_upstreams) if failed_upstreams else "<none>"
    return DagflowErrorPayload(
        type=EXECUTION_UPSTREAM_FAILED,
        message=f"skipped due to failed dependency: {joined}",
        details={"node_id": node_id, "failed_upstreams": list(failed_upstreams)},
        hint="Corrija o(s) nó(s) upstream e execute o workflow novamente.",
    )
