# src/dagflow/core/checkpoint/models.py
"""Entrada imutável do log de checkpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


INITIAL_COMMIT_MESSAGE = "Initial commit: Workflow repository initialized"


@dataclass(frozen=True)
class Checkpoint:
    """
    Metadados de um checkpoint.

    - commit_hash: SHA-256 do conteúdo (metadados + pai + estado)
    - message: descrição livre
    - timestamp: ISO-8601 UTC
    - workflow_id: workflow ao qual pertence
    - parent_hash: checkpoint anterior do mesmo workflow (None no primeiro)
    """

    commit_hash: str
    message: str
    timestamp: str
    workflow_id: str
    parent_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commit_hash": self.commit_hash,
            "message": self.message,
            "timestamp": self.timestamp,
            "workflow_id": self.workflow_id,
            "parent_hash": self.parent_hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Checkpoint":
        return cls(
            commit_hash=str(data["commit_hash"]),
            message=str(data["message"]),
            timestamp=str(data["timestamp"]),
            workflow_id=str(data["workflow_id"]),
            parent_hash=data.get("parent_hash"),
        )
