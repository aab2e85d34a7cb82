# src/dagflow/core/checkpoint/__init__.py
"""Log de checkpoints append-only, endereçado por conteúdo."""

from typing import Optional

from .models import INITIAL_COMMIT_MESSAGE, Checkpoint
from .store import CheckpointStore, FileCheckpointStore, InMemoryCheckpointStore


def store_from_root(root_dir: Optional[str]) -> CheckpointStore:
    """Store em arquivo quando `root_dir` é informado; em memória caso contrário."""
    if root_dir:
        return FileCheckpointStore(root_dir)
    return InMemoryCheckpointStore()


__all__ = [
    "INITIAL_COMMIT_MESSAGE",
    "Checkpoint",
    "CheckpointStore",
    "FileCheckpointStore",
    "InMemoryCheckpointStore",
    "store_from_root",
]
