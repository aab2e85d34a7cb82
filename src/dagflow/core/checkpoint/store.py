# src/dagflow/core/checkpoint/store.py
"""
Store de checkpoints endereçado por conteúdo (append-only).

Cada workflow possui um log linear de checkpoints. Cada entrada guarda
um estado JSON arbitrário e é identificada pelo SHA-256 do JSON canônico
de `{workflow_id, message, timestamp, parent_hash, state}`.

Backends (v1):
- InMemoryCheckpointStore: dicionários em memória (testes, runs efêmeras)
- FileCheckpointStore: diretório por workflow

      <root>/<workflow>/history.jsonl        uma linha JSON por checkpoint
      <root>/<workflow>/objects/<hash>.json  estado serializado

Decisões:
- Entradas anteriores nunca são reescritas
- Appends concorrentes são serializados por lock (ordem total por workflow)
- O estado é guardado como JSON: a leitura devolve um valor estruturalmente
  igual ao gravado (tuplas voltam como listas)
- Estado não serializável → CheckpointSerializationError
- Falha de I/O ou arquivo corrompido → CheckpointStorageError

Limites explícitos:
- Não há branches, merge ou remoção de checkpoints
"""

from __future__ import annotations

import json
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dagflow.core.errors import CHECKPOINT_NOT_FOUND, CHECKPOINT_SERIALIZATION, CHECKPOINT_STORAGE
from dagflow.core.exceptions import (
    CheckpointNotFound,
    CheckpointSerializationError,
    CheckpointStorageError,
)
from dagflow.core.hashing import canonical_json, content_hash, sha256_hex

from .models import INITIAL_COMMIT_MESSAGE, Checkpoint


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _serialize_state(workflow_id: str, state: Any) -> str:
    try:
        return canonical_json(state)
    except (TypeError, ValueError) as e:
        raise CheckpointSerializationError(
            f"Checkpoint state is not JSON-serializable: {e}",
            details={"code": CHECKPOINT_SERIALIZATION, "workflow_id": workflow_id},
            hint="Use apenas dict/list/str/number/bool/None no estado do checkpoint.",
        ) from e


class CheckpointStore:
    """
    Comportamento comum dos backends.

    Subclasses implementam `_load_history`, `_load_state_text` e
    `_append`; hashing, encadeamento e locking vivem aqui.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    # -----------------------------
    # Primitivas de backend
    # -----------------------------
    def _load_history(self, workflow_id: str) -> List[Checkpoint]:
        raise NotImplementedError

    def _load_state_text(self, workflow_id: str, commit_hash: str) -> Optional[str]:
        raise NotImplementedError

    def _append(self, checkpoint: Checkpoint, state_text: str) -> None:
        raise NotImplementedError

    # -----------------------------
    # API pública
    # -----------------------------
    def create_checkpoint(self, workflow_id: str, message: str, serialized_state: Any) -> Checkpoint:
        """
        Acrescenta um checkpoint ao log do workflow.

        Raises:
            CheckpointSerializationError: estado não serializável.
            CheckpointStorageError: falha do backend.
        """
        state_text = _serialize_state(workflow_id, serialized_state)
        with self._lock:
            history = self._load_history(workflow_id)
            parent = history[-1].commit_hash if history else None
            timestamp = _utc_now_iso()
            commit_hash = content_hash(
                {
                    "workflow_id": workflow_id,
                    "message": message,
                    "timestamp": timestamp,
                    "parent_hash": parent,
                    "state": json.loads(state_text),
                }
            )
            checkpoint = Checkpoint(
                commit_hash=commit_hash,
                message=message,
                timestamp=timestamp,
                workflow_id=workflow_id,
                parent_hash=parent,
            )
            self._append(checkpoint, state_text)
        return checkpoint

    def init_workflow(self, workflow_id: str) -> Checkpoint:
        """Cria o commit inicial; idempotente (devolve o primeiro se já existir)."""
        history = self.get_history(workflow_id)
        if history:
            return history[0]
        return self.create_checkpoint(workflow_id, INITIAL_COMMIT_MESSAGE, {})

    def get_history(self, workflow_id: str) -> List[Checkpoint]:
        """Checkpoints do workflow, do mais antigo ao mais recente."""
        with self._lock:
            return list(self._load_history(workflow_id))

    def latest(self, workflow_id: str) -> Optional[Checkpoint]:
        history = self.get_history(workflow_id)
        return history[-1] if history else None

    def get_checkpoint(self, workflow_id: str, commit_hash: str) -> Checkpoint:
        for cp in self.get_history(workflow_id):
            if cp.commit_hash == commit_hash:
                return cp
        raise self._not_found(workflow_id, commit_hash)

    def get_state(self, workflow_id: str, commit_hash: str) -> Any:
        """
        Estado gravado em um checkpoint.

        Raises:
            CheckpointNotFound: hash desconhecido para o workflow.
            CheckpointStorageError: estado ilegível.
        """
        with self._lock:
            text = self._load_state_text(workflow_id, commit_hash)
        if text is None:
            raise self._not_found(workflow_id, commit_hash)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CheckpointStorageError(
                f"Corrupted checkpoint state: {commit_hash}",
                details={"code": CHECKPOINT_STORAGE, "workflow_id": workflow_id, "commit_hash": commit_hash},
            ) from e

    @staticmethod
    def _not_found(workflow_id: str, commit_hash: str) -> CheckpointNotFound:
        return CheckpointNotFound(
            f"Checkpoint not found: {commit_hash}",
            details={"code": CHECKPOINT_NOT_FOUND, "workflow_id": workflow_id, "commit_hash": commit_hash},
            hint="Consulte get_checkpoint_history para os hashes disponíveis.",
        )


class InMemoryCheckpointStore(CheckpointStore):
    def __init__(self) -> None:
        super().__init__()
        self._history: Dict[str, List[Checkpoint]] = {}
        self._states: Dict[str, Dict[str, str]] = {}

    def _load_history(self, workflow_id: str) -> List[Checkpoint]:
        return list(self._history.get(workflow_id, []))

    def _load_state_text(self, workflow_id: str, commit_hash: str) -> Optional[str]:
        return self._states.get(workflow_id, {}).get(commit_hash)

    def _append(self, checkpoint: Checkpoint, state_text: str) -> None:
        self._history.setdefault(checkpoint.workflow_id, []).append(checkpoint)
        self._states.setdefault(checkpoint.workflow_id, {})[checkpoint.commit_hash] = state_text


_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]")


class FileCheckpointStore(CheckpointStore):
    """Backend em diretório local (um subdiretório por workflow)."""

    def __init__(self, root_dir: Union[str, Path]):
        super().__init__()
        self.root_dir = Path(root_dir)

    def _workflow_dir(self, workflow_id: str) -> Path:
        safe = _SAFE_NAME.sub("_", workflow_id)
        if safe != workflow_id or safe in {"", ".", ".."}:
            safe = f"{safe}-{sha256_hex(workflow_id)[:12]}"
        return self.root_dir / safe

    def _storage_error(self, workflow_id: str, exc: Exception) -> CheckpointStorageError:
        return CheckpointStorageError(
            f"Checkpoint storage failure: {exc}",
            details={
                "code": CHECKPOINT_STORAGE,
                "workflow_id": workflow_id,
                "exception_class": exc.__class__.__name__,
                "root_dir": str(self.root_dir),
            },
            hint="Verifique permissões e espaço em disco do diretório de checkpoints.",
        )

    def _load_history(self, workflow_id: str) -> List[Checkpoint]:
        path = self._workflow_dir(workflow_id) / "history.jsonl"
        if not path.exists():
            return []
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
            return [Checkpoint.from_dict(json.loads(line)) for line in lines if line.strip()]
        except (OSError, ValueError, KeyError) as e:
            raise self._storage_error(workflow_id, e) from e

    def _load_state_text(self, workflow_id: str, commit_hash: str) -> Optional[str]:
        if not re.fullmatch(r"[0-9a-f]{64}", commit_hash or ""):
            return None
        path = self._workflow_dir(workflow_id) / "objects" / f"{commit_hash}.json"
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise self._storage_error(workflow_id, e) from e

    def _append(self, checkpoint: Checkpoint, state_text: str) -> None:
        wf_dir = self._workflow_dir(checkpoint.workflow_id)
        try:
            objects = wf_dir / "objects"
            objects.mkdir(parents=True, exist_ok=True)
            # estado primeiro: uma entrada no histórico sempre tem objeto
            (objects / f"{checkpoint.commit_hash}.json").write_text(state_text, encoding="utf-8")
            with (wf_dir / "history.jsonl").open("a", encoding="utf-8") as f:
                f.write(canonical_json(checkpoint.to_dict()) + "\n")
        except OSError as e:
            raise self._storage_error(checkpoint.workflow_id, e) from e
