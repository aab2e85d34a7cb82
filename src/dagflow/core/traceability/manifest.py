# src/dagflow/core/traceability/manifest.py
"""
Manifest v1: rastreabilidade de runs do dagflow.

O Manifest consolida, de forma auditável:
    - metadados da run (run_id, workflow_id, início, versão do engine)
    - hashes de entrada (configuração efetiva e documento do workflow)
    - estado incremental de cada nó
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real das transições
    - O Manifest é serializável e reconstruível (round-trip)

Tipos de evento (v1):
    run_started, node_started, node_retrying, node_finished,
    node_failed, node_skipped, run_finished

Decisões arquiteturais:
    - UTC é o timezone canônico de todos os timestamps
    - Persistência em JSON determinístico (indent 2, sort_keys)

Limites explícitos:
    - Não executa nós
    - Não decide políticas de execução (retry, skip)
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps naive são assumidos UTC; aware são convertidos para UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração não negativa em milissegundos."""
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Registro forense de uma run.

    Campos principais:
        - run: metadados da execução
        - inputs: hashes de configuração e de workflow
        - nodes: estado incremental por node_id
        - events: Event Log ordenado

    Invariantes:
        - `nodes` é sempre um dicionário indexado por node_id
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável em JSON
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    nodes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável, independente do estado interno."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "nodes": {k: dict(v) for k, v in self.nodes.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            nodes={k: dict(v) for k, v in (data.get("nodes", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    def event_types(self, node_id: Optional[str] = None) -> List[str]:
        return [
            e["event_type"]
            for e in self.events
            if node_id is None or e.get("node_id") == node_id
        ]


def create_manifest(
    *,
    run_id: str,
    workflow_id: str,
    started_at: datetime,
    engine_version: str,
    config_hash: str,
    workflow_hash: str,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    Esta função **não emite eventos**: o Event Log inicia vazio e só é
    preenchido por chamadas explícitas (`add_event`, `node_started`, ...).
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "workflow_id": workflow_id,
            "started_at": _iso(started_at),
            "engine_version": engine_version,
        },
        inputs={
            "config_hash": config_hash,
            "workflow_hash": workflow_hash,
        },
        nodes={},
        events=[],
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    node_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona exatamente um evento ao Event Log, na ordem de chamada."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if node_id is not None:
        ev["node_id"] = node_id
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def node_started(
    manifest: RunManifest,
    *,
    node_id: str,
    node_type: str,
    ts: datetime,
    attempt: int = 1,
) -> None:
    """
    Marca o nó como `running`.

    `started_at` é gravado apenas na primeira tentativa; retentativas
    preservam o início original para que `duration_ms` cubra a run do nó.
    """
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.setdefault("started_at", _iso(ts))
    n.update({"node_type": node_type, "status": "running", "attempts": attempt})
    add_event(manifest, event_type="node_started", ts=ts, node_id=node_id,
              payload={"node_type": node_type, "attempt": attempt})


def node_retrying(
    manifest: RunManifest,
    *,
    node_id: str,
    ts: datetime,
    attempt: int,
    error: str,
    delay_ms: float,
) -> None:
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.update({"status": "retrying", "last_error": error})
    add_event(manifest, event_type="node_retrying", ts=ts, node_id=node_id,
              payload={"attempt": attempt, "error": error, "delay_ms": delay_ms})


def _close(n: Dict[str, Any], ts: datetime) -> None:
    started_iso = n.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    n["finished_at"] = _iso(ts)
    n["duration_ms"] = _ms_between(started_dt, ts)


def node_finished(
    manifest: RunManifest,
    *,
    node_id: str,
    ts: datetime,
    output_keys: List[str],
) -> None:
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    _close(n, ts)
    n.update({"status": "success", "output_keys": sorted(output_keys)})
    add_event(manifest, event_type="node_finished", ts=ts, node_id=node_id,
              payload={"status": "success", "duration_ms": n["duration_ms"]})


def node_failed(
    manifest: RunManifest,
    *,
    node_id: str,
    ts: datetime,
    error: str,
    error_type: Optional[str] = None,
) -> None:
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    _close(n, ts)
    n.update({"status": "error", "error": error, "error_type": error_type})
    add_event(manifest, event_type="node_failed", ts=ts, node_id=node_id,
              payload={"error": error, "error_type": error_type})


def node_skipped(
    manifest: RunManifest,
    *,
    node_id: str,
    ts: datetime,
    reason: str,
    failed_upstreams: List[str],
) -> None:
    n = manifest.nodes.setdefault(node_id, {"node_id": node_id})
    n.update({"status": "skipped", "error": reason, "finished_at": _iso(ts)})
    add_event(manifest, event_type="node_skipped", ts=ts, node_id=node_id,
              payload={"reason": reason, "failed_upstreams": list(failed_upstreams)})


def run_finished(manifest: RunManifest, *, ts: datetime, status: str) -> None:
    manifest.run["finished_at"] = _iso(ts)
    manifest.run["status"] = status
    add_event(manifest, event_type="run_finished", ts=ts, payload={"status": status})


def save_manifest(manifest: Union[RunManifest, Dict[str, Any]], path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico.

    Raises:
        OSError: Falha ao criar diretórios ou escrever o arquivo.
        TypeError: Conteúdo não serializável.
    """
    data = manifest.to_dict() if isinstance(manifest, RunManifest) else manifest
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> RunManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
