# src/dagflow/core/traceability/__init__.py
"""
Rastreabilidade de runs (Manifest + Event Log).

O Manifest é preenchido pelo executor através de chamadas explícitas e
pode ser salvo/carregado como JSON para auditoria posterior.
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    node_failed,
    node_finished,
    node_retrying,
    node_skipped,
    node_started,
    run_finished,
    save_manifest,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "node_failed",
    "node_finished",
    "node_retrying",
    "node_skipped",
    "node_started",
    "run_finished",
    "save_manifest",
]
