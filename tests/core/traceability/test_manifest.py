# tests/core/traceability/test_manifest.py
"""
Testes do Manifest v1 (rastreabilidade de runs).

Os testes asseguram que:
- `create_manifest` não emite eventos implicitamente
- transições de nó atualizam `nodes` e anexam exatamente um evento
- retentativas preservam o `started_at` original
- save/load preserva a estrutura (round-trip em JSON)

Invariantes:
    - Todos os timestamps são UTC
    - A ordem do Event Log reflete a ordem das chamadas
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

try:
    from dagflow.core.traceability import manifest as mf
except Exception as e:  # noqa: BLE001
    mf = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if mf is None:
        pytest.fail(f"Missing manifest module. Import error: {_IMPORT_ERR}")


T0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)


def _manifest():
    return mf.create_manifest(
        run_id="run-1",
        workflow_id="wf-1",
        started_at=T0,
        engine_version="0.1.0",
        config_hash="c" * 64,
        workflow_hash="w" * 64,
    )


def test_create_emits_no_events():
    _require_imports()
    m = _manifest()

    assert m.events == []
    assert m.nodes == {}
    assert m.run["run_id"] == "run-1"
    assert m.run["started_at"] == T0.isoformat()
    assert m.inputs == {"config_hash": "c" * 64, "workflow_hash": "w" * 64}


def test_node_lifecycle_with_retry():
    _require_imports()
    m = _manifest()
    mf.node_started(m, node_id="a", node_type="Shell", ts=T0)
    mf.node_retrying(m, node_id="a", ts=T0 + timedelta(milliseconds=10), attempt=1, error="boom", delay_ms=100.0)
    mf.node_started(m, node_id="a", node_type="Shell", ts=T0 + timedelta(milliseconds=110), attempt=2)
    mf.node_finished(m, node_id="a", ts=T0 + timedelta(milliseconds=250), output_keys=["z", "result"])

    node = m.nodes["a"]
    assert node["started_at"] == T0.isoformat()
    assert node["attempts"] == 2
    assert node["duration_ms"] == 250
    assert node["status"] == "success"
    assert node["output_keys"] == ["result", "z"]
    assert m.event_types("a") == ["node_started", "node_retrying", "node_started", "node_finished"]
    assert m.events[1]["payload"]["delay_ms"] == 100.0


def test_failure_skip_and_run_finished():
    _require_imports()
    m = _manifest()
    mf.node_started(m, node_id="a", node_type="Shell", ts=T0)
    mf.node_failed(m, node_id="a", ts=T0, error="boom", error_type="HANDLER_FAILED")
    mf.node_skipped(m, node_id="b", ts=T0, reason="Upstream failed: a", failed_upstreams=["a"])
    mf.run_finished(m, ts=T0, status="failed")

    assert m.nodes["a"]["error_type"] == "HANDLER_FAILED"
    assert m.nodes["b"]["status"] == "skipped"
    assert m.events[2]["payload"]["failed_upstreams"] == ["a"]
    assert m.event_types() == ["node_started", "node_failed", "node_skipped", "run_finished"]
    assert m.run["status"] == "failed"


def test_naive_timestamps_are_treated_as_utc():
    _require_imports()
    m = _manifest()
    mf.add_event(m, event_type="custom", ts=datetime(2026, 1, 16, 12, 0, 0))

    assert m.events[0]["timestamp"].endswith("+00:00")
    assert "node_id" not in m.events[0]


def test_round_trip(tmp_path):
    _require_imports()
    m = _manifest()
    mf.node_started(m, node_id="a", node_type="Shell", ts=T0)
    mf.node_finished(m, node_id="a", ts=T0, output_keys=["result"])
    path = tmp_path / "nested" / "manifest.json"

    mf.save_manifest(m, path)
    loaded = mf.load_manifest(path)

    assert loaded.to_dict() == m.to_dict()
    assert json.loads(path.read_text(encoding="utf-8"))["run"]["workflow_id"] == "wf-1"


def test_to_dict_is_a_copy():
    _require_imports()
    m = _manifest()
    data = m.to_dict()
    data["run"]["run_id"] = "mutated"

    assert m.run["run_id"] == "run-1"
