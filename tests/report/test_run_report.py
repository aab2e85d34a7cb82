# tests/report/test_run_report.py
"""
Testes do relatório Markdown de runs.

Os testes asseguram que:
- todas as seções obrigatórias estão presentes
- os nós aparecem na ordem topológica da run
- falhas e skips são listados com seu código
- contagens por status incluem apenas status presentes
- entradas inválidas levantam ValueError
"""

import pytest

try:
    from dagflow.core.pipeline.types import ExecutionStatus, NodeExecutionResult, RunResult, RunStatus
    from dagflow.report import REQUIRED_SECTIONS, build_run_report, generate_run_report_md
except Exception as e:  # noqa: BLE001
    build_run_report = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if build_run_report is None:
        pytest.fail(f"Missing run report API. Import error: {_IMPORT_ERR}")


def _run_result():
    return RunResult(
        run_id="run-1",
        workflow_id="wf-test",
        status=RunStatus.FAILED,
        order=["b", "a", "c"],
        started_at="2026-01-16T00:00:00+00:00",
        finished_at="2026-01-16T00:00:01+00:00",
        results={
            "a": NodeExecutionResult(node_id="a", status=ExecutionStatus.ERROR, error="boom",
                                     error_type="HANDLER_FAILED", attempts=2, duration_ms=15),
            "b": NodeExecutionResult(node_id="b", status=ExecutionStatus.SUCCESS, attempts=1, duration_ms=3),
            "c": NodeExecutionResult(node_id="c", status=ExecutionStatus.SKIPPED,
                                     error="skipped due to failed dependency: a", error_type="UPSTREAM_FAILED"),
        },
    )


def test_build_report_structure(make_node, make_workflow):
    _require_imports()
    wf = make_workflow([make_node("a", label="Fetch"), "b", "c"], [("b", "a"), ("a", "c")])

    report = build_run_report(_run_result(), workflow=wf)

    assert [n["node_id"] for n in report["nodes"]] == ["b", "a", "c"]
    assert report["nodes"][1]["label"] == "Fetch"
    assert report["nodes"][1]["type"] == "Shell"
    assert report["counts"] == {"success": 1, "error": 1, "skipped": 1}
    assert [f["node_id"] for f in report["failures"]] == ["a", "c"]
    assert report["workflow_name"] == "Test Workflow"
    assert report["metadata"] == {}


def test_markdown_sections_and_content():
    _require_imports()
    md = generate_run_report_md(build_run_report(_run_result()))

    for sec in REQUIRED_SECTIONS:
        assert sec in md
    assert "- **Status**: `failed`" in md
    assert "| a (`a`) |  | `error` | 2 | 15 |" in md
    assert "| c (`c`) |  | `skipped` | 0 |  |" in md
    assert "- **a** (`HANDLER_FAILED`): boom" in md
    assert "Workflow Name" not in md


def test_markdown_is_deterministic():
    _require_imports()
    report = build_run_report(_run_result())

    assert generate_run_report_md(report) == generate_run_report_md(report)


def test_no_failures_message():
    _require_imports()
    ok = RunResult(run_id="r", workflow_id="w", status=RunStatus.COMPLETED, order=["a"],
                   results={"a": NodeExecutionResult(node_id="a", status=ExecutionStatus.SUCCESS, attempts=1)})

    md = generate_run_report_md(build_run_report(ok))

    assert "No failures recorded." in md


def test_invalid_inputs():
    _require_imports()
    with pytest.raises(ValueError):
        build_run_report({"run_id": "x"})
    with pytest.raises(ValueError):
        generate_run_report_md({})
