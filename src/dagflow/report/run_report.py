# src/dagflow/report/run_report.py
"""
Relatório Markdown de uma run (v1).

Regras:
- O relatório é derivado EXCLUSIVAMENTE do RunResult (e, opcionalmente,
  do Manifest e do Workflow da mesma run).
- Não infere nem recalcula nada além de contagens por status.
- Mesma entrada => mesmo Markdown (ordem topológica da run + JSON ordenado).

Estrutura mínima obrigatória:
# Workflow Run Report

## Summary
## Node Outcomes
## Failures
## Execution Metadata
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from dagflow.core.graph.model import Workflow
from dagflow.core.pipeline.types import ExecutionStatus, RunResult
from dagflow.core.traceability.manifest import RunManifest


REQUIRED_SECTIONS: List[str] = [
    "# Workflow Run Report",
    "## Summary",
    "## Node Outcomes",
    "## Failures",
    "## Execution Metadata",
]


def _as_pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, indent=2)


def build_run_report(
    run_result: RunResult,
    *,
    workflow: Optional[Workflow] = None,
    manifest: Optional[RunManifest] = None,
) -> Dict[str, Any]:
    """
    Consolida um RunResult em um dict serializável.

    Os nós aparecem na ordem topológica usada pela run; nós ausentes da
    ordem (não deveria ocorrer) vêm depois, em ordem alfabética.

    Raises:
        ValueError: Se `run_result` não for um RunResult.
    """
    if not isinstance(run_result, RunResult):
        raise ValueError("RunResult is required to build a run report")

    order = [n for n in run_result.order if n in run_result.results]
    order += sorted(n for n in run_result.results if n not in order)

    counts = {s.value: 0 for s in ExecutionStatus}
    nodes: List[Dict[str, Any]] = []
    failures: List[Dict[str, Any]] = []
    for node_id in order:
        r = run_result.results[node_id]
        counts[r.status.value] += 1
        node = workflow.node(node_id) if workflow is not None and workflow.has_node(node_id) else None
        entry = {
            "node_id": node_id,
            "label": node.label if node else node_id,
            "type": node.type.value if node else None,
            "status": r.status.value,
            "attempts": r.attempts,
            "duration_ms": r.duration_ms,
        }
        nodes.append(entry)
        if r.status in (ExecutionStatus.ERROR, ExecutionStatus.SKIPPED):
            failures.append({"node_id": node_id, "error_type": r.error_type, "error": r.error})

    return {
        "run_id": run_result.run_id,
        "workflow_id": run_result.workflow_id,
        "workflow_name": workflow.name if workflow is not None else None,
        "status": run_result.status.value,
        "started_at": run_result.started_at,
        "finished_at": run_result.finished_at,
        "counts": {k: v for k, v in counts.items() if v},
        "nodes": nodes,
        "failures": failures,
        "metadata": dict(manifest.run) if manifest is not None else {},
        "inputs": dict(manifest.inputs) if manifest is not None else {},
    }


def generate_run_report_md(report: Dict[str, Any]) -> str:
    """Gera o Markdown completo a partir do dict de `build_run_report`."""
    if not isinstance(report, dict) or not report:
        raise ValueError("Report dict is required to generate Markdown")

    lines: List[str] = []
    lines.append("# Workflow Run Report\n")

    lines.append("## Summary")
    lines.append(f"- **Run ID**: `{report.get('run_id', '<unknown>')}`")
    lines.append(f"- **Workflow ID**: `{report.get('workflow_id', '<unknown>')}`")
    if report.get("workflow_name"):
        lines.append(f"- **Workflow Name**: {report['workflow_name']}")
    lines.append(f"- **Status**: `{report.get('status', '<unknown>')}`")
    lines.append(f"- **Started At (UTC)**: `{report.get('started_at') or '<unknown>'}`")
    lines.append(f"- **Finished At (UTC)**: `{report.get('finished_at') or '<unknown>'}`")
    counts = report.get("counts") or {}
    for status in sorted(counts):
        lines.append(f"- **{status}**: {counts[status]}")
    lines.append("")

    lines.append("## Node Outcomes")
    nodes = report.get("nodes") or []
    if nodes:
        lines.append("| Node | Type | Status | Attempts | Duration (ms) |")
        lines.append("|---|---|---|---|---|")
        for n in nodes:
            duration = "" if n.get("duration_ms") is None else n["duration_ms"]
            lines.append(
                f"| {n['label']} (`{n['node_id']}`) | {n.get('type') or ''} | `{n['status']}` "
                f"| {n.get('attempts', 0)} | {duration} |"
            )
    else:
        lines.append("No nodes recorded for this run.")
    lines.append("")

    lines.append("## Failures")
    failures = report.get("failures") or []
    if failures:
        for f in failures:
            lines.append(f"- **{f['node_id']}** (`{f.get('error_type') or 'UNKNOWN'}`): {f.get('error') or ''}")
    else:
        lines.append("No failures recorded.")
    lines.append("")

    lines.append("## Execution Metadata")
    lines.append("### run")
    lines.append("```json")
    lines.append(_as_pretty_json(report.get("metadata") or {}))
    lines.append("```")
    lines.append("### inputs")
    lines.append("```json")
    lines.append(_as_pretty_json(report.get("inputs") or {}))
    lines.append("```")

    content = "\n".join(lines)

    for sec in REQUIRED_SECTIONS:
        if sec not in content:
            raise RuntimeError(f"Report generation failed: missing required section: {sec}")

    return content
