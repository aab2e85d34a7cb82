# tests/e2e/test_workflow_e2e.py
"""
Teste end-to-end: importar → validar → executar → checkpoints → relatório.

O workflow `workflows/numbers.json` encadeia um nó Shell (handler do
teste) com os handlers embutidos Transform, Filter e Aggregator.

Invariantes:
    - A ordem de execução é a ordem topológica com desempate por inserção
    - Cada nó concluído gera exatamente um checkpoint
    - O relatório Markdown reflete o resultado da run

Limites explícitos:
    - Não executa comandos de shell reais
"""

import asyncio
from pathlib import Path

import pytest

try:
    from dagflow.core.checkpoint import FileCheckpointStore
    from dagflow.core.graph.model import NodeType
    from dagflow.core.pipeline.types import RunStatus
    from dagflow.handlers import default_handlers
    from dagflow.service import WorkflowService
except Exception as e:  # noqa: BLE001
    WorkflowService = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


WORKFLOW_PATH = Path(__file__).parent / "workflows" / "numbers.json"


def _require_imports():
    if WorkflowService is None:
        pytest.fail(f"Missing dagflow service. Import error: {_IMPORT_ERR}")


def _fake_shell(call):
    return {"stdout": "[1, 5, 10, 20]"}


def test_numbers_pipeline_end_to_end(tmp_path):
    _require_imports()
    handlers = default_handlers()
    handlers.register(NodeType.SHELL, _fake_shell)
    store = FileCheckpointStore(tmp_path / "checkpoints")
    service = WorkflowService(handlers=handlers, checkpoint_store=store)

    wf = service.import_workflow(WORKFLOW_PATH)
    assert service.validate_workflow(wf).execution_order == ["src", "parse", "big", "total", "agg"]

    async def scenario():
        run_id = await service.execute_workflow(wf)
        return run_id, await service.wait_for_run(run_id)

    run_id, result = asyncio.run(scenario())

    assert result.status == RunStatus.COMPLETED
    assert result.result("parse").output == {"result": [1, 5, 10, 20]}
    assert result.result("big").output == {"passed": [5, 10, 20], "failed": [1]}
    assert result.result("total").output == {"result": 36}
    assert result.result("agg").output == {
        "merged": {"passed": [5, 10, 20], "failed": [1], "input2": 36},
        "count": 2,
    }

    messages = [c.message for c in service.get_checkpoint_history("wf-numbers")]
    assert messages[0] == "Workflow started: Numbers Pipeline"
    assert messages[-1] == "Workflow completed: Numbers Pipeline"
    assert len(messages) == 7

    md = service.render_run_report(run_id)
    assert "- **Workflow Name**: Numbers Pipeline" in md
    assert "| Summary (`agg`) | Aggregator | `success` | 1 |" in md
    assert "No failures recorded." in md


def test_export_round_trip(tmp_path):
    _require_imports()
    service = WorkflowService()
    wf = service.import_workflow(WORKFLOW_PATH)
    out = tmp_path / "exported.json"

    service.export_workflow(wf, out)

    again = service.import_workflow(out)
    assert again == wf
