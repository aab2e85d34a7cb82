# tests/core/engine/test_executor_aggregation.py
"""
Testes de agregação de entradas e propagação de falhas.

Os testes asseguram que:
- dependentes de um nó que falhou viram `skipped`, transitivamente
- ramos independentes continuam executando
- `wait_for_all` exige sucesso de todos os upstreams
- `required_inputs` dispara o nó assim que N upstreams tiverem sucesso
  (semântica de corrida), entregando apenas as saídas já disponíveis
- `required_inputs` acima do número de arestas é limitado, com warning

Decisões arquiteturais:
    - `skipped` é terminal e distinto de `error`: o handler nunca roda
"""

import asyncio

import pytest

try:
    from dagflow.core.engine.executor import WorkflowExecutor
    from dagflow.core.graph.model import Node, NodeType
    from dagflow.core.pipeline.handler import HandlerRegistry
    from dagflow.core.pipeline.types import ExecutionStatus, RunStatus
except Exception as e:  # noqa: BLE001
    WorkflowExecutor = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if WorkflowExecutor is None:
        pytest.fail(f"Missing WorkflowExecutor. Import error: {_IMPORT_ERR}")


def _run(wf, handlers):
    executor = WorkflowExecutor(wf, handlers=handlers)
    return executor, asyncio.run(executor.run())


def test_failure_cascades_as_skipped(make_node, make_workflow, shell_handlers, scripted):
    """
    a falha → b e c (descendentes) viram `skipped`; d (independente) roda.

    Invariantes:
        - o handler de b e c nunca é chamado
        - a mensagem nomeia o upstream que falhou
        - a run termina como `failed`
    """
    _require_imports()
    wf = make_workflow(
        [make_node("a", fail="true"), "b", "c", "d"],
        [("a", "b"), ("b", "c")],
    )

    executor, result = _run(wf, shell_handlers)

    assert result.result("a").status == ExecutionStatus.ERROR
    b, c = result.result("b"), result.result("c")
    assert b.status == ExecutionStatus.SKIPPED
    assert b.error_type == "UPSTREAM_FAILED"
    assert b.error == "skipped due to failed dependency: a"
    assert c.status == ExecutionStatus.SKIPPED
    assert c.error == "skipped due to failed dependency: b"
    assert result.result("d").status == ExecutionStatus.SUCCESS
    assert not scripted.called("b") and not scripted.called("c")
    assert result.status == RunStatus.FAILED

    skipped = [e for e in executor.manifest.events if e["event_type"] == "node_skipped"]
    assert [e["node_id"] for e in skipped] == ["b", "c"]
    assert skipped[0]["payload"]["failed_upstreams"] == ["a"]


def test_wait_for_all_skips_on_any_failure(make_node, make_workflow, shell_handlers, scripted):
    _require_imports()
    wf = make_workflow(
        ["a", make_node("b", fail="true"), make_node("c", wait_for_all=True)],
        [("a", "c"), ("b", "c")],
    )

    _, result = _run(wf, shell_handlers)

    assert result.result("a").status == ExecutionStatus.SUCCESS
    assert result.result("c").status == ExecutionStatus.SKIPPED
    assert result.result("c").error == "skipped due to failed dependency: b"
    assert not scripted.called("c")


def test_wait_for_all_runs_after_every_upstream(make_node, make_workflow, shell_handlers, scripted):
    _require_imports()
    wf = make_workflow(
        [make_node("a", sleep_ms=50), "b", make_node("c", wait_for_all=True)],
        [("a", "c"), ("b", "c")],
    )

    _, result = _run(wf, shell_handlers)

    assert result.result("c").status == ExecutionStatus.SUCCESS
    assert scripted.inputs["c"] == {"stdin": {"result": "a"}, "env": {"result": "b"}}


def test_required_inputs_race(make_node, make_workflow, shell_handlers, scripted):
    """
    Com `required_inputs=1`, c dispara quando o upstream mais rápido termina.

    Invariantes:
        - c recebe apenas a saída de b (o upstream rápido), na porta da
          posição da aresta (`env`, segunda aresta de entrada)
        - a termina depois, sem disparar c de novo
    """
    _require_imports()
    wf = make_workflow(
        [make_node("a", sleep_ms=300), make_node("b", sleep_ms=10), make_node("c", required_inputs=1)],
        [("a", "c"), ("b", "c")],
    )

    _, result = _run(wf, shell_handlers)

    assert result.status == RunStatus.COMPLETED
    assert scripted.inputs["c"] == {"env": {"result": "b"}}
    assert len(scripted.attempts("c")) == 1
    assert scripted.attempts("c")[0] < scripted.attempts("a")[0] + 0.3


def test_required_inputs_tolerates_partial_failure(make_node, make_workflow, shell_handlers):
    _require_imports()
    wf = make_workflow(
        [make_node("a", fail="true"), "b", make_node("c", required_inputs=1)],
        [("a", "c"), ("b", "c")],
    )

    _, result = _run(wf, shell_handlers)

    assert result.result("c").status == ExecutionStatus.SUCCESS


def test_required_inputs_unsatisfiable_is_skipped(make_node, make_workflow, shell_handlers):
    _require_imports()
    wf = make_workflow(
        [make_node("a", fail="true"), make_node("b", fail="true"), make_node("c", required_inputs=1)],
        [("a", "c"), ("b", "c")],
    )

    _, result = _run(wf, shell_handlers)

    c = result.result("c")
    assert c.status == ExecutionStatus.SKIPPED
    assert c.error == "skipped due to failed dependency: a, b"


def test_required_inputs_clamped_with_warning(make_node, make_workflow, shell_handlers, scripted):
    _require_imports()
    wf = make_workflow(
        ["a", "b", make_node("c", required_inputs=5)],
        [("a", "c"), ("b", "c")],
    )

    executor, result = _run(wf, shell_handlers)

    assert result.result("c").status == ExecutionStatus.SUCCESS
    assert set(scripted.inputs["c"]) == {"stdin", "env"}
    assert executor.ctx.warnings["c"] == ["requiredInputs=5 clamped to 2 inbound edge(s)"]


def test_aggregator_policy_from_config(make_node, make_workflow, scripted):
    """
    Aggregator com `wait_for_all`/`timeout` gravados na config pelo editor.

    Invariantes:
        - `wait_for_all: "true"` prevalece sobre `required_inputs=1`:
          a falha de b faz o agregador virar `skipped`
        - `timeout: "50"` limita a tentativa do agregador
    """
    _require_imports()
    handlers = HandlerRegistry({NodeType.SHELL: scripted, NodeType.AGGREGATOR: scripted})

    strict = Node(id="agg", type=NodeType.AGGREGATOR, required_inputs=1,
                  config={"strategy": "merge", "wait_for_all": "true"})
    wf = make_workflow(["a", make_node("b", fail="true"), strict], [("a", "agg"), ("b", "agg")])
    _, result = _run(wf, handlers)

    assert result.result("agg").status == ExecutionStatus.SKIPPED
    assert not scripted.called("agg")

    slow = Node(id="agg", type=NodeType.AGGREGATOR,
                config={"strategy": "merge", "timeout": "50", "sleep_ms": "500"})
    _, result = _run(make_workflow(["a", slow], [("a", "agg")]), handlers)

    assert result.result("agg").error_type == "TIMEOUT"
    assert result.result("agg").error == "TimeoutError: node exceeded 50ms"
