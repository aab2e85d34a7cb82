# tests/core/engine/test_progress.py
"""
Testes do canal de progresso ("workflow-progress").

Os testes asseguram que:
- cada transição de status gera exatamente um evento
- eventos carregam canal, run_id, workflow_id e uma cópia do resultado
- assinantes tardios não recebem eventos anteriores
- `unsubscribe` interrompe a entrega
- um assinante que levanta exceção não interrompe a run
- o registro de falhas de entrega guarda só as mais recentes
"""

import asyncio

import pytest

try:
    from dagflow.core.engine.executor import WorkflowExecutor
    from dagflow.core.engine.progress import EventRecorder, ProgressChannel
    from dagflow.core.pipeline.types import ExecutionStatus, NodeExecutionResult, RunStatus
except Exception as e:  # noqa: BLE001
    ProgressChannel = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if ProgressChannel is None:
        pytest.fail(f"Missing ProgressChannel. Import error: {_IMPORT_ERR}")


def test_one_event_per_transition(make_workflow, shell_handlers):
    _require_imports()
    channel = ProgressChannel()
    recorder = EventRecorder()
    channel.subscribe(recorder)
    wf = make_workflow(["a", "b"], [("a", "b")])
    executor = WorkflowExecutor(wf, handlers=shell_handlers, channel=channel)

    asyncio.run(executor.run())

    assert [(e.result.node_id, e.result.status.value) for e in recorder.events] == [
        ("a", "running"), ("a", "success"), ("b", "running"), ("b", "success"),
    ]
    first = recorder.events[0]
    assert first.channel == "workflow-progress"
    assert first.run_id == executor.run_id
    assert first.workflow_id == "wf-test"
    assert first.to_dict()["result"]["status"] == "running"

    node_events = [e for e in executor.manifest.events if "node_id" in e]
    assert len(node_events) == len(recorder.events)


def test_late_subscriber_and_unsubscribe():
    _require_imports()
    channel = ProgressChannel("custom")
    early, late = EventRecorder(), EventRecorder()
    sub = channel.subscribe(early)

    channel.publish(run_id="r", workflow_id="w", result=NodeExecutionResult(node_id="a"))
    channel.subscribe(late)
    sub.unsubscribe()
    sub.unsubscribe()
    channel.publish(run_id="r", workflow_id="w", result=NodeExecutionResult(node_id="b"))

    assert [e.result.node_id for e in early.events] == ["a"]
    assert [e.result.node_id for e in late.events] == ["b"]
    assert channel.subscriber_count == 1
    assert early.events[0].channel == "custom"


def test_event_carries_a_copy():
    _require_imports()
    channel = ProgressChannel()
    recorder = EventRecorder()
    channel.subscribe(recorder)
    original = NodeExecutionResult(node_id="a", status=ExecutionStatus.SUCCESS, output={"k": [1]})

    channel.publish(run_id="r", workflow_id="w", result=original)
    recorder.events[0].result.output["k"].append(2)

    assert original.output == {"k": [1]}


def test_raising_subscriber_does_not_break_run(make_workflow, shell_handlers):
    _require_imports()
    channel = ProgressChannel()

    def broken(event):
        raise RuntimeError("observer down")

    channel.subscribe(broken)
    wf = make_workflow(["a"])

    result = asyncio.run(WorkflowExecutor(wf, handlers=shell_handlers, channel=channel).run())

    assert result.status == RunStatus.COMPLETED
    assert len(channel.delivery_errors) == 2
    assert channel.delivery_errors[0]["exception_class"] == "RuntimeError"


def test_recorder_filters_by_run_id():
    _require_imports()
    channel = ProgressChannel()
    recorder = EventRecorder(run_id="r1")
    channel.subscribe(recorder)

    channel.publish(run_id="r1", workflow_id="w", result=NodeExecutionResult(node_id="a"))
    channel.publish(run_id="r2", workflow_id="w", result=NodeExecutionResult(node_id="a"))

    assert len(recorder.events) == 1


def test_delivery_errors_keep_only_the_most_recent():
    _require_imports()
    channel = ProgressChannel(max_delivery_errors=3)

    def broken(event):
        raise RuntimeError(f"observer down: {event.result.node_id}")

    channel.subscribe(broken)
    for i in range(10):
        channel.publish(run_id="r", workflow_id="w", result=NodeExecutionResult(node_id=f"n{i}"))

    assert len(channel.delivery_errors) == 3
    assert [e["node_id"] for e in channel.delivery_errors] == ["n7", "n8", "n9"]
