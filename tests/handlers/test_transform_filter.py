# tests/handlers/test_transform_filter.py
"""
Testes dos handlers Transform e Filter.

Os testes asseguram que:
- `map` aplica operações textuais ou um template `{{item}}` por item
- `filter` e `reduce` operam sobre a lista de entrada
- `custom` e operações desconhecidas são rejeitadas
- Filter separa itens em `passed` / `failed` e rejeita `jsonpath`
"""

import pytest

try:
    from dagflow.handlers import default_handlers
    from dagflow.handlers.filter import FilterHandler
    from dagflow.handlers.transform import TransformHandler
except Exception as e:  # noqa: BLE001
    TransformHandler = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if TransformHandler is None:
        pytest.fail(f"Missing builtin handlers. Import error: {_IMPORT_ERR}")


def _transform(make_call, operation, function, data, context=None):
    call = make_call("Transform", {"operation": operation, "function": function}, {"data": data}, context)
    return TransformHandler().run(call)["result"]


def test_map_text_operations(make_call):
    _require_imports()
    assert _transform(make_call, "map", "uppercase", {"result": ["a", "b"]}) == ["A", "B"]
    assert _transform(make_call, "map", "trim", {"stdout": "  x  "}) == "x"
    assert _transform(make_call, "map", "json_parse", {"stdout": '{"k": 1}'}) == {"k": 1}


def test_map_template(make_call):
    _require_imports()
    data = {"result": [{"name": "a", "qty": 2}, {"name": "b", "qty": 5}]}

    out = _transform(make_call, "map", '{"label": "{{item.name}}", "qty": {{item.qty}}}', data)

    assert out == [{"label": "a", "qty": 2}, {"label": "b", "qty": 5}]
    assert _transform(make_call, "map", "id-{{item}}", {"result": [1]}) == ["id-1"]


def test_filter_and_reduce(make_call):
    _require_imports()
    data = {"result": [1, 5, 10]}

    assert _transform(make_call, "filter", "item > 3", data) == [5, 10]
    assert _transform(make_call, "reduce", "sum", data) == 16
    assert _transform(make_call, "reduce", "count", data) == 3
    assert _transform(make_call, "reduce", "max", data) == 10
    assert _transform(make_call, "reduce", "min", {"result": []}) is None
    assert _transform(make_call, "reduce", "concat", {"result": ["a", "b"]}) == "ab"


@pytest.mark.parametrize("operation, function", [("custom", "x => x"), ("sort", ""), ("reduce", "avg")])
def test_rejected_transforms(make_call, operation, function):
    _require_imports()
    with pytest.raises(ValueError):
        _transform(make_call, operation, function, {"result": [1]})


def test_filter_handler_partitions(make_call):
    _require_imports()
    data = {"result": [{"score": 0.9}, {"score": 0.2}]}
    call = make_call("Filter", {"condition": "item.score >= 0.5"}, {"data": data})

    assert FilterHandler().run(call) == {"passed": [{"score": 0.9}], "failed": [{"score": 0.2}]}


def test_filter_handler_uses_context(make_call):
    _require_imports()
    call = make_call("Filter", {"condition": "item == threshold"}, {"data": {"result": [1, 2]}}, {"threshold": 2})

    assert FilterHandler().run(call) == {"passed": [2], "failed": [1]}


def test_filter_rejects_jsonpath(make_call):
    _require_imports()
    with pytest.raises(ValueError):
        FilterHandler().run(make_call("Filter", {"condition": "$.x", "mode": "jsonpath"}, {"data": 1}))


def test_default_handlers_cover_pure_types():
    _require_imports()
    reg = default_handlers()

    assert [t.value for t in reg.list_types()] == ["Aggregator", "Transform", "Filter"]
    assert reg.has("Shell") is False
