# tests/core/pipeline/test_handler_registry.py
"""
Testes do HandlerRegistry e do contrato mínimo de handler.

Os testes asseguram que:
- objetos com `run(call)` e callables simples são aceitos
- há no máximo um handler por NodeType (duplicata → ValueError)
- `replace=True` substitui explicitamente
- tipos são aceitos como enum ou string canônica
- objetos sem contrato são rejeitados com TypeError
"""

import pytest

try:
    from dagflow.core.exceptions import UnknownNodeType
    from dagflow.core.graph.model import NodeType
    from dagflow.core.pipeline.handler import HandlerRegistry, is_async_handler, resolve_callable
except Exception as e:  # noqa: BLE001
    HandlerRegistry = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if HandlerRegistry is None:
        pytest.fail(f"Missing HandlerRegistry. Import error: {_IMPORT_ERR}")


class _ObjHandler:
    def run(self, call):
        return {"ok": True}


def _fn_handler(call):
    return {"ok": True}


async def _async_fn(call):
    return {}


def test_register_object_and_callable():
    _require_imports()
    reg = HandlerRegistry({NodeType.SHELL: _ObjHandler()})
    reg.register("Transform", _fn_handler)

    assert reg.has("Shell")
    assert reg.get(NodeType.TRANSFORM) is _fn_handler
    assert reg.list_types() == [NodeType.SHELL, NodeType.TRANSFORM]
    assert reg.get(NodeType.EMAIL) is None


def test_duplicate_registration_is_rejected():
    _require_imports()
    reg = HandlerRegistry({NodeType.SHELL: _fn_handler})

    with pytest.raises(ValueError):
        reg.register(NodeType.SHELL, _ObjHandler())

    replacement = _ObjHandler()
    reg.register(NodeType.SHELL, replacement, replace=True)
    assert reg.get(NodeType.SHELL).__self__ is replacement


def test_unregister_is_idempotent():
    _require_imports()
    reg = HandlerRegistry({NodeType.SHELL: _fn_handler})
    reg.unregister(NodeType.SHELL)
    reg.unregister(NodeType.SHELL)

    assert reg.has(NodeType.SHELL) is False


def test_invalid_handler_and_type():
    _require_imports()
    with pytest.raises(TypeError):
        resolve_callable(42)
    with pytest.raises(UnknownNodeType):
        HandlerRegistry({"NotAType": _fn_handler})


def test_async_detection():
    _require_imports()

    class _AsyncObj:
        async def run(self, call):
            return {}

    assert is_async_handler(_async_fn) is True
    assert is_async_handler(resolve_callable(_AsyncObj())) is True
    assert is_async_handler(_fn_handler) is False
