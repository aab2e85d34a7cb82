# tests/fixtures/handlers/__init__.py
"""Handlers dummy usados pelos testes do engine."""

from .scripted import ScriptedHandler
from .sync_echo import SyncEchoHandler

__all__ = ["ScriptedHandler", "SyncEchoHandler"]
