# src/dagflow/core/registry/__init__.py
"""Catálogo de tipos de nó (portas e campos de configuração)."""

from .catalog import NodeTypeRegistry, default_registry, spec_for
from .specs import ConfigFieldSpec, FieldKind, NodeSpec, PortSpec, PortType

__all__ = [
    "ConfigFieldSpec",
    "FieldKind",
    "NodeSpec",
    "NodeTypeRegistry",
    "PortSpec",
    "PortType",
    "default_registry",
    "spec_for",
]
