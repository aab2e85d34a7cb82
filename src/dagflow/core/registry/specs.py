# src/dagflow/core/registry/specs.py
"""
Especificações estáticas de tipos de nó (portas e campos de configuração).

Uma `NodeSpec` descreve, para um tipo de nó:
    - portas de entrada e saída (id, rótulo, tipo de dado)
    - campos de configuração (chave, rótulo, tipo de campo, opções, obrigatoriedade)

O engine usa a spec para:
    - validar presença de config obrigatória
    - mapear arestas de entrada para ids de porta no registro de inputs
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class PortType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    JSON = "json"
    BOOLEAN = "boolean"


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    SELECT = "select"


@dataclass(frozen=True)
class PortSpec:
    id: str
    label: str
    type: PortType


@dataclass(frozen=True)
class ConfigFieldSpec:
    """Campo de configuração. `options` só se aplica a `FieldKind.SELECT`."""

    key: str
    label: str
    kind: FieldKind
    options: Optional[Tuple[str, ...]] = None
    required: bool = False


@dataclass(frozen=True)
class NodeSpec:
    """Spec completa de um tipo de nó."""

    category: str
    inputs: Tuple[PortSpec, ...] = ()
    outputs: Tuple[PortSpec, ...] = ()
    config_fields: Tuple[ConfigFieldSpec, ...] = ()
    description: str = ""

    @property
    def input_ids(self) -> List[str]:
        return [p.id for p in self.inputs]

    @property
    def output_ids(self) -> List[str]:
        return [p.id for p in self.outputs]

    @property
    def required_keys(self) -> List[str]:
        return [f.key for f in self.config_fields if f.required]

    def field(self, key: str) -> ConfigFieldSpec:
        for f in self.config_fields:
            if f.key == key:
                return f
        raise KeyError(key)
