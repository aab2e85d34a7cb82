# src/dagflow/core/registry/catalog.py
"""
NodeTypeRegistry v1: catálogo determinístico de tipos de nó.

Tipos suportados, suas portas e seus campos de configuração são
centralizados e explícitos, sem discovery dinâmico.

Este módulo fornece:
- NodeTypeRegistry: ponto único de verdade para specs de tipos de nó
- spec_for(): consulta ao catálogo padrão do processo
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple, Union

from dagflow.core.errors import VALIDATION_UNKNOWN_NODE_TYPE
from dagflow.core.exceptions import UnknownNodeType
from dagflow.core.graph.model import NodeType

from .specs import ConfigFieldSpec, FieldKind, NodeSpec, PortSpec, PortType


CORE_NODES = "Core Nodes"
DATA_PROCESSING = "Data Processing"
INTEGRATION = "Integration"


class NodeTypeRegistry:
    """Registry determinístico de NodeSpec.

    Extensibilidade é explícita: specs são registradas via `register()`.
    O catálogo padrão (`v1()`) cobre os doze tipos do enum `NodeType`.
    """

    def __init__(self, specs: Optional[Iterable[Tuple[NodeType, NodeSpec]]] = None):
        self._specs: Dict[NodeType, NodeSpec] = {}
        if specs:
            for node_type, spec in specs:
                self.register(node_type, spec)

    @classmethod
    def v1(cls) -> "NodeTypeRegistry":
        """Factory do catálogo v1 (todos os tipos embutidos)."""
        return cls(specs=_default_specs_v1())

    def register(self, node_type: Union[NodeType, str], spec: NodeSpec) -> None:
        if not isinstance(spec, NodeSpec):
            raise TypeError("spec must be a NodeSpec")
        key = NodeType.parse(node_type)
        if key in self._specs:
            raise ValueError(f"node type already registered: {key.value}")
        self._specs[key] = spec

    def list_types(self) -> List[NodeType]:
        return list(self._specs)

    def has(self, node_type: Union[NodeType, str]) -> bool:
        try:
            return NodeType.parse(node_type) in self._specs
        except UnknownNodeType:
            return False

    def get(self, node_type: Union[NodeType, str]) -> NodeSpec:
        """
        Raises:
            UnknownNodeType: tag fora do enum ou sem spec registrada.
        """
        key = NodeType.parse(node_type)
        if key not in self._specs:
            raise UnknownNodeType(
                f"No spec registered for node type: {key.value}",
                details={"code": VALIDATION_UNKNOWN_NODE_TYPE, "type": key.value},
            )
        return self._specs[key]

    def by_category(self) -> Dict[str, List[NodeType]]:
        out: Dict[str, List[NodeType]] = {}
        for node_type, spec in self._specs.items():
            out.setdefault(spec.category, []).append(node_type)
        return out


def _port(port_id: str, label: str, port_type: PortType) -> PortSpec:
    return PortSpec(id=port_id, label=label, type=port_type)


def _field(
    key: str,
    label: str,
    kind: FieldKind,
    *,
    required: bool = False,
    options: Optional[Tuple[str, ...]] = None,
) -> ConfigFieldSpec:
    return ConfigFieldSpec(key=key, label=label, kind=kind, options=options, required=required)


def _default_specs_v1() -> List[Tuple[NodeType, NodeSpec]]:
    """Catálogo v1: três categorias, doze tipos."""
    S, N, J, B = PortType.STRING, PortType.NUMBER, PortType.JSON, PortType.BOOLEAN
    TEXT, AREA, NUM, SEL = FieldKind.TEXT, FieldKind.TEXTAREA, FieldKind.NUMBER, FieldKind.SELECT
    bool_options = ("true", "false")

    return [
        (NodeType.SHELL, NodeSpec(
            category=CORE_NODES,
            description="Executa um comando de shell",
            inputs=(_port("stdin", "Standard Input", S), _port("env", "Environment", J)),
            outputs=(_port("stdout", "Standard Output", S), _port("exit_code", "Exit Code", N)),
            config_fields=(
                _field("cmd", "Command", AREA, required=True),
                _field("cwd", "Working Directory", TEXT),
                _field("timeout", "Timeout (ms)", NUM),
            ),
        )),
        (NodeType.AI_PROMPT, NodeSpec(
            category=CORE_NODES,
            description="Envia um prompt a um provedor de IA",
            inputs=(_port("context", "Context", S),),
            outputs=(_port("response", "Response", S), _port("tokens", "Tokens Used", N)),
            config_fields=(
                _field("provider", "Provider", SEL, required=True, options=("gemini", "deepseek", "grok")),
                _field("model", "Model", TEXT, required=True),
                _field("prompt", "Prompt", AREA, required=True),
                _field("temperature", "Temperature", NUM),
            ),
        )),
        (NodeType.DATABASE, NodeSpec(
            category=CORE_NODES,
            description="Executa uma consulta em banco de dados",
            inputs=(_port("params", "Parameters", J),),
            outputs=(_port("rows", "Rows", J),),
            config_fields=(
                _field("connection", "Connection", TEXT),
                _field("query", "Query", AREA, required=True),
            ),
        )),
        (NodeType.TRADE_AGENT, NodeSpec(
            category=CORE_NODES,
            description="Agente de negociação",
            inputs=(_port("trigger_signal", "Trigger Signal", N),),
            outputs=(_port("tx_hash", "Transaction Hash", S), _port("status", "Status", S)),
            config_fields=(
                _field("asset", "Asset", TEXT, required=True),
                _field("action", "Action", SEL, options=("BUY", "SELL", "HOLD")),
                _field("risk_score", "Risk Score", NUM),
                _field("amount", "Amount", NUM, required=True),
            ),
        )),
        (NodeType.AGGREGATOR, NodeSpec(
            category=DATA_PROCESSING,
            description="Combina as saídas de vários nós upstream",
            inputs=(_port("input1", "Input 1", J), _port("input2", "Input 2", J), _port("input3", "Input 3", J)),
            outputs=(_port("merged", "Merged Output", J), _port("count", "Input Count", N)),
            config_fields=(
                _field("strategy", "Strategy", SEL, required=True, options=("merge", "concat", "first", "last")),
                _field("wait_for_all", "Wait For All", SEL, options=bool_options),
                _field("timeout", "Timeout (ms)", NUM),
            ),
        )),
        (NodeType.TRANSFORM, NodeSpec(
            category=DATA_PROCESSING,
            description="Transforma dados (map, filter, reduce)",
            inputs=(_port("data", "Data", J),),
            outputs=(_port("result", "Result", J),),
            config_fields=(
                _field("operation", "Operation", SEL, required=True, options=("map", "filter", "reduce", "custom")),
                _field("function", "Function", AREA, required=True),
            ),
        )),
        (NodeType.FILTER, NodeSpec(
            category=DATA_PROCESSING,
            description="Separa itens que satisfazem uma condição",
            inputs=(_port("data", "Data", J),),
            outputs=(_port("passed", "Passed", J), _port("failed", "Failed", J)),
            config_fields=(
                _field("condition", "Condition", AREA, required=True),
                _field("mode", "Mode", SEL, options=("javascript", "jsonpath")),
            ),
        )),
        (NodeType.HTTP_REQUEST, NodeSpec(
            category=INTEGRATION,
            description="Requisição HTTP",
            inputs=(_port("url", "URL", S), _port("body", "Body", J)),
            outputs=(_port("response", "Response", J), _port("status", "Status Code", N)),
            config_fields=(
                _field("method", "Method", SEL, required=True, options=("GET", "POST", "PUT", "DELETE", "PATCH")),
                _field("url", "URL", TEXT, required=True),
                _field("headers", "Headers", AREA),
            ),
        )),
        (NodeType.EMAIL, NodeSpec(
            category=INTEGRATION,
            description="Envio de e-mail",
            inputs=(_port("to", "To", S), _port("body", "Body", S)),
            outputs=(_port("status", "Status", S),),
            config_fields=(
                _field("from", "From", TEXT, required=True),
                _field("subject", "Subject", TEXT, required=True),
                _field("smtp_server", "SMTP Server", TEXT),
            ),
        )),
        (NodeType.WEBHOOK, NodeSpec(
            category=INTEGRATION,
            description="Recebe chamadas HTTP externas",
            inputs=(),
            outputs=(_port("payload", "Payload", J), _port("headers", "Headers", J)),
            config_fields=(
                _field("path", "Path", TEXT, required=True),
                _field("method", "Method", SEL, options=("POST", "GET", "ANY")),
            ),
        )),
        (NodeType.FILE_OPERATION, NodeSpec(
            category=INTEGRATION,
            description="Leitura e escrita de arquivos",
            inputs=(_port("content", "Content", S),),
            outputs=(_port("data", "Data", S), _port("success", "Success", B)),
            config_fields=(
                _field("operation", "Operation", SEL, required=True, options=("read", "write", "append", "delete")),
                _field("path", "File Path", TEXT, required=True),
                _field("encoding", "Encoding", SEL, options=("utf8", "base64", "binary")),
            ),
        )),
        (NodeType.SCHEDULER, NodeSpec(
            category=INTEGRATION,
            description="Disparo agendado (cron)",
            inputs=(),
            outputs=(_port("trigger", "Trigger", B), _port("timestamp", "Timestamp", N)),
            config_fields=(
                _field("schedule", "Schedule (cron)", TEXT, required=True),
                _field("timezone", "Timezone", TEXT),
                _field("enabled", "Enabled", SEL, options=bool_options),
            ),
        )),
    ]


_DEFAULT_REGISTRY = NodeTypeRegistry.v1()


def default_registry() -> NodeTypeRegistry:
    """Catálogo padrão do processo (semeado uma vez na importação)."""
    return _DEFAULT_REGISTRY


def spec_for(node_type: Union[NodeType, str]) -> NodeSpec:
    """
    Retorna a NodeSpec de um tipo no catálogo padrão.

    Raises:
        UnknownNodeType: Se a tag não pertencer ao catálogo.
    """
    return _DEFAULT_REGISTRY.get(node_type)
