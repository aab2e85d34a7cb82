# src/dagflow/core/graph/model.py
"""
Modelo de grafo do dagflow (Node, Edge, Workflow).

Este módulo define os tipos de valor que descrevem um workflow: nós
tipados e configuráveis conectados por arestas dirigidas.

Decisões arquiteturais:
    - Todos os tipos são dataclasses imutáveis (frozen)
    - Edição é por substituição integral: helpers retornam novos `Workflow`
    - Remover um nó remove em cascata as arestas incidentes
    - Aciclicidade, arestas pendentes e self-loops NÃO são impostos na
      construção; são responsabilidade do validador
    - `x`/`y` e `comments` são metadados do editor, carregados sem
      interpretação

Invariantes:
    - `Workflow.nodes` e `Workflow.edges` são tuplas (ordem preservada)
    - A ordem de inserção dos nós é a base do desempate determinístico
      do scheduler

Limites explícitos:
    - Não valida estrutura
    - Não executa nós
    - Não conhece handlers nem checkpoints
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from dagflow.core.exceptions import UnknownNodeType
from dagflow.core.errors import VALIDATION_UNKNOWN_NODE_TYPE


class NodeType(str, Enum):
    """
    Enumeração fechada de tipos de nó.

    Os valores são as tags textuais usadas no JSON de workflow. O engine
    não interpreta a semântica de negócio de nenhum tipo: o tipo só
    seleciona a NodeSpec (portas/campos) e o handler registrado.
    """

    SHELL = "Shell"
    AI_PROMPT = "AiPrompt"
    DATABASE = "Database"
    TRADE_AGENT = "TradeAgent"
    AGGREGATOR = "Aggregator"
    TRANSFORM = "Transform"
    FILTER = "Filter"
    HTTP_REQUEST = "HTTPRequest"
    EMAIL = "Email"
    SCHEDULER = "Scheduler"
    FILE_OPERATION = "FileOperation"
    WEBHOOK = "Webhook"

    @classmethod
    def parse(cls, tag: Union[str, "NodeType"]) -> "NodeType":
        """
        Converte uma tag textual em NodeType.

        Aceita a tag exata e o alias `HttpRequest` (grafia usada por
        clientes legados para `HTTPRequest`).

        Raises:
            UnknownNodeType: Se a tag não pertencer ao catálogo.
        """
        if isinstance(tag, NodeType):
            return tag
        if isinstance(tag, str):
            normalized = _TYPE_ALIASES.get(tag, tag)
            for member in cls:
                if member.value == normalized:
                    return member
        raise UnknownNodeType(
            f"Unknown node type: {tag!r}",
            details={"code": VALIDATION_UNKNOWN_NODE_TYPE, "type": str(tag)},
            hint="Use um dos tipos: " + ", ".join(m.value for m in cls),
        )


_TYPE_ALIASES: Dict[str, str] = {
    "HttpRequest": "HTTPRequest",
}


def parse_flag(raw: Optional[str]) -> bool:
    """
    Lê um campo booleano de config (`"true"` / `"false"` / vazio).

    Raises:
        ValueError: Valor fora de `true`/`false`.
    """
    text = (raw or "").strip().lower()
    if text in ("", "false"):
        return False
    if text == "true":
        return True
    raise ValueError(f"expected true or false, got {raw!r}")


def parse_timeout_ms(raw: Optional[str]) -> Optional[int]:
    """
    Lê um campo de timeout de config (inteiro de ms > 0; vazio = sem limite).

    Raises:
        ValueError: Valor não inteiro ou não positivo.
    """
    text = (raw or "").strip()
    if not text:
        return None
    value = int(text)
    if value <= 0:
        raise ValueError(f"timeout must be > 0, got {value}")
    return value


@dataclass(frozen=True)
class RetryPolicy:
    """
    Política de retentativa por nó.

    - max_attempts: número total de tentativas (>= 1)
    - backoff_multiplier: fator do backoff exponencial (> 0)
    - initial_delay_ms: atraso antes da 2ª tentativa (>= 0)

    O atraso após a tentativa `n` (1-based) é
    `initial_delay_ms * backoff_multiplier ** (n - 1)`.
    """

    max_attempts: int = 1
    backoff_multiplier: float = 2.0
    initial_delay_ms: int = 0

    def delay_ms(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        return float(self.initial_delay_ms) * float(self.backoff_multiplier) ** (attempt - 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxAttempts": self.max_attempts,
            "backoffMultiplier": self.backoff_multiplier,
            "initialDelayMs": self.initial_delay_ms,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RetryPolicy":
        # `initialDelay` é a grafia antiga do mesmo campo
        delay = data.get("initialDelayMs", data.get("initialDelay", 0))
        return cls(
            max_attempts=int(data.get("maxAttempts", 1)),
            backoff_multiplier=float(data.get("backoffMultiplier", 2.0)),
            initial_delay_ms=int(delay or 0),
        )


@dataclass(frozen=True)
class Node:
    """
    Unidade de trabalho tipada e configurável.

    Campos de política de execução (todos opcionais):
        - required_inputs: quantos upstreams precisam ter sucesso
        - wait_for_all: exige sucesso de todos os upstreams
        - timeout: limite por tentativa, em milissegundos
        - retry_policy: política de retentativa

    `wait_for_all` e `timeout` também podem vir da config do nó (campos
    homônimos do catálogo, como o editor os grava); o atributo do nó
    tem precedência.
    """

    id: str
    type: NodeType
    label: str = ""
    config: Dict[str, str] = field(default_factory=dict)
    x: float = 0.0
    y: float = 0.0
    comments: Optional[str] = None
    variables: Optional[Dict[str, str]] = None
    required_inputs: Optional[int] = None
    wait_for_all: Optional[bool] = None
    timeout: Optional[int] = None
    retry_policy: Optional[RetryPolicy] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", NodeType.parse(self.type))
        object.__setattr__(self, "config", dict(self.config or {}))
        if self.variables is not None:
            object.__setattr__(self, "variables", dict(self.variables))
        if not self.label:
            object.__setattr__(self, "label", self.id)

    def effective_wait_for_all(self) -> bool:
        if self.wait_for_all is not None:
            return self.wait_for_all
        return parse_flag(self.config.get("wait_for_all"))

    def effective_timeout(self) -> Optional[int]:
        """Timeout por tentativa em ms, ou None quando não há limite."""
        if self.timeout is not None:
            return self.timeout
        return parse_timeout_ms(self.config.get("timeout"))


@dataclass(frozen=True)
class Edge:
    """Aresta dirigida `source → target` (dados fluem no sentido da aresta)."""

    id: str
    source: str
    target: str


@dataclass(frozen=True)
class Workflow:
    """
    Documento de workflow: nós + arestas + metadados.

    Os helpers de edição nunca mutam a instância; retornam uma cópia.
    """

    id: str
    name: str
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    description: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "metadata", dict(self.metadata or {}))

    # -----------------------------
    # Consultas
    # -----------------------------
    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def node(self, node_id: str) -> Node:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(node_id)

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self.nodes)

    def inbound(self, node_id: str) -> List[Edge]:
        """Arestas que chegam em `node_id`, na ordem declarada."""
        return [e for e in self.edges if e.target == node_id]

    def outbound(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source == node_id]

    def predecessors(self, node_id: str) -> List[str]:
        return _unique(e.source for e in self.inbound(node_id))

    def successors(self, node_id: str) -> List[str]:
        return _unique(e.target for e in self.outbound(node_id))

    # -----------------------------
    # Edição por substituição
    # -----------------------------
    def with_node(self, node: Node) -> "Workflow":
        """Adiciona `node` ou substitui o nó de mesmo id (posição preservada)."""
        if self.has_node(node.id):
            nodes = tuple(node if n.id == node.id else n for n in self.nodes)
        else:
            nodes = self.nodes + (node,)
        return replace(self, nodes=nodes)

    def without_node(self, node_id: str) -> "Workflow":
        """Remove o nó e, em cascata, todas as arestas incidentes."""
        return replace(
            self,
            nodes=tuple(n for n in self.nodes if n.id != node_id),
            edges=tuple(e for e in self.edges if e.source != node_id and e.target != node_id),
        )

    def with_edge(self, edge: Edge) -> "Workflow":
        return replace(self, edges=self.edges + (edge,))

    def without_edge(self, edge_id: str) -> "Workflow":
        return replace(self, edges=tuple(e for e in self.edges if e.id != edge_id))


def _unique(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)
