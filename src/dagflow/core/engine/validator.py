# src/dagflow/core/engine/validator.py
"""
Validador estrutural de workflows.

Este módulo rejeita workflows malformados antes de qualquer execução e
oferece a checagem incremental usada pelo editor ao conectar nós.

Checagens de `validate_workflow`, nesta ordem (a primeira violação
encontrada é levantada):
    0. ids de nó únicos, ids de aresta únicos, tipo de nó catalogado
    a. toda aresta referencia nós existentes       (DANGLING_EDGE)
    b. nenhum par source+target repetido           (DUPLICATE_EDGE)
    c. nenhum self-loop                            (SELF_LOOP)
    d. config obrigatória presente e não vazia     (MISSING_CONFIG)
    d'. política de execução coerente              (INVALID_POLICY)
    e. aciclicidade via contagem de Kahn           (CycleError)

Decisões arquiteturais:
    - O validador reporta, nunca corrige
    - Violações carregam `details["code"]` e os ids envolvidos
    - `required_inputs` maior que o número de arestas de entrada não é
      erro: vira warning em `ValidationResult.warnings` e o executor
      limita o valor ao número de arestas

Limites explícitos:
    - Não executa nós
    - Não verifica se existe handler registrado (falha em runtime)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from dagflow.core.errors import (
    VALIDATION_DANGLING_EDGE,
    VALIDATION_DUPLICATE_EDGE,
    VALIDATION_DUPLICATE_EDGE_ID,
    VALIDATION_DUPLICATE_NODE,
    VALIDATION_INVALID_POLICY,
    VALIDATION_MISSING_CONFIG,
    VALIDATION_SELF_LOOP,
)
from dagflow.core.exceptions import ValidationError
from dagflow.core.graph.model import Edge, Node, Workflow, parse_flag, parse_timeout_ms
from dagflow.core.registry.catalog import NodeTypeRegistry, default_registry

from .planner import topological_order


@dataclass(frozen=True)
class ValidationResult:
    """Resumo de um workflow válido."""

    node_count: int
    edge_count: int
    execution_order: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    message: str = "Workflow is a valid DAG"


_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def would_create_cycle(
    nodes: Sequence[Node],
    edges: Iterable[Edge],
    candidate_edge: Edge,
) -> bool:
    """
    Indica se adicionar `candidate_edge` produz um ciclo.

    DFS iterativa a partir de `candidate_edge.source`, com pilha explícita
    e marcação em três estados (não visitado / em progresso / concluído).
    Encontrar um nó em progresso significa aresta de retorno, ou seja,
    ciclo. Nenhum argumento é mutado.

    Returns:
        bool: True se o grafo `edges ∪ {candidate_edge}` tiver ciclo
            alcançável a partir da origem do candidato.
    """
    if candidate_edge.source == candidate_edge.target:
        return True

    adjacency: Dict[str, List[str]] = {n.id: [] for n in nodes}
    for e in list(edges) + [candidate_edge]:
        adjacency.setdefault(e.source, []).append(e.target)
        adjacency.setdefault(e.target, [])

    state: Dict[str, int] = {nid: _UNVISITED for nid in adjacency}
    start = candidate_edge.source
    stack: List[Tuple[str, Iterator[str]]] = [(start, iter(adjacency[start]))]
    state[start] = _IN_PROGRESS

    while stack:
        current, children = stack[-1]
        advanced = False
        for child in children:
            mark = state[child]
            if mark == _IN_PROGRESS:
                return True
            if mark == _UNVISITED:
                state[child] = _IN_PROGRESS
                stack.append((child, iter(adjacency[child])))
                advanced = True
                break
        if not advanced:
            state[current] = _DONE
            stack.pop()

    return False


def _fail(message: str, code: str, **details) -> ValidationError:
    details["code"] = code
    return ValidationError(message, details=details)


def _check_identity(workflow: Workflow, registry: NodeTypeRegistry) -> None:
    seen: Set[str] = set()
    for n in workflow.nodes:
        if n.id in seen:
            raise _fail(f"Duplicate node id: {n.id}", VALIDATION_DUPLICATE_NODE, node_id=n.id)
        seen.add(n.id)
        registry.get(n.type)

    seen_edges: Set[str] = set()
    for e in workflow.edges:
        if e.id in seen_edges:
            raise _fail(f"Duplicate edge id: {e.id}", VALIDATION_DUPLICATE_EDGE_ID, edge_id=e.id)
        seen_edges.add(e.id)


def _check_edges(workflow: Workflow) -> None:
    node_ids = set(workflow.node_ids)

    for e in workflow.edges:
        missing = [x for x in (e.source, e.target) if x not in node_ids]
        if missing:
            raise _fail(
                f"Edge '{e.id}' references unknown node(s): {', '.join(missing)}",
                VALIDATION_DANGLING_EDGE,
                edge_id=e.id,
                nodes=missing,
            )

    pairs: Dict[Tuple[str, str], str] = {}
    for e in workflow.edges:
        key = (e.source, e.target)
        if key in pairs:
            raise _fail(
                f"Duplicate edge {e.source} -> {e.target}",
                VALIDATION_DUPLICATE_EDGE,
                edge_ids=[pairs[key], e.id],
                source=e.source,
                target=e.target,
            )
        pairs[key] = e.id

    for e in workflow.edges:
        if e.source == e.target:
            raise _fail(f"Self-loop on node '{e.source}'", VALIDATION_SELF_LOOP, edge_id=e.id, node_id=e.source)


def _check_config(workflow: Workflow, registry: NodeTypeRegistry) -> None:
    for n in workflow.nodes:
        spec = registry.get(n.type)
        missing = [k for k in spec.required_keys if not str(n.config.get(k) or "").strip()]
        if missing:
            raise _fail(
                f"Node '{n.id}' ({n.type.value}) is missing required config: {', '.join(missing)}",
                VALIDATION_MISSING_CONFIG,
                node_id=n.id,
                keys=missing,
            )


def _check_policy(workflow: Workflow) -> None:
    for n in workflow.nodes:
        problems: List[str] = []
        if n.required_inputs is not None and n.required_inputs < 0:
            problems.append("requiredInputs must be >= 0")
        if n.timeout is not None and n.timeout <= 0:
            problems.append("timeout must be > 0")
        try:
            parse_timeout_ms(n.config.get("timeout"))
        except ValueError:
            problems.append("config.timeout must be an integer number of ms > 0")
        try:
            parse_flag(n.config.get("wait_for_all"))
        except ValueError:
            problems.append("config.wait_for_all must be true or false")
        rp = n.retry_policy
        if rp is not None:
            if rp.max_attempts < 1:
                problems.append("retryPolicy.maxAttempts must be >= 1")
            if rp.backoff_multiplier <= 0:
                problems.append("retryPolicy.backoffMultiplier must be > 0")
            if rp.initial_delay_ms < 0:
                problems.append("retryPolicy.initialDelayMs must be >= 0")
        if problems:
            raise _fail(
                f"Node '{n.id}' has an invalid execution policy: {'; '.join(problems)}",
                VALIDATION_INVALID_POLICY,
                node_id=n.id,
                problems=problems,
            )


def _collect_warnings(workflow: Workflow) -> List[str]:
    warnings: List[str] = []
    for n in workflow.nodes:
        inbound = len(workflow.inbound(n.id))
        if n.required_inputs is not None and n.required_inputs > inbound:
            warnings.append(
                f"Node '{n.id}' requires {n.required_inputs} inputs but has {inbound} inbound edge(s); "
                f"clamped to {inbound}"
            )
    return warnings


def validate_workflow(
    workflow: Workflow,
    registry: Optional[NodeTypeRegistry] = None,
) -> ValidationResult:
    """
    Valida a estrutura completa de um workflow.

    Args:
        workflow (Workflow): Workflow a validar.
        registry (Optional[NodeTypeRegistry]): Catálogo de specs; o padrão
            do processo quando omitido.

    Returns:
        ValidationResult: Resumo do workflow válido.

    Raises:
        ValidationError: Primeira violação encontrada.
        UnknownNodeType: Tipo de nó sem spec no catálogo.
        CycleError: Workflow cíclico.
    """
    registry = registry or default_registry()

    _check_identity(workflow, registry)
    _check_edges(workflow)
    _check_config(workflow, registry)
    _check_policy(workflow)
    order = topological_order(workflow.nodes, workflow.edges)

    return ValidationResult(
        node_count=len(workflow.nodes),
        edge_count=len(workflow.edges),
        execution_order=order,
        warnings=_collect_warnings(workflow),
    )
