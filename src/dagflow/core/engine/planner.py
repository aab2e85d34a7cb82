# src/dagflow/core/engine/planner.py
"""
Scheduler estrutural do workflow (ordenação topológica).

Este módulo produz uma ordem de execução topológica determinística dos
nós de um workflow, usada pelo validador (checagem de aciclicidade) e
pelo executor (ordem de despacho).

Princípios fundamentais:
    - O workflow deve formar um DAG válido
    - A ordenação é determinística para a mesma entrada
    - Nenhuma ordem parcial é devolvida em presença de ciclo

Decisões arquiteturais:
    - Algoritmo de Kahn com fila FIFO
    - Empates são resolvidos pela posição de inserção do nó no workflow:
      a fila é semeada na ordem dos nós e sucessores liberados pelo mesmo
      nó entram na fila pela ordem de inserção
    - Arestas paralelas (mesmo source/target) contam uma vez por aresta,
      mantendo o grau de entrada consistente

Invariantes:
    - Para toda aresta (u, v), u aparece antes de v
    - Todo nó aparece exatamente uma vez
    - A mesma entrada produz sempre a mesma ordem

Limites explícitos:
    - Não executa nós
    - Não valida config nem política de execução
    - Não registra eventos de rastreabilidade

Este módulo existe para garantir correção estrutural,
determinismo e previsibilidade no despacho de nós.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Iterable, List, Sequence, Tuple

from dagflow.core.errors import VALIDATION_CYCLE, VALIDATION_DANGLING_EDGE, VALIDATION_DUPLICATE_NODE
from dagflow.core.exceptions import CycleError, ValidationError
from dagflow.core.graph.model import Edge, Node


def _kahn(nodes: Sequence[Node], edges: Iterable[Edge]) -> Tuple[List[str], List[str]]:
    """
    Executa Kahn e devolve `(ordem, residuais)`.

    `residuais` são os nós que nunca atingiram grau de entrada zero, ou
    seja, os que participam de (ou dependem de) um ciclo.

    Raises:
        ValidationError: Id de nó repetido, ou aresta para nó inexistente.
    """
    index: Dict[str, int] = {}
    for i, n in enumerate(nodes):
        if n.id in index:
            raise ValidationError(
                f"Duplicate node id: {n.id}",
                details={"code": VALIDATION_DUPLICATE_NODE, "node_id": n.id},
            )
        index[n.id] = i

    indegree: Dict[str, int] = {nid: 0 for nid in index}
    outgoing: Dict[str, List[str]] = {nid: [] for nid in index}

    for e in edges:
        missing = [x for x in (e.source, e.target) if x not in index]
        if missing:
            raise ValidationError(
                f"Edge '{e.id}' references unknown node(s): {', '.join(missing)}",
                details={"code": VALIDATION_DANGLING_EDGE, "edge_id": e.id, "nodes": missing},
            )
        outgoing[e.source].append(e.target)
        indegree[e.target] += 1

    ready: Deque[str] = deque(nid for nid in index if indegree[nid] == 0)
    order: List[str] = []

    while ready:
        nid = ready.popleft()
        order.append(nid)
        released: List[str] = []
        for child in outgoing[nid]:
            indegree[child] -= 1
            if indegree[child] == 0:
                released.append(child)
        released.sort(key=lambda c: index[c])
        ready.extend(released)

    done = set(order)
    residual = [nid for nid in index if nid not in done]
    return order, residual


def count_sorted(nodes: Sequence[Node], edges: Iterable[Edge]) -> int:
    """Quantidade de nós que Kahn consegue ordenar (== len(nodes) sse acíclico)."""
    order, _ = _kahn(nodes, edges)
    return len(order)


def topological_order(nodes: Sequence[Node], edges: Iterable[Edge]) -> List[str]:
    """
    Produz a ordem topológica determinística dos nós.

    Args:
        nodes (Sequence[Node]): Nós do workflow, na ordem de inserção.
        edges (Iterable[Edge]): Arestas do workflow.

    Returns:
        List[str]: Ids de nós em ordem topológica.

    Raises:
        CycleError: Se houver ciclo. `details["nodes"]` lista os residuais.
        ValidationError: Id de nó repetido, ou aresta para nó inexistente.
    """
    order, residual = _kahn(nodes, edges)
    if residual:
        raise CycleError(
            "Workflow contains a cycle",
            details={"code": VALIDATION_CYCLE, "nodes": residual},
            hint="Remova uma das arestas entre os nós listados.",
        )
    return order
