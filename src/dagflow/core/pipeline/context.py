# src/dagflow/core/pipeline/context.py
"""
Contexto de execução de uma run.

Este módulo define o `RunContext`, a estrutura canônica que acompanha uma
run do executor e concentra seus registros observáveis.

O RunContext atua como o único meio permitido de:
    - registro de logs estruturados de execução
    - coleta de warnings não fatais associados a nós
    - acesso à configuração efetiva da run

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Ausência de logger global: o log é dado, não efeito colateral
    - Estrutura simples e testável

Invariantes:
    - Logs sempre incluem `run_id`, `node_id`, `level`, `message` e `timestamp`
    - Eventos são mantidos na ordem de chamada
    - Warnings são agrupados por `node_id`

Limites explícitos:
    - Não executa nós
    - Não decide políticas de execução
    - Não persiste dados automaticamente
    - Não registra eventos no Manifest

Este módulo existe para garantir isolamento, clareza e
rastreabilidade na execução de workflows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# node_id usado em eventos de escopo da run (não associados a um nó)
RUN_SCOPE = "<run>"


@dataclass
class RunContext:
    """
    Contexto de execução de uma run.

    Campos:
        - run_id: identificador único da execução
        - workflow_id: workflow executado
        - created_at: timestamp UTC de criação
        - config: configuração efetiva
        - meta: metadados livres (ex.: origem, checkpoint de resume)
        - events: log estruturado
        - warnings: warnings por node_id
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any] = field(default_factory=dict)
    workflow_id: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    def log(self, *, node_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "node_id": node_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, node_id: str, message: str) -> None:
        self.warnings.setdefault(node_id, []).append(message)
        self.log(node_id=node_id, level="warning", message=message)

    def events_for(self, node_id: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("node_id") == node_id]
