# src/dagflow/handlers/__init__.py
"""
Handlers embutidos (processamento de dados puro, sem efeitos colaterais).

Apenas Aggregator, Transform e Filter possuem handler embutido. Tipos
de integração (Shell, AiPrompt, Database, TradeAgent, HTTPRequest,
Email, Scheduler, FileOperation, Webhook) dependem de handlers
registrados pela aplicação hospedeira.
"""

from dagflow.core.graph.model import NodeType
from dagflow.core.pipeline.handler import HandlerRegistry

from .aggregator import AggregatorHandler
from .filter import FilterHandler
from .transform import TransformHandler


def default_handlers() -> HandlerRegistry:
    """Registry novo contendo os handlers embutidos."""
    return HandlerRegistry(
        {
            NodeType.AGGREGATOR: AggregatorHandler(),
            NodeType.TRANSFORM: TransformHandler(),
            NodeType.FILTER: FilterHandler(),
        }
    )


__all__ = ["AggregatorHandler", "FilterHandler", "TransformHandler", "default_handlers"]
