# tests/conftest.py
"""
Fixtures compartilhados para testes do dagflow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML e dict)
- contexto de execução controlado (RunContext)
- construtores de nós e workflows
- settings de engine com tempos curtos para testes assíncronos

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - Workflows de teste usam o tipo Shell com `cmd` preenchido, pois
      é o tipo mais simples que passa no validador; o comportamento vem
      do handler dummy registrado para ele

Invariantes:
    - Nenhuma fixture executa workflow real
    - Nenhuma fixture realiza I/O

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica condicional complexa
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante a um `config.defaults.yaml` real.

    Usado por:
        - Testes do loader de config
        - Testes de deep-merge (defaults + local)
        - Testes de hashing de config resolvida
    """
    return """\
engine:
  max_parallelism: 4
  default_timeout_ms: null
  cancel_grace_ms: 1000
checkpoint:
  enabled: false
  root_dir: null
progress:
  channel: workflow-progress
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """
    YAML de override local (apenas chaves sobrescritas).

    Returns:
        str: Conteúdo YAML representando configuração local de override.
    """
    return """\
engine:
  max_parallelism: 2
checkpoint:
  enabled: true
"""


@pytest.fixture
def dummy_config() -> dict:
    """Configuração mínima e já resolvida para testes de contexto e engine."""
    return {
        "engine": {"max_parallelism": 4, "cancel_grace_ms": 50},
        "progress": {"channel": "workflow-progress"},
    }


@pytest.fixture
def dummy_ctx(dummy_config):
    """
    RunContext determinístico para testes.

    Decisões arquiteturais:
        - `run_id` e `created_at` são fixos para garantir determinismo
        - O import de RunContext é lazy

    Returns:
        RunContext: Contexto de execução isolado e previsível.
    """
    from dagflow.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        workflow_id="wf-test",
        meta={"source": "pytest"},
    )


# =====================================================
# Graph fixtures
# =====================================================

@pytest.fixture
def make_node():
    """
    Fábrica de nós Shell válidos.

    Kwargs extras viram chaves de config (ex.: `sleep_ms="50"`); os
    campos de política (`required_inputs`, `wait_for_all`, `timeout`,
    `retry_policy`) são repassados ao Node.
    """
    from dagflow.core.graph.model import Node, NodeType

    policy_fields = {"required_inputs", "wait_for_all", "timeout", "retry_policy", "variables", "label"}

    def _make(node_id: str, node_type=NodeType.SHELL, **kwargs):
        policy = {k: kwargs.pop(k) for k in list(kwargs) if k in policy_fields}
        config = {"cmd": f"echo {node_id}"} if NodeType.parse(node_type) == NodeType.SHELL else {}
        config.update({k: str(v) for k, v in kwargs.items()})
        return Node(id=node_id, type=node_type, config=config, **policy)

    return _make


@pytest.fixture
def make_workflow(make_node):
    """
    Fábrica de workflows a partir de ids e pares de arestas.

    Nós passados como string viram nós Shell padrão; instâncias de Node
    são usadas como estão. Arestas recebem id `"<src>-><tgt>"`.
    """
    from dagflow.core.graph.model import Edge, Node, Workflow

    def _make(nodes, edges=(), *, workflow_id: str = "wf-test", name: str = "Test Workflow"):
        built = [n if isinstance(n, Node) else make_node(n) for n in nodes]
        built_edges = [Edge(id=f"{s}->{t}", source=s, target=t) for s, t in edges]
        return Workflow(id=workflow_id, name=name, nodes=built, edges=built_edges)

    return _make


# =====================================================
# Engine fixtures
# =====================================================

@pytest.fixture
def fast_settings():
    """Settings com janela de cancelamento curta, para testes rápidos."""
    from dagflow.core.config.settings import EngineSettings

    return EngineSettings(max_parallelism=4, cancel_grace_ms=50)


@pytest.fixture
def scripted():
    """Instância nova do handler dummy assíncrono dirigido por config."""
    from tests.fixtures.handlers import ScriptedHandler

    return ScriptedHandler()


@pytest.fixture
def shell_handlers(scripted):
    """HandlerRegistry com o handler dummy registrado para o tipo Shell."""
    from dagflow.core.graph.model import NodeType
    from dagflow.core.pipeline.handler import HandlerRegistry

    return HandlerRegistry({NodeType.SHELL: scripted})


@pytest.fixture
def make_call():
    """
    Fábrica de HandlerCall para testar handlers sem passar pelo executor.

    A config recebida já é tratada como interpolada.
    """
    from dagflow.core.graph.model import Node, NodeType
    from dagflow.core.pipeline.cancellation import CancellationToken
    from dagflow.core.pipeline.handler import HandlerCall

    def _make(node_type, config=None, inputs=None, context=None):
        node = Node(id="n1", type=NodeType.parse(node_type), config=dict(config or {}))
        return HandlerCall(
            node=node,
            inputs=dict(inputs or {}),
            context=dict(context or {}),
            config=dict(config or {}),
            token=CancellationToken(),
        )

    return _make
