# src/dagflow/core/__init__.py
"""
Core do dagflow.

Este pacote contém a implementação canônica e independente de adapters
do engine de workflows, reunindo todas as responsabilidades essenciais
para modelar, validar, planejar, executar e versionar workflows em DAG.

O core é projetado para ser:
    - determinístico onde a estrutura permite
    - testável de forma isolada
    - livre de dependências de UI, editor gráfico ou serviços externos
    - orientado a contratos explícitos

Componentes principais:
    - config       → resolução de configuração (merge, hashing, settings do engine)
    - graph        → modelo de grafo (Node, Edge, Workflow) e serialização JSON
    - registry     → catálogo de tipos de nó (portas e campos de configuração)
    - pipeline     → contrato de handlers, contexto de execução e cancelamento
    - engine       → validação, ordenação topológica e execução assíncrona
    - traceability → Manifest e Event Log de cada run
    - checkpoint   → log de checkpoints endereçado por conteúdo

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - Separação estrita de responsabilidades entre camadas
    - Estado e efeitos colaterais são sempre rastreáveis

Limites explícitos:
    - Não contém a semântica de negócio dos tipos de nó
    - Não depende de editor, banco de dados ou serviços externos

Este pacote existe como a fonte de verdade operacional do dagflow.
"""
