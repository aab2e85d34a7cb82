# src/dagflow/__init__.py
"""
dagflow: engine de workflows em DAG.

Pacote raiz do projeto. A implementação canônica vive em `dagflow.core`;
handlers embutidos em `dagflow.handlers`; relatório de execução em
`dagflow.report`; e a superfície de comandos em `dagflow.service`.
"""

__version__ = "0.1.0"
