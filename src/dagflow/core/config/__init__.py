# src/dagflow/core/config/__init__.py
"""
Camada de configuração do dagflow.

Responsabilidades do pacote:
    - Carregamento de arquivos (defaults + overrides locais), YAML ou JSON
    - Resolução via deep-merge determinístico
    - Hash canônico da configuração efetiva (rastreabilidade)
    - Interpretação tipada das seções do engine (`EngineSettings`)

Princípios fundamentais:
    - Configuração é declarativa; nenhuma heurística implícita
    - Overrides são sempre explícitos
    - A mesma entrada produz sempre a mesma configuração final

Limites explícitos:
    - Não executa workflows
    - Não lê variáveis de ambiente
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config, load_config_with_hash
from .merge import deep_merge
from .settings import EngineSettings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "EngineSettings",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "deep_merge",
    "load_config",
    "load_config_with_hash",
]
