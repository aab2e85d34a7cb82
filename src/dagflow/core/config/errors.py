# src/dagflow/core/config/errors.py
"""
Exceções da camada de configuração do dagflow.

Hierarquia:
    ConfigError
        ├── DefaultsNotFoundError        arquivo de defaults inexistente
        ├── UnsupportedConfigFormatError extensão diferente de .yaml/.yml/.json
        ├── InvalidConfigRootTypeError   raiz do documento não é um mapa
        ├── ConfigTypeConflictError      tipos incompatíveis no deep-merge
        └── InvalidConfigValueError      valor fora do domínio aceito pelo engine

Falhas de configuração são fatais: nada é corrigido ou inferido.
Elas ficam separadas de `DagflowException` porque acontecem antes de
existir workflow ou run.
"""


class ConfigError(Exception):
    """Base de todos os erros de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo de defaults informado não existe.

    Sem defaults não existe configuração efetiva; o loader não tenta
    criar nem adivinhar um arquivo alternativo.
    """


class UnsupportedConfigFormatError(ConfigError):
    """Formato não suportado. Aceitos (v1): `.yaml`, `.yml`, `.json`."""


class InvalidConfigRootTypeError(ConfigError):
    """A raiz do documento de configuração precisa ser um dict."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"engine": {"max_parallelism": 4}}
        - override: {"engine": "fast"}
    """


class InvalidConfigValueError(ConfigError):
    """
    Valor estruturalmente válido, mas fora do domínio aceito.

    Exemplos: `engine.max_parallelism: 0`, `engine.cancel_grace_ms: -1`,
    `engine.default_retry.maxAttempts: 0`.
    """
