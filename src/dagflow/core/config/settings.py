# src/dagflow/core/config/settings.py
"""
Settings tipados do engine, derivados da configuração efetiva.

A configuração carregada por `load_config` é um dict livre; este módulo
interpreta apenas as seções que o engine consome e rejeita valores fora
do domínio com `InvalidConfigValueError`.

Seções reconhecidas (demais chaves são ignoradas):

    engine:
      max_parallelism: 4        # >= 1
      default_timeout_ms: null  # > 0 ou null
      cancel_grace_ms: 1000     # >= 0
      default_retry: null       # {maxAttempts, backoffMultiplier, initialDelayMs}
    checkpoint:
      enabled: false
      root_dir: null            # null → store em memória
    progress:
      channel: workflow-progress

Decisões arquiteturais:
    - Defaults explícitos em `EngineSettings()`; nenhum valor vem de env vars
    - Booleanos e números são verificados por tipo, sem coerção de strings
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from dagflow.core.graph.model import RetryPolicy

from .errors import InvalidConfigValueError


DEFAULT_PROGRESS_CHANNEL = "workflow-progress"


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidConfigValueError(f"'{name}' deve ser um mapa, recebido: {type(value).__name__}")
    return value


def _int(section: Mapping[str, Any], key: str, path: str, *, default: Optional[int], minimum: int) -> Optional[int]:
    value = section.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise InvalidConfigValueError(f"'{path}.{key}' deve ser inteiro, recebido: {value!r}")
    if value < minimum:
        raise InvalidConfigValueError(f"'{path}.{key}' deve ser >= {minimum}, recebido: {value!r}")
    return int(value)


def _retry(raw: Any) -> Optional[RetryPolicy]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise InvalidConfigValueError("'engine.default_retry' deve ser um mapa")
    policy = RetryPolicy.from_dict(raw)
    if policy.max_attempts < 1:
        raise InvalidConfigValueError("'engine.default_retry.maxAttempts' deve ser >= 1")
    if policy.backoff_multiplier <= 0:
        raise InvalidConfigValueError("'engine.default_retry.backoffMultiplier' deve ser > 0")
    if policy.initial_delay_ms < 0:
        raise InvalidConfigValueError("'engine.default_retry.initialDelayMs' deve ser >= 0")
    return policy


@dataclass(frozen=True)
class EngineSettings:
    """Parâmetros operacionais do engine (concorrência, timeouts, checkpoints)."""

    max_parallelism: int = 4
    default_timeout_ms: Optional[int] = None
    cancel_grace_ms: int = 1000
    default_retry: Optional[RetryPolicy] = None
    checkpoint_enabled: bool = False
    checkpoint_root_dir: Optional[str] = None
    progress_channel: str = DEFAULT_PROGRESS_CHANNEL

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "EngineSettings":
        """
        Interpreta a configuração efetiva.

        Raises:
            InvalidConfigValueError: Se algum valor estiver fora do domínio.
        """
        config = config or {}
        engine = _section(config, "engine")
        checkpoint = _section(config, "checkpoint")
        progress = _section(config, "progress")

        enabled = checkpoint.get("enabled", False)
        if not isinstance(enabled, bool):
            raise InvalidConfigValueError(f"'checkpoint.enabled' deve ser booleano, recebido: {enabled!r}")

        root_dir = checkpoint.get("root_dir")
        if root_dir is not None and not isinstance(root_dir, str):
            raise InvalidConfigValueError("'checkpoint.root_dir' deve ser string ou null")

        channel = progress.get("channel", DEFAULT_PROGRESS_CHANNEL)
        if not isinstance(channel, str) or not channel.strip():
            raise InvalidConfigValueError("'progress.channel' deve ser uma string não vazia")

        return cls(
            max_parallelism=_int(engine, "max_parallelism", "engine", default=4, minimum=1) or 4,
            default_timeout_ms=_int(engine, "default_timeout_ms", "engine", default=None, minimum=1),
            cancel_grace_ms=_int(engine, "cancel_grace_ms", "engine", default=1000, minimum=0) or 0,
            default_retry=_retry(engine.get("default_retry")),
            checkpoint_enabled=enabled,
            checkpoint_root_dir=root_dir,
            progress_channel=channel,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": {
                "max_parallelism": self.max_parallelism,
                "default_timeout_ms": self.default_timeout_ms,
                "cancel_grace_ms": self.cancel_grace_ms,
                "default_retry": None if self.default_retry is None else self.default_retry.to_dict(),
            },
            "checkpoint": {
                "enabled": self.checkpoint_enabled,
                "root_dir": self.checkpoint_root_dir,
            },
            "progress": {"channel": self.progress_channel},
        }
