"""Operator configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .constants import DEFAULT_IMAGE
from .utils.errors import ConfigError


@dataclass(frozen=True)
class OperatorConfig:
    """Runtime settings for the operator process."""

    workers: int = 4
    resync_interval_seconds: float = 300.0
    progress_requeue_seconds: float = 5.0
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 60.0
    pass_timeout_seconds: float = 30.0
    conflict_retries: int = 3
    metrics_port: int = 8080
    image: str = DEFAULT_IMAGE
    request_timeout_seconds: float = 10.0
    rate_limit_per_second: float = 10.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ConfigError("WORKERS must be at least 1")
        if self.conflict_retries < 1:
            raise ConfigError("CONFLICT_RETRIES must be at least 1")
        for field_name in (
            "resync_interval_seconds",
            "progress_requeue_seconds",
            "backoff_base_seconds",
            "backoff_max_seconds",
            "pass_timeout_seconds",
            "request_timeout_seconds",
            "rate_limit_per_second",
        ):
            if getattr(self, field_name) <= 0:
                raise ConfigError(f"{field_name} must be positive")
        if self.backoff_max_seconds < self.backoff_base_seconds:
            raise ConfigError("BACKOFF_MAX_SECONDS must not be lower than BACKOFF_BASE_SECONDS")
        if not self.image:
            raise ConfigError("NGINX_IMAGE must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OperatorConfig:
        """Build the configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            Validated OperatorConfig

        Raises:
            ConfigError: If a variable cannot be parsed or is out of range
        """
        env = os.environ if environ is None else environ

        def _get(name: str, cast: type, default: object) -> object:
            raw = env.get(name)
            if raw is None or raw == "":
                return default
            try:
                return cast(raw)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {name}: {raw!r}") from e

        return cls(
            workers=_get("WORKERS", int, cls.workers),
            resync_interval_seconds=_get("RESYNC_INTERVAL_SECONDS", float, cls.resync_interval_seconds),
            progress_requeue_seconds=_get("PROGRESS_REQUEUE_SECONDS", float, cls.progress_requeue_seconds),
            backoff_base_seconds=_get("BACKOFF_BASE_SECONDS", float, cls.backoff_base_seconds),
            backoff_max_seconds=_get("BACKOFF_MAX_SECONDS", float, cls.backoff_max_seconds),
            pass_timeout_seconds=_get("PASS_TIMEOUT_SECONDS", float, cls.pass_timeout_seconds),
            conflict_retries=_get("CONFLICT_RETRIES", int, cls.conflict_retries),
            metrics_port=_get("METRICS_PORT", int, cls.metrics_port),
            image=_get("NGINX_IMAGE", str, cls.image),
            request_timeout_seconds=_get("K8S_REQUEST_TIMEOUT_SECONDS", float, cls.request_timeout_seconds),
            rate_limit_per_second=_get("K8S_RATE_LIMIT_PER_SECOND", float, cls.rate_limit_per_second),
            log_level=_get("LOG_LEVEL", str, cls.log_level),
        )
