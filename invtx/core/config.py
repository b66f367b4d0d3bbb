"""
GroupConfig - configuration for transaction groups.

Example:
    >>> from invtx import GroupConfig, configure
    >>>
    >>> configure(GroupConfig(allowed_retries=3, metrics=True))
    >>>
    >>> # or from INVTX_* environment variables / .env
    >>> configure(GroupConfig.from_env())
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from invtx.core.context import ExecutionContext
from invtx.core.exceptions import ConfigurationError
from invtx.core.logger import get_logger
from invtx.core.retry import DEFAULT_ALLOWED_RETRIES, RetryPolicy

@dataclass
class GroupConfig:
    """
    Configuration shared by transaction groups.

    Attributes:
        allowed_retries: Failed attempts after which a transaction is abandoned
        allow_cheats: Default bypass flag; disables all validation when True
        metrics: Export Prometheus metrics for each execution cycle
        log_json: Emit structured JSON logs from ``setup_transaction_logging``
        metrics_prefix: Prometheus metric name prefix
    """

    allowed_retries: int = DEFAULT_ALLOWED_RETRIES
    allow_cheats: bool = False
    metrics: bool = False
    log_json: bool = False
    metrics_prefix: str = "invtx"

    def __post_init__(self) -> None:
        if self.allowed_retries < 1:
            msg = f"allowed_retries must be at least 1, got {self.allowed_retries}"
            raise ConfigurationError(msg)
        if self.allow_cheats:
            get_logger(__name__).warning(
                "Inventory cheats are allowed: transactions will not be validated"
            )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(allowed_retries=self.allowed_retries)

    def context(self) -> ExecutionContext:
        """Default execution context derived from this configuration."""
        return ExecutionContext(allow_cheats=self.allow_cheats)

    def with_cheats(self, allow_cheats: bool = True) -> GroupConfig:
        return replace(self, allow_cheats=allow_cheats)

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> GroupConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            INVTX_ALLOWED_RETRIES: Retry bound (default 5)
            INVTX_ALLOW_CHEATS: Disable validation (true/false)
            INVTX_METRICS: Enable Prometheus metrics (true/false)
            INVTX_LOG_JSON: JSON log output (true/false)
            INVTX_METRICS_PREFIX: Prometheus metric prefix

        Args:
            load_dotenv: If True, loads .env file before reading variables
        """
        from invtx.core.env import get_env

        env = get_env()
        if load_dotenv:
            env.load()

        return cls(
            allowed_retries=env.get_int("INVTX_ALLOWED_RETRIES", DEFAULT_ALLOWED_RETRIES),
            allow_cheats=env.get_bool("INVTX_ALLOW_CHEATS", False),
            metrics=env.get_bool("INVTX_METRICS", False),
            log_json=env.get_bool("INVTX_LOG_JSON", False),
            metrics_prefix=env.get("INVTX_METRICS_PREFIX", "invtx") or "invtx",
        )


_global_config: GroupConfig | None = None


def get_config() -> GroupConfig:
    """Get the global group configuration."""
    global _global_config
    if _global_config is None:
        _global_config = GroupConfig()
    return _global_config


def configure(config: GroupConfig) -> None:
    """Set the global group configuration."""
    global _global_config
    _global_config = config
    get_logger(__name__).debug(f"invtx configured: {config}")


def reset_config() -> None:
    """Drop the global configuration (next ``get_config()`` returns defaults)."""
    global _global_config
    _global_config = None
