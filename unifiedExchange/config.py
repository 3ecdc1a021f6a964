"""
Adapter configuration.

Credentials and runtime knobs are read from the environment (a local ``.env``
file is honoured through python-dotenv) so that secrets never live in code.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class ExchangeConfig:
    api_key: Optional[str] = None
    secret: Optional[str] = None
    hostname: Optional[str] = None
    timeout: float = 10.0
    max_retries: int = 3
    default_type: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    # {"exact": {code_or_message: ErrorClass}, "broad": {fragment: ErrorClass}}
    exceptions: Dict[str, Dict[str, Type[Exception]]] = field(default_factory=dict)
    common_currencies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, exchange: str, dotenv: bool = True) -> "ExchangeConfig":
        """
        Build a config from ``<EXCHANGE>_*`` environment variables.

        Args:
            exchange: Exchange identifier, used as the variable prefix
                (``"bingx"`` -> ``BINGX_API_KEY``).
            dotenv: Load a ``.env`` file first when True.

        Returns:
            ExchangeConfig: Config with every variable that was set applied.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        if dotenv:
            load_dotenv()
        prefix = exchange.upper()

        def _env(name: str) -> Optional[str]:
            value = os.getenv(f"{prefix}_{name}")
            return value if value else None

        config = cls(
            api_key=_env("API_KEY"),
            secret=_env("SECRET"),
            hostname=_env("HOSTNAME"),
            default_type=_env("DEFAULT_TYPE"),
        )
        timeout = _env("TIMEOUT")
        if timeout is not None:
            try:
                config.timeout = float(timeout)
            except ValueError:
                raise ValueError(f"{prefix}_TIMEOUT must be a number, got {timeout!r}")
        max_retries = _env("MAX_RETRIES")
        if max_retries is not None:
            try:
                config.max_retries = int(max_retries)
            except ValueError:
                raise ValueError(f"{prefix}_MAX_RETRIES must be an integer, got {max_retries!r}")
            if config.max_retries < 0:
                raise ValueError(f"{prefix}_MAX_RETRIES must be >= 0, got {max_retries!r}")
        logger.debug(
            "Loaded %s config from env (api_key set: %s, default_type: %s)",
            exchange,
            config.api_key is not None,
            config.default_type,
        )
        return config
