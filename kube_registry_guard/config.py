"""Process configuration for the webhook server.

Every setting is resolved through the chain command-line flag, then
environment variable, then built-in default.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Any, Callable, Mapping, Optional

from .policy import Policy

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 443
DEFAULT_CERT_FILE = "/etc/webhook/certs/tls.crt"
DEFAULT_KEY_FILE = "/etc/webhook/certs/tls.key"
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
# the API server caps request bodies at 3 MiB
DEFAULT_MAX_BODY_BYTES = 3 * 1024 * 1024

WHITELIST_ENV_VAR = "WHITELIST_REGISTRIES"


@dataclass(frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cert_file: Optional[str] = DEFAULT_CERT_FILE
    key_file: Optional[str] = DEFAULT_KEY_FILE
    whitelist: tuple[str, ...] = ()
    log_level: str = DEFAULT_LOG_LEVEL
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    @property
    def tls_enabled(self) -> bool:
        return bool(self.cert_file and self.key_file)

    def policy(self) -> Policy:
        return Policy.from_prefixes(self.whitelist)


def parse_port(value: Any) -> int:
    port = int(value)
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def parse_body_limit(value: Any) -> int:
    limit = int(value)
    if limit <= 0:
        raise ValueError(f"body limit must be positive: {limit}")
    return limit


def parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {value}")
    return level


def _parse_whitelist(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return Policy.from_string(value).prefixes
    return Policy.from_prefixes(value).prefixes


def _get_config_value(
    flag_value: Any,
    default: Any,
    env_var: str,
    environ: Mapping[str, str],
    converter: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """Get a setting with fallback chain: flag -> env var -> default.

    Args:
        flag_value: Value given on the command line, None when not given
        default: Default value if neither flag nor env var is set
        env_var: Environment variable name
        environ: Environment mapping to read from
        converter: Optional function to convert the raw value (e.g. int)

    Returns:
        Setting value (converted if converter provided)
    """
    if flag_value is not None:
        return converter(flag_value) if converter else flag_value

    env_value = environ.get(env_var)
    if env_value is not None:
        if converter:
            try:
                return converter(env_value)
            except (ValueError, TypeError):
                logger.warning("Invalid value for %s: %s, using default", env_var, env_value)
                return default
        return env_value

    return default


def load_settings(
    host: Optional[str] = None,
    port: Optional[int] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
    whitelist: Optional[list[str]] = None,
    log_level: Optional[str] = None,
    max_body_bytes: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve Settings from explicit values and the environment.

    Raises:
        ValueError: If an explicitly given port is invalid
    """
    if environ is None:
        environ = os.environ

    settings = Settings(
        host=_get_config_value(host, DEFAULT_HOST, "REGISTRY_GUARD_HOST", environ),
        port=_get_config_value(port, DEFAULT_PORT, "REGISTRY_GUARD_PORT", environ, parse_port),
        cert_file=_get_config_value(
            cert_file, DEFAULT_CERT_FILE, "REGISTRY_GUARD_TLS_CERT_FILE", environ
        ) or None,
        key_file=_get_config_value(
            key_file, DEFAULT_KEY_FILE, "REGISTRY_GUARD_TLS_KEY_FILE", environ
        ) or None,
        whitelist=_get_config_value(whitelist, (), WHITELIST_ENV_VAR, environ, _parse_whitelist),
        log_level=_get_config_value(
            log_level, DEFAULT_LOG_LEVEL, "REGISTRY_GUARD_LOG_LEVEL", environ, parse_log_level
        ),
        max_body_bytes=_get_config_value(
            max_body_bytes,
            DEFAULT_MAX_BODY_BYTES,
            "REGISTRY_GUARD_MAX_BODY_BYTES",
            environ,
            parse_body_limit,
        ),
    )

    if not settings.whitelist:
        logger.warning("registry whitelist is empty, every pod will be rejected")
    return settings
