"""
Transport configuration for objstore_transport.

Settings that used to be compiled-in constants (user agent, connect
timeout, header capture format) are carried by an immutable
TransportConfig handed to a transport at construction time.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from . import __version__
from .buffers import DEFAULT_CHUNK_SIZE, DEFAULT_SPOOL_SIZE
from .exceptions import ConfigError


DEFAULT_USER_AGENT = f"objstore-transport/{__version__}"
DEFAULT_CONNECT_TIMEOUT = 30.0

# Option names accepted by from_mapping besides the field names themselves
_OPTION_ALIASES = {
    "userAgent": "user_agent",
    "userAgentSuffix": "user_agent_suffix",
    "connectTimeoutSeconds": "connect_timeout",
    "connect_timeout_seconds": "connect_timeout",
    "headerBlockIncludesStatusLine": "header_block_includes_status_line",
    "spoolSize": "spool_size",
    "chunkSize": "chunk_size",
    "verifyTls": "verify_tls",
}


@dataclass(frozen=True)
class TransportConfig:
    """
    Immutable transport settings.

    ``connect_timeout`` bounds connection establishment only; transfers
    themselves are not time-limited so that large objects can move.
    ``user_agent_suffix`` replaces the suffix each backend appends to
    ``user_agent`` when set.
    """

    user_agent: str = DEFAULT_USER_AGENT
    user_agent_suffix: Optional[str] = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    header_block_includes_status_line: bool = True
    spool_size: int = DEFAULT_SPOOL_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    verify_tls: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.user_agent, str) or not self.user_agent:
            raise ConfigError("user_agent must be a non-empty string")

        if self.user_agent_suffix is not None and not isinstance(self.user_agent_suffix, str):
            raise ConfigError("user_agent_suffix must be a string")

        if isinstance(self.connect_timeout, bool) or not isinstance(self.connect_timeout, (int, float)):
            raise ConfigError("connect_timeout must be a number")

        if self.connect_timeout <= 0:
            raise ConfigError("connect_timeout must be positive")

        if self.spool_size < 0:
            raise ConfigError("spool_size must be non-negative")

        if self.chunk_size <= 0:
            raise ConfigError("chunk_size must be positive")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "TransportConfig":
        """
        Build a config from a plain mapping.

        Keys may be field names (``connect_timeout``) or their camelCase
        option names (``connectTimeoutSeconds``).

        Args:
            options: Option names mapped to values

        Returns:
            New TransportConfig

        Raises:
            ConfigError: On unknown options or invalid values
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}

        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown transport option: {key}")
            values[name] = value

        return cls(**values)

    def with_user_agent_suffix(self, suffix: Optional[str]) -> "TransportConfig":
        """Create a new config with a different user agent suffix."""
        return replace(self, user_agent_suffix=suffix)

    def with_connect_timeout(self, timeout: float) -> "TransportConfig":
        """Create a new config with a different connect timeout."""
        return replace(self, connect_timeout=timeout)

    def with_status_line(self, included: bool) -> "TransportConfig":
        """Create a new config that does or does not capture the status line."""
        return replace(self, header_block_includes_status_line=included)

    def user_agent_string(self, backend_suffix: str = "") -> str:
        """
        Full User-Agent value sent on the wire.

        Args:
            backend_suffix: Suffix identifying the backend, used unless
                the config carries its own

        Returns:
            ``user_agent`` followed by the effective suffix
        """
        suffix = backend_suffix if self.user_agent_suffix is None else self.user_agent_suffix
        return f"{self.user_agent}{suffix}"
