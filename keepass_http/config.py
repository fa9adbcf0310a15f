"""
Client Configuration — Store address, deadlines and shared key loading.

Settings can be read from environment variables:
    KEEPASSHTTP_HOST = <hostname>                 (default: localhost)
    KEEPASSHTTP_PORT = <int>                      (default: 19455)
    KEEPASSHTTP_TIMEOUT = <seconds>               (default: 60)
    KEEPASSHTTP_ASSOCIATE_TIMEOUT = <seconds>     (default: 120)
    KEEPASSHTTP_DEBUG = <true|false>              (default: false)
    KEEPASSHTTP_KEY = <base64-encoded 32-byte key>

Security Note:
    Never log key material.
"""
import os
import base64
import binascii
import secrets
import logging

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from .crypto import KEY_LENGTH
from .exceptions import ConfigurationError

logger = logging.getLogger("keepass_http")

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 19455
DEFAULT_TIMEOUT = 60.0
# associate blocks until the user approves the key inside KeePass
DEFAULT_ASSOCIATE_TIMEOUT = 120.0

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def load_key(env: str = "KEEPASSHTTP_KEY") -> bytes:
    """Load the shared key from a base64-encoded environment variable.

    Args:
        env: Name of the environment variable holding the key.

    Returns:
        Raw 32-byte shared key.

    Raises:
        ConfigurationError: If the variable is unset, not base64, or does
            not decode to exactly 32 bytes.
    """
    value = os.environ.get(env)
    if not value:
        raise ConfigurationError(
            f"{env} environment variable is not set. "
            f"Set {env}=<base64-encoded-32-byte-key>"
        )
    try:
        key = base64.b64decode(value, validate=True)
    except binascii.Error as err:
        raise ConfigurationError(f"{env} is not valid base64") from err
    if len(key) != KEY_LENGTH:
        raise ConfigurationError(
            f"{env} must decode to exactly {KEY_LENGTH} bytes, got {len(key)}"
        )
    return key


def generate_key() -> str:
    """Generate a random 32-byte shared key and return it as base64.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(KEY_LENGTH)).decode("ascii")


class ClientConfig(BaseModel):
    """Validated client configuration.

    ``create()`` and ``from_env()`` report invalid values as
    ``ConfigurationError``; calling the model directly raises pydantic's
    own ``ValidationError``.
    """

    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    associate_timeout: float = Field(default=DEFAULT_ASSOCIATE_TIMEOUT, gt=0)
    debug: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_timeouts(self) -> "ClientConfig":
        """The associate deadline can not be shorter than the query one."""
        if self.associate_timeout < self.timeout:
            raise ValueError(
                f"associate_timeout ({self.associate_timeout}) must not be "
                f"lower than timeout ({self.timeout})"
            )
        return self

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    @classmethod
    def create(cls, **kwargs) -> "ClientConfig":
        """Build a config, reporting invalid values as ConfigurationError."""
        try:
            return cls(**kwargs)
        except PydanticValidationError as err:
            raise ConfigurationError(str(err)) from err

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create ClientConfig by loading values from environment.

        Returns:
            Populated ClientConfig instance.
        """
        values: dict = {}
        if host := os.environ.get("KEEPASSHTTP_HOST"):
            values["host"] = host
        if port := os.environ.get("KEEPASSHTTP_PORT"):
            values["port"] = port
        if timeout := os.environ.get("KEEPASSHTTP_TIMEOUT"):
            values["timeout"] = timeout
        if associate := os.environ.get("KEEPASSHTTP_ASSOCIATE_TIMEOUT"):
            values["associate_timeout"] = associate
        debug = os.environ.get("KEEPASSHTTP_DEBUG")
        if debug is not None:
            values["debug"] = debug.strip().lower() in _TRUE_VALUES
        config = cls.create(**values)
        logger.debug("Loaded client config for %s", config.base_url)
        return config
