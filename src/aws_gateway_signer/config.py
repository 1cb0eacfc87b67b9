# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import configparser
import logging
import os
import warnings
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Literal

from ._identity import AWSCredentialIdentity
from .exceptions import MalformedInputException, SignerWarning, UnmappedHostException

_LOGGER = logging.getLogger(__name__)

DEFAULT_REGION = "ap-northeast-1"
DEFAULT_SERVICE = "execute-api"


@dataclass(frozen=True, kw_only=True)
class SigningConfig:
    """Credentials and scope used for a single signing operation.

    ``host`` is the host the signature is computed against. Requests may be sent to
    a custom domain while being signed for the underlying API gateway host.
    """

    access_key: str
    secret_key: str
    host: str
    session_token: str | None = None
    region: str = DEFAULT_REGION
    service: str = DEFAULT_SERVICE

    def __post_init__(self) -> None:
        for name in ("access_key", "secret_key", "host", "region", "service"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise MalformedInputException(
                    f"Expected {name} to be a str but received {type(value)}."
                )
        if self.session_token is not None and not isinstance(self.session_token, str):
            raise MalformedInputException(
                "Expected session_token to be a str or None but received "
                f"{type(self.session_token)}."
            )

    @classmethod
    def from_identity(
        cls,
        identity: AWSCredentialIdentity,
        *,
        host: str,
        region: str = DEFAULT_REGION,
        service: str = DEFAULT_SERVICE,
    ) -> "SigningConfig":
        if identity.is_expired:
            warnings.warn(
                f"Signing with an identity that expired at {identity.expiration}. "
                "The service will reject the request until the credentials are "
                "refreshed.",
                SignerWarning,
            )
        return cls(
            access_key=identity.access_key_id,
            secret_key=identity.secret_access_key,
            session_token=identity.session_token,
            host=host,
            region=region,
            service=service,
        )


class HostResolver:
    """Maps the base URL a request is sent to onto the host it must be signed for.

    :param host_mapping: Base URLs, such as ``https://dev.example.com``, mapped to
        the API gateway host the signature is computed against.
    :param strict: When ``True`` an unmapped base URL raises
        :class:`UnmappedHostException`. When ``False`` the first mapped host is used
        and a warning is logged.
    """

    def __init__(self, host_mapping: Mapping[str, str], *, strict: bool = True):
        self._host_mapping = dict(host_mapping)
        self._strict = strict

    def __call__(self, base_url: str | None) -> str:
        return self.resolve(base_url)

    def resolve(self, base_url: str | None) -> str:
        if base_url is not None:
            for candidate in (base_url, base_url.rstrip("/")):
                if candidate in self._host_mapping:
                    return self._host_mapping[candidate]

        if self._strict or not self._host_mapping:
            raise UnmappedHostException(
                f"No signing host is configured for base URL {base_url!r}. Known "
                f"base URLs: {', '.join(self._host_mapping) or '(none)'}"
            )

        fallback = next(iter(self._host_mapping.values()))
        _LOGGER.warning(
            "Base URL %r is not mapped to a signing host. Falling back to %s.",
            base_url,
            fallback,
        )
        return fallback


SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_CREDENTIALS_FILE = "credentials_file"
SOURCE_DEFAULT = "default"

SourceType = Literal["constructor", "environment", "credentials_file", "default"]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(value=..., source={self.source!r})"


class SigningConfigResolver:
    """Resolves signing configuration with precedence.

    Each field is taken from the first source that provides it:

    1. the constructor
    2. the environment
    3. the shared credentials file profile (``~/.aws/credentials``)
    4. the field default

    The constructor uses the sentinel value (...) so that "not provided" can be told
    apart from "explicitly set to None".
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "access_key": {
            "env_var": "AWS_ACCESS_KEY_ID",
            "config_key": "aws_access_key_id",
            "default": "",
            "required": True,
        },
        "secret_key": {
            "env_var": "AWS_SECRET_ACCESS_KEY",
            "config_key": "aws_secret_access_key",
            "default": "",
            "required": True,
        },
        "session_token": {
            "env_var": "AWS_SESSION_TOKEN",
            "config_key": "aws_session_token",
            "default": None,
        },
        "region": {
            "env_var": "AWS_REGION",
            "config_key": "region",
            "default": DEFAULT_REGION,
        },
        "service": {
            "default": DEFAULT_SERVICE,
        },
        "base_url": {
            "env_var": "GATEWAY_BASE_URL",
            "default": None,
        },
    }

    def __init__(
        self,
        *,
        access_key: str = ...,  # type: ignore[assignment]
        secret_key: str = ...,  # type: ignore[assignment]
        session_token: str | None = ...,  # type: ignore[assignment]
        region: str = ...,  # type: ignore[assignment]
        service: str = ...,  # type: ignore[assignment]
        base_url: str | None = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        self._values: dict[str, ConfigValue] = {}
        self._resolved = False

    def resolve(
        self,
        *,
        environment: Mapping[str, str] | None = None,
        credentials_file_loader: Callable[[], Mapping[str, str]] | None = None,
    ) -> None:
        """Resolve configuration from all sources.

        :param environment: Environment variables to read. Defaults to ``os.environ``.
        :param credentials_file_loader: Custom loader for the credentials file
            profile.
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are "
                "not allowed."
            )

        env_values = os.environ if environment is None else environment
        credentials_file_values = (
            credentials_file_loader or self._load_credentials_file_values
        )()

        for field_name, field_info in self.CONFIG_FIELDS.items():
            resolved = self._resolve_field(
                field_name, field_info, env_values, credentials_file_values
            )
            if field_info.get("required") and not resolved.value:
                _LOGGER.warning(
                    "No value found for %s. Requests will be signed but the service "
                    "will reject them.",
                    field_name,
                )
            _LOGGER.debug("Resolved %s from %s", field_name, resolved.source)
            self._values[field_name] = resolved

        self._resolved = True

    def _load_credentials_file_values(self) -> dict[str, str]:
        credentials_path = Path(
            os.environ.get(
                "AWS_SHARED_CREDENTIALS_FILE", Path.home() / ".aws" / "credentials"
            )
        )
        if not credentials_path.exists():
            return {}

        parser = configparser.ConfigParser()
        parser.read(credentials_path)

        profile = os.environ.get("AWS_PROFILE", "default")

        if profile not in parser:
            return {}

        return dict(parser[profile])

    def _resolve_field(
        self,
        field_name: str,
        field_info: dict[str, Any],
        env_values: Mapping[str, str],
        credentials_file_values: Mapping[str, str],
    ) -> ConfigValue:
        # Empty environment or file values count as unset.
        env_var = field_info.get("env_var")
        config_key = field_info.get("config_key")

        if field_name in self._constructor_values:
            return ConfigValue(self._constructor_values[field_name], SOURCE_CONSTRUCTOR)
        elif env_var and env_values.get(env_var):
            return ConfigValue(env_values[env_var], SOURCE_ENVIRONMENT)
        elif config_key and credentials_file_values.get(config_key):
            return ConfigValue(
                credentials_file_values[config_key], SOURCE_CREDENTIALS_FILE
            )
        return ConfigValue(field_info["default"], SOURCE_DEFAULT)

    def get(self, field_name: str) -> ConfigValue:
        if not self._resolved:
            raise RuntimeError("Config must be resolved before values are read.")
        return self._values[field_name]

    def signing_config(
        self, host_resolver: Callable[[str | None], str]
    ) -> SigningConfig:
        """Build a :class:`SigningConfig` for the resolved base URL.

        :param host_resolver: Callable mapping the base URL to the signing host,
            usually a :class:`HostResolver`.
        """
        return SigningConfig(
            access_key=self.get("access_key").value,
            secret_key=self.get("secret_key").value,
            session_token=self.get("session_token").value,
            region=self.get("region").value,
            service=self.get("service").value,
            host=host_resolver(self.get("base_url").value),
        )
