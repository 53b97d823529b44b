# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import os
from collections.abc import Callable, Mapping
from typing import Any, ClassVar, Literal

from .signers import SigV4SigningProperties

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal[
    "constructor",
    "environment",
    "default",
    "in_code_update",
]

DEFAULT_REGION = "us-east-1"
DEFAULT_SERVICE = "kinesisvideo"

_TRUE_VALUES = ("true", "1")
_FALSE_VALUES = ("false", "0")


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source


class SigningConfig:
    """
    Signing profile configuration with precedence-based resolution.

    Values are resolved in the order constructor, environment, default. The
    environment is only consulted when :meth:`resolve` runs, through the supplied
    loader, so nothing is read implicitly while signing.

    The constructor uses the Ellipsis sentinel (``...``) to tell "not provided"
    apart from an explicit value.
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "region": {
            "env_var": "AWS_REGION",
            "default": DEFAULT_REGION,
            "validator": "_validate_non_empty_string",
        },
        "service": {
            "env_var": "AWS_KVS_SIGNING_SERVICE",
            "default": DEFAULT_SERVICE,
            "validator": "_validate_non_empty_string",
        },
        "sign_session_token": {
            "env_var": "AWS_KVS_SIGN_SESSION_TOKEN",
            "default": True,
            "parser": "_parse_bool",
            "validator": "_validate_bool",
        },
    }

    def __init__(
        self,
        *,
        region: str = ...,  # type: ignore[assignment]
        service: str = ...,  # type: ignore[assignment]
        sign_session_token: bool = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        self._resolved = False

    def resolve(
        self,
        *,
        environment_loader: Callable[[], Mapping[str, str]] | None = None,
    ) -> None:
        """Resolve every field once.

        :param environment_loader: Returns the environment variables to consult.
            Defaults to the process environment.
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are not allowed."
            )

        env_values = (environment_loader or self._load_environment_values)()

        for field_name, field_info in self.CONFIG_FIELDS.items():
            resolved_value = self._resolve_field(
                field_name,
                self._constructor_values,
                env_values,
                field_info["default"],
            )
            setattr(self, f"_{field_name}", resolved_value)

        self._resolved = True

    def _load_environment_values(self) -> Mapping[str, str]:
        return os.environ

    def _resolve_field(
        self,
        field_name: str,
        constructor_values: dict[str, Any],
        env_values: Mapping[str, str],
        default_value: Any,
    ) -> ConfigValue:
        field_config = self.CONFIG_FIELDS[field_name]
        env_var = field_config.get("env_var")
        parser = field_config.get("parser")

        if field_name in constructor_values:
            value = constructor_values[field_name]
            source = SOURCE_CONSTRUCTOR
        elif env_var and env_var in env_values:
            value = env_values[env_var]
            if parser:
                value = getattr(self, parser)(value, env_var)
            source = SOURCE_ENVIRONMENT
        else:
            value = default_value
            source = SOURCE_DEFAULT

        getattr(self, field_config["validator"])(value, field_name)
        return ConfigValue(value, source)

    def _parse_bool(self, value: str, env_var: str) -> bool:
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise ValueError(
            f"{env_var} must be one of {', '.join(_TRUE_VALUES + _FALSE_VALUES)}, "
            f"got {value!r}"
        )

    def _validate_non_empty_string(self, value: Any, field_name: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"{field_name} must be str, got {type(value).__name__}")
        if not value:
            raise ValueError(f"{field_name} must not be empty")

    def _validate_bool(self, value: Any, field_name: str) -> None:
        if not isinstance(value, bool):
            raise TypeError(f"{field_name} must be bool, got {type(value).__name__}")

    def get_config_value_object(self, field_name: str) -> ConfigValue:
        """Get the raw ConfigValue object for a field"""
        if not self._resolved:
            raise RuntimeError("Config must be resolved before accessing values")
        return getattr(self, f"_{field_name}")

    def signing_properties(self, *, date: str | None = None) -> SigV4SigningProperties:
        """Build the signing properties for a single presigning call.

        :param date: Optional SigV4 timestamp to pin. When omitted the signer's
            clock supplies it.
        """
        properties = SigV4SigningProperties(
            region=self.region,
            service=self.service,
            sign_session_token=self.sign_session_token,
        )
        if date is not None:
            properties["date"] = date
        return properties

    @property
    def region(self) -> str:
        return self.get_config_value_object("region").value

    @region.setter
    def region(self, value: str) -> None:
        self._validate_non_empty_string(value, "region")
        self._region = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def service(self) -> str:
        return self.get_config_value_object("service").value

    @service.setter
    def service(self, value: str) -> None:
        self._validate_non_empty_string(value, "service")
        self._service = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def sign_session_token(self) -> bool:
        return self.get_config_value_object("sign_session_token").value

    @sign_session_token.setter
    def sign_session_token(self, value: bool) -> None:
        self._validate_bool(value, "sign_session_token")
        self._sign_session_token = ConfigValue(value, SOURCE_IN_CODE_UPDATE)
