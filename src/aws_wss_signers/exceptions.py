# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from enum import StrEnum
from typing import ClassVar


class AWSSDKWarning(UserWarning): ...


class SigningErrorKind(StrEnum):
    """The category of failure reported by a signing call."""

    INVALID_ENDPOINT = "InvalidEndpoint"
    MALFORMED_ENDPOINT = "MalformedEndpoint"
    DUPLICATE_PARAMETER_KEY = "DuplicateParameterKey"
    CRYPTO_FAILURE = "CryptoFailure"


class BaseAWSSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""


class SigningError(BaseAWSSDKException):
    """Base exception for failures while producing a presigned URL."""

    kind: ClassVar[SigningErrorKind]


class InvalidEndpointError(SigningError, ValueError):
    """The endpoint is not a ``wss://`` URL with a host."""

    kind = SigningErrorKind.INVALID_ENDPOINT


class MalformedEndpointError(SigningError, ValueError):
    """The endpoint already carries a query string or fragment."""

    kind = SigningErrorKind.MALFORMED_ENDPOINT


class DuplicateParameterKeyError(SigningError, ValueError):
    """A query parameter name is repeated or reserved for SigV4."""

    kind = SigningErrorKind.DUPLICATE_PARAMETER_KEY

    def __init__(self, message: str, *, key: str):
        super().__init__(message)
        self.key = key


class CryptoFailureError(SigningError):
    """The hashing primitives rejected their input."""

    kind = SigningErrorKind.CRYPTO_FAILURE


class MissingExpectedParameterException(BaseAWSSDKException, ValueError):
    """Some APIs require specific signing properties to be present."""
