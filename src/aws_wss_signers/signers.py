# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import hmac
import logging
import warnings
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from hashlib import sha256
from typing import Required, TypedDict

from ._http import QueryParameters, parse_endpoint
from ._identity import AWSCredentialIdentity
from .exceptions import (
    AWSSDKWarning,
    CryptoFailureError,
    DuplicateParameterKeyError,
    MissingExpectedParameterException,
    SigningError,
)
from .interfaces.identity import AWSCredentialsIdentity as _AWSCredentialsIdentity

logger = logging.getLogger(__name__)

SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

PRESIGN_METHOD: str = "GET"
PRESIGN_EXPIRES_SECONDS: int = 299
SIGNED_HEADERS: str = "host"

ALGORITHM_PARAM = "X-Amz-Algorithm"
CREDENTIAL_PARAM = "X-Amz-Credential"
DATE_PARAM = "X-Amz-Date"
EXPIRES_PARAM = "X-Amz-Expires"
SIGNED_HEADERS_PARAM = "X-Amz-SignedHeaders"
SIGNATURE_PARAM = "X-Amz-Signature"
SECURITY_TOKEN_PARAM = "X-Amz-Security-Token"

RESERVED_QUERY_PARAMS: tuple[str, ...] = (
    ALGORITHM_PARAM,
    CREDENTIAL_PARAM,
    DATE_PARAM,
    EXPIRES_PARAM,
    SIGNED_HEADERS_PARAM,
    SIGNATURE_PARAM,
    SECURITY_TOKEN_PARAM,
)


class SigV4SigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: str
    sign_session_token: bool


@dataclass(frozen=True)
class SigningResult:
    """Outcome of a presigning call: either a URL or the error that prevented it."""

    url: str | None = None
    error: SigningError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the presigned URL or raise the recorded error."""
        if self.error is not None:
            raise self.error
        assert self.url is not None
        return self.url


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class PresignedURLSigner:
    """Presigns ``wss://`` endpoints with AWS Signature Version 4 query parameters.

    Only a single signing profile is supported: a ``GET`` request without a body,
    signed over the ``host`` header alone, valid for 299 seconds.
    """

    def __init__(self, *, clock: Callable[[], datetime.datetime] | None = None):
        """Create a signer.

        :param clock: Returns the current time when the signing properties
            don't pin a ``date``. Defaults to the system clock in UTC.
        """
        self._clock = clock or _utc_now

    def presign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        endpoint: str,
        identity: AWSCredentialIdentity,
        query_params: Mapping[str, str] | QueryParameters | None = None,
    ) -> str:
        """Generate a presigned URL for the supplied WebSocket endpoint.

        :param signing_properties: SigV4SigningProperties to define signing primitives
            such as the target service, region, and date.
        :param endpoint: A ``wss://`` endpoint without a query string.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        :param query_params: Additional parameters to sign, such as
            ``X-Amz-ChannelARN``. They must not use reserved SigV4 names.
        """
        self._validate_identity(identity=identity)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=signing_properties
        )
        assert "date" in new_signing_properties
        destination = parse_endpoint(endpoint)
        logger.debug("Presigning WebSocket endpoint for host %s", destination.host)
        self._warn_if_credentials_expire_early(
            identity=identity, signing_properties=new_signing_properties
        )

        query = self._apply_required_params(
            query_params=query_params or {},
            signing_properties=new_signing_properties,
            identity=identity,
        )
        sign_token = new_signing_properties.get("sign_session_token", True)
        if identity.session_token is not None and sign_token:
            query.add(SECURITY_TOKEN_PARAM, identity.session_token)

        # Construct core signing components
        canonical_request = self.canonical_request(
            path=destination.path,
            canonical_query=self.canonical_query_string(query_params=query),
            canonical_headers=self.canonical_headers(host=destination.host),
            signed_headers=SIGNED_HEADERS,
            payload_hash=self.payload_hash(),
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request,
            signing_properties=new_signing_properties,
        )
        signing_key = self.signing_key(
            secret_key=identity.secret_access_key,
            signing_properties=new_signing_properties,
        )
        signature = self.signature(
            string_to_sign=string_to_sign, signing_key=signing_key
        )

        query.add(SIGNATURE_PARAM, signature)
        if identity.session_token is not None and not sign_token:
            query.add(SECURITY_TOKEN_PARAM, identity.session_token)

        return replace(destination, query=query.as_query_string()).build()

    def presign_result(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        endpoint: str,
        identity: AWSCredentialIdentity,
        query_params: Mapping[str, str] | QueryParameters | None = None,
    ) -> SigningResult:
        """Like :meth:`presign`, but reports signing failures as a value.

        Only :class:`SigningError` subclasses are captured. Invalid identities and
        signing properties are programming errors and still raise.
        """
        try:
            url = self.presign(
                signing_properties=signing_properties,
                endpoint=endpoint,
                identity=identity,
                query_params=query_params,
            )
        except SigningError as e:
            logger.debug("Presigning failed with %s", e.kind)
            return SigningResult(error=e)
        return SigningResult(url=url)

    def canonical_query_string(self, *, query_params: QueryParameters) -> str:
        """Sorted, strictly percent-encoded ``name=value`` pairs joined by ``&``.

        The signature parameter is never part of the string being signed.
        """
        if SIGNATURE_PARAM in query_params:
            raise DuplicateParameterKeyError(
                f"{SIGNATURE_PARAM} can't be part of the canonical query string.",
                key=SIGNATURE_PARAM,
            )
        return query_params.as_query_string()

    def canonical_headers(self, *, host: str) -> str:
        return f"host:{host}\n"

    def payload_hash(self) -> str:
        # Presigned WebSocket upgrades never carry a body.
        return EMPTY_SHA256_HASH

    def canonical_request(
        self,
        *,
        path: str,
        canonical_query: str,
        canonical_headers: str,
        signed_headers: str,
        payload_hash: str,
        method: str = PRESIGN_METHOD,
    ) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>

        ``canonical_headers`` already ends in a newline, so the canonical request
        contains an empty line before the signed header list.
        """
        return (
            f"{method}\n"
            f"{path}\n"
            f"{canonical_query}\n"
            f"{canonical_headers}\n"
            f"{signed_headers}\n"
            f"{payload_hash}"
        )

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        signing_properties: SigV4SigningProperties,
    ) -> str:
        """The string to sign concatenates the formal identifier of our signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        the canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest

        :param canonical_request:
            String generated from the `canonical_request` method.
        :param signing_properties:
            SigV4SigningProperties to define signing primitives such as
            the target service, region, and date.
        """
        date = signing_properties.get("date")
        if date is None:
            raise MissingExpectedParameterException(
                "Cannot generate string_to_sign without a valid date "
                f"in your signing_properties. Current value: {date}"
            )
        canonical_request_hash = self._sha256_hex(canonical_request)
        logger.debug("Canonical request hash: %s", canonical_request_hash)
        return (
            f"{SIGV4_ALGORITHM}\n"
            f"{date}\n"
            f"{self.scope(signing_properties=signing_properties)}\n"
            f"{canonical_request_hash}"
        )

    def scope(self, *, signing_properties: SigV4SigningProperties) -> str:
        assert "date" in signing_properties
        formatted_date = signing_properties["date"][0:8]
        region = signing_properties["region"]
        service = signing_properties["service"]
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{formatted_date}/{region}/{service}/aws4_request"

    def signing_key(
        self, *, secret_key: str, signing_properties: SigV4SigningProperties
    ) -> bytes:
        """Derive the key scoped to the signing date, region and service.

        Every step feeds the raw digest of the previous one in as the HMAC key.
        """
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        assert "date" in signing_properties
        k_date = self._hash(
            key=self._encode(f"AWS4{secret_key}"),
            value=signing_properties["date"][0:8],
        )
        k_region = self._hash(key=k_date, value=signing_properties["region"])
        k_service = self._hash(key=k_region, value=signing_properties["service"])
        return self._hash(key=k_service, value="aws4_request")

    def signature(self, *, string_to_sign: str, signing_key: bytes) -> str:
        """Lowercase hex HMAC-SHA256 of the string to sign."""
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def _hash(self, key: bytes, value: str) -> bytes:
        msg = self._encode(value)
        try:
            return hmac.new(key=key, msg=msg, digestmod=sha256).digest()
        except (TypeError, ValueError) as e:
            raise CryptoFailureError("Failed to compute HMAC-SHA256.") from e

    def _sha256_hex(self, value: str) -> str:
        msg = self._encode(value)
        try:
            return sha256(msg).hexdigest()
        except (TypeError, ValueError) as e:
            raise CryptoFailureError("Failed to compute SHA-256.") from e

    def _encode(self, value: str) -> bytes:
        try:
            return value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise CryptoFailureError("Signing input isn't valid UTF-8 text.") from e

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, _AWSCredentialsIdentity):  # pyright: ignore
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise ValueError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _normalize_signing_properties(
        self, *, signing_properties: SigV4SigningProperties
    ) -> SigV4SigningProperties:
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = SigV4SigningProperties(**signing_properties)
        for name in ("region", "service"):
            value = new_signing_properties.get(name)
            if not isinstance(value, str) or not value:
                raise MissingExpectedParameterException(
                    f"Signing properties require a non-empty {name}. "
                    f"Current value: {value!r}"
                )
        if "date" not in new_signing_properties:
            # The clock is read once so the date stamp and timestamp always agree.
            new_signing_properties["date"] = format_timestamp(self._clock())
        else:
            try:
                datetime.datetime.strptime(
                    new_signing_properties["date"], SIGV4_TIMESTAMP_FORMAT
                )
            except (TypeError, ValueError) as e:
                raise MissingExpectedParameterException(
                    f"Signing date must use the format {SIGV4_TIMESTAMP_FORMAT}. "
                    f"Current value: {new_signing_properties['date']!r}"
                ) from e
        return new_signing_properties

    def _apply_required_params(
        self,
        *,
        query_params: Mapping[str, str] | QueryParameters,
        signing_properties: SigV4SigningProperties,
        identity: AWSCredentialIdentity,
    ) -> QueryParameters:
        for name in query_params:
            if name in RESERVED_QUERY_PARAMS:
                raise DuplicateParameterKeyError(
                    f"Query parameter {name} is reserved for SigV4 signing.",
                    key=name,
                )
        assert "date" in signing_properties
        credential_scope = self.scope(signing_properties=signing_properties)
        logger.debug("Using credential scope %s", credential_scope)
        query = QueryParameters(
            {
                ALGORITHM_PARAM: SIGV4_ALGORITHM,
                CREDENTIAL_PARAM: f"{identity.access_key_id}/{credential_scope}",
                DATE_PARAM: signing_properties["date"],
                EXPIRES_PARAM: str(PRESIGN_EXPIRES_SECONDS),
                SIGNED_HEADERS_PARAM: SIGNED_HEADERS,
            }
        )
        query.extend(query_params)
        return query

    def _warn_if_credentials_expire_early(
        self,
        *,
        identity: AWSCredentialIdentity,
        signing_properties: SigV4SigningProperties,
    ) -> None:
        assert "date" in signing_properties
        signed_at = parse_timestamp(signing_properties["date"])
        url_expiry = signed_at + datetime.timedelta(seconds=PRESIGN_EXPIRES_SECONDS)
        if identity.expires_before(url_expiry):
            warnings.warn(
                f"Credentials expire at {identity.expiration}, before the presigned "
                f"URL expires at {url_expiry}. Connections may be rejected early.",
                AWSSDKWarning,
            )


def format_timestamp(moment: datetime.datetime) -> str:
    """Format ``moment`` as a SigV4 timestamp. Naive datetimes are treated as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.UTC)
    return moment.astimezone(datetime.UTC).strftime(SIGV4_TIMESTAMP_FORMAT)


def parse_timestamp(timestamp: str) -> datetime.datetime:
    return datetime.datetime.strptime(timestamp, SIGV4_TIMESTAMP_FORMAT).replace(
        tzinfo=datetime.UTC
    )
