# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class AWSCredentialsIdentity(Protocol):
    """An access key pair used to presign WebSocket connections."""

    access_key_id: str
    """Identifies the key pair. It is embedded in ``X-Amz-Credential``."""

    secret_access_key: str
    """Seeds the signing key derivation. It never leaves the signer."""

    session_token: str | None = None
    """Token issued alongside temporary credentials, if any."""

    expiration: datetime | None = None
    """When temporary credentials stop being accepted, in UTC."""

    @property
    def is_expired(self) -> bool:
        """Whether the credentials are already past their expiration."""
        return self.expires_before(datetime.now(tz=UTC))

    def expires_before(self, moment: datetime) -> bool:
        """Whether the credentials expire at or before ``moment``.

        Credentials without an expiration never expire.
        """
        if self.expiration is None:
            return False
        return moment >= self.expiration
