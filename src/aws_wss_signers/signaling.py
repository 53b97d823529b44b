# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Presigned connection URLs for Kinesis Video Streams WebRTC signaling channels.

The control plane calls that look up a channel ARN and its ``WSS`` endpoint are made
elsewhere. This module only turns their results into a URL a master or viewer can
open.
"""

import logging
import secrets
from enum import StrEnum

from ._identity import AWSCredentialIdentity
from .config import SigningConfig
from .signers import PresignedURLSigner

logger = logging.getLogger(__name__)

CHANNEL_ARN_PARAM = "X-Amz-ChannelARN"
CLIENT_ID_PARAM = "X-Amz-ClientId"
CLIENT_ID_LENGTH = 10


class ChannelRole(StrEnum):
    MASTER = "MASTER"
    VIEWER = "VIEWER"


def generate_client_id() -> str:
    """Random viewer identifier drawn from the URL-safe base64 alphabet."""
    return secrets.token_urlsafe(CLIENT_ID_LENGTH)[:CLIENT_ID_LENGTH]


def signaling_query_params(
    *,
    channel_arn: str,
    role: ChannelRole,
    client_id: str | None = None,
) -> dict[str, str]:
    """Query parameters identifying the channel and, for viewers, the client.

    :param channel_arn: ARN of the signaling channel.
    :param role: Whether the connection acts as the channel master or a viewer.
    :param client_id: Viewer identifier. One is generated when a viewer has none.
        Masters must not pass one.
    """
    if not channel_arn:
        raise ValueError("A signaling channel ARN is required.")
    params = {CHANNEL_ARN_PARAM: channel_arn}
    if role is ChannelRole.MASTER:
        if client_id is not None:
            raise ValueError("Master connections don't take a client id.")
        return params
    params[CLIENT_ID_PARAM] = client_id if client_id else generate_client_id()
    return params


class SignalingChannelSigner:
    """Produces presigned signaling URLs for one set of credentials."""

    def __init__(
        self,
        *,
        identity: AWSCredentialIdentity,
        config: SigningConfig,
        signer: PresignedURLSigner | None = None,
    ):
        """Bind credentials and a signing profile.

        :param identity: Credentials used for every URL this instance signs.
        :param config: A resolved signing configuration.
        :param signer: Signer to delegate to. Defaults to one using the system clock.
        """
        self._identity = identity
        self._config = config
        self._signer = signer or PresignedURLSigner()

    def get_signed_url(
        self,
        *,
        endpoint: str,
        channel_arn: str,
        role: ChannelRole = ChannelRole.VIEWER,
        client_id: str | None = None,
    ) -> str:
        query_params = signaling_query_params(
            channel_arn=channel_arn, role=role, client_id=client_id
        )
        logger.debug("Signing %s connection for channel %s", role, channel_arn)
        return self._signer.presign(
            signing_properties=self._config.signing_properties(),
            endpoint=endpoint,
            identity=self._identity,
            query_params=query_params,
        )
