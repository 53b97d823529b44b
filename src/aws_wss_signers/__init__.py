# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS WSS Signers presigns ``wss://`` endpoints with AWS Signature Version 4 so
WebSocket clients can authenticate without sending custom headers."""

from __future__ import annotations

from ._http import URI, QueryParameters, parse_endpoint
from ._identity import AWSCredentialIdentity
from .config import SigningConfig
from .signaling import ChannelRole, SignalingChannelSigner
from .signers import PresignedURLSigner, SigningResult, SigV4SigningProperties

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSCredentialIdentity",
    "ChannelRole",
    "PresignedURLSigner",
    "QueryParameters",
    "SigV4SigningProperties",
    "SignalingChannelSigner",
    "SigningConfig",
    "SigningResult",
    "parse_endpoint",
)
