"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

AWS SigV4 Headers computes AWS Signature Version 4 request-signing headers
for use with HTTP tools such as AioHTTP, Curl, Requests, urllib3, etc.
"""

from __future__ import annotations

from ._http import URI, Field, Fields
from ._identity import AWSCredentialIdentity
from ._version import __version__
from .signers import (
    DEFAULT_ALGORITHM,
    DEFAULT_TERMINATION,
    EMPTY_SHA256_HASH,
    UNSIGNED_PAYLOAD,
    SigningScope,
    SigV4Configuration,
    SigV4Signer,
)

__license__ = "Apache-2.0"
__version__ = __version__

__all__ = (
    "AWSCredentialIdentity",
    "DEFAULT_ALGORITHM",
    "DEFAULT_TERMINATION",
    "EMPTY_SHA256_HASH",
    "Field",
    "Fields",
    "SigV4Configuration",
    "SigV4Signer",
    "SigningScope",
    "UNSIGNED_PAYLOAD",
    "URI",
)
