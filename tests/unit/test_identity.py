"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime, timedelta

import pytest

from aws_sigv4_headers import AWSCredentialIdentity
from aws_sigv4_headers.interfaces.identity import Identity


@pytest.mark.parametrize(
    "expiration, expected",
    [
        (None, False),
        (datetime.now(UTC) + timedelta(hours=1), False),
        (datetime(2000, 1, 1, tzinfo=UTC), True),
    ],
)
def test_is_expired(expiration: datetime | None, expected: bool):
    identity = AWSCredentialIdentity(
        access_key_id="AKID", secret_access_key="SECRET", expiration=expiration
    )
    assert identity.is_expired is expected


def test_identity_is_immutable():
    identity = AWSCredentialIdentity(access_key_id="AKID", secret_access_key="SECRET")
    with pytest.raises(FrozenInstanceError):
        identity.access_key_id = "OTHER"  # type: ignore[misc]


def test_satisfies_identity_protocol():
    identity = AWSCredentialIdentity(access_key_id="AKID", secret_access_key="SECRET")
    assert isinstance(identity, Identity)
