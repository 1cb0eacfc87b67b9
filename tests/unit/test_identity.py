from datetime import UTC, datetime, timedelta

import pytest
from aws_gateway_signer import AWSCredentialIdentity, SigningConfig
from aws_gateway_signer.exceptions import SignerWarning


@pytest.mark.parametrize(
    "access_key_id,secret_access_key,session_token,expiration",
    [
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            None,
            None,
        ),
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            "SESS_TOKEN_1234",
            datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC),
        ),
    ],
)
def test_aws_credential_identity(
    access_key_id: str,
    secret_access_key: str,
    session_token: str | None,
    expiration: datetime | None,
) -> None:
    creds = AWSCredentialIdentity(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        expiration=expiration,
    )
    assert creds.access_key_id == access_key_id
    assert creds.secret_access_key == secret_access_key
    assert creds.session_token == session_token
    assert creds.expiration == expiration


@pytest.mark.parametrize(
    "expiration,is_expired",
    [
        (None, False),
        (datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC), True),
        (datetime.now(UTC) + timedelta(hours=1), False),
    ],
)
def test_aws_credential_identity_expired(
    expiration: datetime | None, is_expired: bool
) -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        expiration=expiration,
    )
    assert creds.is_expired is is_expired


def test_signing_config_from_identity() -> None:
    identity = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        session_token="SESS_TOKEN_1234",
    )
    config = SigningConfig.from_identity(
        identity, host="api.example.com", region="us-west-2"
    )
    assert config.access_key == "AKID1234EXAMPLE"
    assert config.secret_key == "SECRET1234"
    assert config.session_token == "SESS_TOKEN_1234"
    assert config.host == "api.example.com"
    assert config.region == "us-west-2"
    assert config.service == "execute-api"


def test_signing_config_from_expired_identity_warns() -> None:
    identity = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        expiration=datetime(1970, 1, 1, tzinfo=UTC),
    )
    with pytest.warns(SignerWarning):
        config = SigningConfig.from_identity(identity, host="api.example.com")
    assert config.access_key == "AKID1234EXAMPLE"
