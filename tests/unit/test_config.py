# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from pathlib import Path
from typing import Any

import pytest
from aws_gateway_signer import HostResolver, SigningConfig, SigningConfigResolver
from aws_gateway_signer.config import (
    SOURCE_CONSTRUCTOR,
    SOURCE_CREDENTIALS_FILE,
    SOURCE_DEFAULT,
    SOURCE_ENVIRONMENT,
)
from aws_gateway_signer.exceptions import (
    MalformedInputException,
    UnmappedHostException,
)

HOST_MAPPING = {
    "https://dev.example.com": "dev-api-id.execute-api.ap-northeast-1.amazonaws.com",
    "https://staging.example.com": (
        "staging-api-id.execute-api.ap-northeast-1.amazonaws.com"
    ),
}


def no_credentials_file() -> dict[str, str]:
    return {}


class TestSigningConfig:
    def test_defaults(self) -> None:
        config = SigningConfig(access_key="AKID", secret_key="SECRET", host="h")
        assert config.region == "ap-northeast-1"
        assert config.service == "execute-api"
        assert config.session_token is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"access_key": None},
            {"secret_key": 1234},
            {"host": b"api.example.com"},
            {"region": None},
            {"session_token": 42},
        ],
    )
    def test_rejects_non_string_values(self, overrides: dict[str, Any]) -> None:
        values: dict[str, Any] = {
            "access_key": "AKID",
            "secret_key": "SECRET",
            "host": "api.example.com",
        }
        values.update(overrides)
        with pytest.raises(MalformedInputException):
            SigningConfig(**values)

    def test_accepts_empty_credentials(self) -> None:
        config = SigningConfig(access_key="", secret_key="", host="api.example.com")
        assert config.access_key == ""


class TestHostResolver:
    def test_mapped_base_url(self) -> None:
        resolver = HostResolver(HOST_MAPPING)
        assert resolver("https://staging.example.com") == (
            "staging-api-id.execute-api.ap-northeast-1.amazonaws.com"
        )

    def test_trailing_slash(self) -> None:
        resolver = HostResolver(HOST_MAPPING)
        assert resolver.resolve("https://dev.example.com/") == (
            "dev-api-id.execute-api.ap-northeast-1.amazonaws.com"
        )

    @pytest.mark.parametrize("base_url", ["https://unknown.example.com", None])
    def test_strict_unmapped_raises(self, base_url: str | None) -> None:
        resolver = HostResolver(HOST_MAPPING)
        with pytest.raises(UnmappedHostException):
            resolver(base_url)

    def test_fallback_to_first_host(self, caplog: pytest.LogCaptureFixture) -> None:
        resolver = HostResolver(HOST_MAPPING, strict=False)
        with caplog.at_level(logging.WARNING, logger="aws_gateway_signer.config"):
            host = resolver("https://unknown.example.com")
        assert host == "dev-api-id.execute-api.ap-northeast-1.amazonaws.com"
        assert "not mapped" in caplog.text

    def test_empty_mapping_always_raises(self) -> None:
        resolver = HostResolver({}, strict=False)
        with pytest.raises(UnmappedHostException):
            resolver("https://dev.example.com")


class TestSigningConfigResolver:
    def test_constructor_values(self) -> None:
        resolver = SigningConfigResolver(
            access_key="AKID",
            secret_key="SECRET",
            session_token=None,
            region="us-east-1",
            base_url="https://dev.example.com",
        )
        resolver.resolve(
            environment={"AWS_SESSION_TOKEN": "env-token", "AWS_REGION": "eu-west-1"},
            credentials_file_loader=no_credentials_file,
        )
        assert resolver.get("access_key").source == SOURCE_CONSTRUCTOR
        assert resolver.get("session_token").value is None
        assert resolver.get("session_token").source == SOURCE_CONSTRUCTOR
        assert resolver.get("region").value == "us-east-1"
        assert resolver.get("service").value == "execute-api"
        assert resolver.get("service").source == SOURCE_DEFAULT

    def test_environment_values(self) -> None:
        resolver = SigningConfigResolver()
        resolver.resolve(
            environment={
                "AWS_ACCESS_KEY_ID": "env-akid",
                "AWS_SECRET_ACCESS_KEY": "env-secret",
                "AWS_SESSION_TOKEN": "env-token",
                "AWS_REGION": "eu-west-1",
                "GATEWAY_BASE_URL": "https://staging.example.com",
            },
            credentials_file_loader=lambda: {"aws_access_key_id": "file-akid"},
        )
        config = resolver.signing_config(HostResolver(HOST_MAPPING))
        assert resolver.get("access_key").source == SOURCE_ENVIRONMENT
        assert config == SigningConfig(
            access_key="env-akid",
            secret_key="env-secret",
            session_token="env-token",
            region="eu-west-1",
            service="execute-api",
            host="staging-api-id.execute-api.ap-northeast-1.amazonaws.com",
        )

    def test_credentials_file_values(self) -> None:
        resolver = SigningConfigResolver(base_url="https://dev.example.com")
        resolver.resolve(
            environment={"AWS_ACCESS_KEY_ID": ""},
            credentials_file_loader=lambda: {
                "aws_access_key_id": "file-akid",
                "aws_secret_access_key": "file-secret",
            },
        )
        assert resolver.get("access_key").value == "file-akid"
        assert resolver.get("access_key").source == SOURCE_CREDENTIALS_FILE
        assert resolver.get("region").value == "ap-northeast-1"
        assert resolver.get("region").source == SOURCE_DEFAULT

    def test_missing_credentials_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        resolver = SigningConfigResolver(base_url="https://dev.example.com")
        with caplog.at_level(logging.WARNING, logger="aws_gateway_signer.config"):
            resolver.resolve(environment={}, credentials_file_loader=no_credentials_file)
        assert "access_key" in caplog.text
        assert "secret_key" in caplog.text
        config = resolver.signing_config(HostResolver(HOST_MAPPING))
        assert config.access_key == ""
        assert config.secret_key == ""
        assert config.session_token is None

    def test_resolve_twice_raises(self) -> None:
        resolver = SigningConfigResolver()
        resolver.resolve(environment={}, credentials_file_loader=no_credentials_file)
        with pytest.raises(RuntimeError):
            resolver.resolve(environment={}, credentials_file_loader=no_credentials_file)

    def test_get_before_resolve_raises(self) -> None:
        with pytest.raises(RuntimeError):
            SigningConfigResolver().get("region")

    def test_reads_shared_credentials_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        credentials_file = tmp_path / "credentials"
        credentials_file.write_text(
            "[default]\n"
            "aws_access_key_id = default-akid\n"
            "aws_secret_access_key = default-secret\n"
            "[gateway]\n"
            "aws_access_key_id = gateway-akid\n"
            "aws_secret_access_key = gateway-secret\n"
            "aws_session_token = gateway-token\n"
        )
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(credentials_file))
        monkeypatch.setenv("AWS_PROFILE", "gateway")

        resolver = SigningConfigResolver()
        resolver.resolve(environment={})
        assert resolver.get("access_key").value == "gateway-akid"
        assert resolver.get("session_token").value == "gateway-token"
        assert resolver.get("session_token").source == SOURCE_CREDENTIALS_FILE

    def test_missing_shared_credentials_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "missing"))
        resolver = SigningConfigResolver()
        resolver.resolve(environment={})
        assert resolver.get("access_key").source == SOURCE_DEFAULT
