"""Tests for ExecCredential response parsing and validation."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import pytest

from execauth.exceptions import (
    IncompleteCredentialError,
    MalformedResponseError,
    VersionMismatchError,
)
from execauth.exec.response import parse_exec_credential
from execauth.models import ClientCertCredential, CredentialOrigin, TokenCredential

V1 = "client.authentication.k8s.io/v1"
V1BETA1 = "client.authentication.k8s.io/v1beta1"


def _out(doc: Any) -> bytes:
    return json.dumps(doc).encode()


# ---------------------------------------------------------------------------
# Successful parses
# ---------------------------------------------------------------------------


class TestValidResponses:
    def test_token(self) -> None:
        cred = parse_exec_credential(
            _out({"apiVersion": V1, "kind": "ExecCredential", "status": {"token": "abc"}}),
            V1,
        )
        assert isinstance(cred, TokenCredential)
        assert cred.token == "abc"
        assert cred.origin == CredentialOrigin.EXEC
        assert cred.expires_at is None

    def test_expiration_timestamp(self) -> None:
        cred = parse_exec_credential(
            _out({
                "apiVersion": V1,
                "kind": "ExecCredential",
                "status": {"token": "abc", "expirationTimestamp": "2030-01-02T03:04:05Z"},
            }),
            V1,
        )
        assert cred.expires_at == datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_client_certificate_pair(self) -> None:
        cred = parse_exec_credential(
            _out({
                "apiVersion": V1BETA1,
                "kind": "ExecCredential",
                "status": {"clientCertificateData": "CERT", "clientKeyData": "KEY"},
            }),
            V1BETA1,
        )
        assert isinstance(cred, ClientCertCredential)
        assert cred.certificate_data == "CERT"
        assert cred.key_data == "KEY"

    def test_token_wins_over_certificate(self) -> None:
        cred = parse_exec_credential(
            _out({
                "apiVersion": V1,
                "status": {
                    "token": "abc",
                    "clientCertificateData": "CERT",
                    "clientKeyData": "KEY",
                },
            }),
            V1,
        )
        assert isinstance(cred, TokenCredential)

    def test_kind_may_be_omitted(self) -> None:
        cred = parse_exec_credential(_out({"apiVersion": V1, "status": {"token": "t"}}), V1)
        assert cred.token == "t"

    def test_unknown_fields_are_ignored(self) -> None:
        cred = parse_exec_credential(
            _out({"apiVersion": V1, "status": {"token": "t", "extra": 1}, "spec": {}}), V1
        )
        assert cred.token == "t"


# ---------------------------------------------------------------------------
# Malformed output
# ---------------------------------------------------------------------------


class TestMalformed:
    def test_not_json(self) -> None:
        with pytest.raises(MalformedResponseError, match="decoding stdout: json parse error"):
            parse_exec_credential(b"Please enter your password:", V1)

    def test_empty_output(self) -> None:
        with pytest.raises(MalformedResponseError, match="json parse error"):
            parse_exec_credential(b"", V1)

    def test_json_array(self) -> None:
        with pytest.raises(MalformedResponseError, match="expected a JSON object"):
            parse_exec_credential(b"[]", V1)

    def test_missing_api_version(self) -> None:
        with pytest.raises(MalformedResponseError):
            parse_exec_credential(_out({"status": {"token": "t"}}), V1)

    def test_wrong_kind(self) -> None:
        with pytest.raises(MalformedResponseError, match="unexpected kind"):
            parse_exec_credential(
                _out({"apiVersion": V1, "kind": "Secret", "status": {"token": "t"}}), V1
            )

    def test_stderr_and_command_preserved(self) -> None:
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_exec_credential(b"oops", V1, command="my-plugin", stderr="login failed\n")
        assert exc_info.value.stderr == "login failed\n"
        assert exc_info.value.command == "my-plugin"

    def test_malformed_checked_before_version(self) -> None:
        # Not even valid JSON, so no version can be compared.
        with pytest.raises(MalformedResponseError):
            parse_exec_credential(b"{", V1BETA1)


# ---------------------------------------------------------------------------
# Version mismatch
# ---------------------------------------------------------------------------


class TestVersionMismatch:
    def test_mismatch(self) -> None:
        with pytest.raises(VersionMismatchError) as exc_info:
            parse_exec_credential(
                _out({"apiVersion": V1BETA1, "status": {"token": "t"}}), V1
            )
        assert exc_info.value.expected == V1
        assert exc_info.value.actual == V1BETA1
        assert V1BETA1 in str(exc_info.value)

    def test_mismatch_reported_before_missing_status(self) -> None:
        with pytest.raises(VersionMismatchError):
            parse_exec_credential(_out({"apiVersion": V1BETA1}), V1)


# ---------------------------------------------------------------------------
# Incomplete credentials
# ---------------------------------------------------------------------------


class TestIncomplete:
    def test_missing_status(self) -> None:
        with pytest.raises(IncompleteCredentialError, match="status"):
            parse_exec_credential(_out({"apiVersion": V1}), V1)

    def test_empty_status(self) -> None:
        with pytest.raises(IncompleteCredentialError, match="token or cert/key pair"):
            parse_exec_credential(_out({"apiVersion": V1, "status": {}}), V1)

    def test_empty_token(self) -> None:
        with pytest.raises(IncompleteCredentialError):
            parse_exec_credential(_out({"apiVersion": V1, "status": {"token": ""}}), V1)

    def test_certificate_without_key(self) -> None:
        with pytest.raises(IncompleteCredentialError, match="only certificate or key"):
            parse_exec_credential(
                _out({"apiVersion": V1, "status": {"clientCertificateData": "CERT"}}), V1
            )

    def test_key_without_certificate(self) -> None:
        with pytest.raises(IncompleteCredentialError, match="only certificate or key"):
            parse_exec_credential(
                _out({"apiVersion": V1, "status": {"clientKeyData": "KEY"}}), V1
            )
