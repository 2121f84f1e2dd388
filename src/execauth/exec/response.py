"""Decode and validate the ``ExecCredential`` a plugin writes to stdout.

Validation runs in a fixed order and stops at the first failure:

1. The bytes must decode to a JSON object (``kind``, when present, must be
   ``ExecCredential``) -- otherwise :class:`~execauth.exceptions.MalformedResponseError`.
2. ``apiVersion`` must equal the version the caller requested --
   otherwise :class:`~execauth.exceptions.VersionMismatchError`.
3. ``status`` must carry a token or a complete certificate/key pair --
   otherwise :class:`~execauth.exceptions.IncompleteCredentialError`.

Nothing here retries: a malformed response is a plugin protocol violation.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from execauth.exceptions import (
    IncompleteCredentialError,
    MalformedResponseError,
    VersionMismatchError,
)
from execauth.models import (
    EXEC_CREDENTIAL_KIND,
    ClientCertCredential,
    CredentialOrigin,
    ExecCredentialResponse,
    ResolvedCredential,
    TokenCredential,
)

logger = logging.getLogger(__name__)


def _decode(stdout: bytes, command: Optional[str], stderr: Optional[str]) -> ExecCredentialResponse:
    try:
        raw = json.loads(stdout)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponseError(
            f"decoding stdout: json parse error: {exc}", command, stderr
        ) from exc
    if not isinstance(raw, dict):
        raise MalformedResponseError(
            f"decoding stdout: expected a JSON object, got {type(raw).__name__}",
            command,
            stderr,
        )
    try:
        response = ExecCredentialResponse.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"decoding stdout: invalid ExecCredential: {exc}", command, stderr
        ) from exc
    if response.kind is not None and response.kind != EXEC_CREDENTIAL_KIND:
        raise MalformedResponseError(
            f"decoding stdout: unexpected kind {response.kind!r}, "
            f"expected {EXEC_CREDENTIAL_KIND!r}",
            command,
            stderr,
        )
    return response


def parse_exec_credential(
    stdout: bytes,
    expected_api_version: str,
    command: Optional[str] = None,
    stderr: Optional[str] = None,
) -> ResolvedCredential:
    """Turn a plugin's raw standard output into a credential.

    Args:
        stdout: Everything the plugin wrote to standard output.
        expected_api_version: The ``apiVersion`` from the exec config.
        command: Plugin command, attached to errors for diagnostics.
        stderr: Captured standard error, preserved on
            :class:`~execauth.exceptions.MalformedResponseError`.

    Returns:
        A :class:`~execauth.models.TokenCredential` when the response has a
        token (the token wins if a certificate pair is also present),
        otherwise a :class:`~execauth.models.ClientCertCredential`. Its
        ``expires_at`` is the response's ``expirationTimestamp``, if any.

    Raises:
        MalformedResponseError: Output is not a decodable ExecCredential.
        VersionMismatchError: ``apiVersion`` differs from the requested one.
        IncompleteCredentialError: No token and no certificate/key pair.
    """
    response = _decode(stdout, command, stderr)

    if response.api_version != expected_api_version:
        raise VersionMismatchError(expected_api_version, response.api_version, command)

    status = response.status
    if status is None:
        raise IncompleteCredentialError(
            "exec plugin didn't return a status field", command
        )

    has_cert = bool(status.client_certificate_data)
    has_key = bool(status.client_key_data)
    if not status.token and not (has_cert and has_key):
        if has_cert != has_key:
            raise IncompleteCredentialError(
                "exec plugin returned only certificate or key, not both", command
            )
        raise IncompleteCredentialError(
            "exec plugin didn't return a token or cert/key pair", command
        )

    expires_at = status.expiration_timestamp
    if status.token:
        if has_cert or has_key:
            logger.debug("exec plugin returned both a token and a certificate; using the token")
        return TokenCredential(
            origin=CredentialOrigin.EXEC, token=status.token, expires_at=expires_at
        )
    return ClientCertCredential(
        origin=CredentialOrigin.EXEC,
        certificate_data=status.client_certificate_data or "",
        key_data=status.client_key_data or "",
        expires_at=expires_at,
    )
