# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Builders for the components of a SigV4 canonical request.

Every function here is a pure transform of its inputs. Structural problems, such as
a non-string path or a query value that can't be rendered as text, raise
:class:`~aws_gateway_signer.exceptions.MalformedInputException` instead of producing
a canonical request the service would silently reject.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from hashlib import sha256
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote_to_bytes

from .exceptions import MalformedInputException

if TYPE_CHECKING:
    from ._http import QueryParam, RequestDescriptor

EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

HOST_HEADER = "host"
DATE_HEADER = "x-amz-date"
SECURITY_TOKEN_HEADER = "x-amz-security-token"


@dataclass(frozen=True, kw_only=True)
class CanonicalForm:
    canonical_uri: str
    canonical_query: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str

    def canonical_request(self, method: str) -> str:
        """Join the components with the request method.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>

        ``canonical_headers`` already ends in a newline, so the header block is
        followed by an empty line.
        """
        if not isinstance(method, str):
            raise MalformedInputException(
                f"Expected the request method to be a str but received {type(method)}."
            )
        return (
            f"{method.upper()}\n"
            f"{self.canonical_uri}\n"
            f"{self.canonical_query}\n"
            f"{self.canonical_headers}\n"
            f"{self.signed_headers}\n"
            f"{self.payload_hash}"
        )


def uri_encode(value: str) -> str:
    """Percent-encode everything outside ``A-Z a-z 0-9 - _ . ~``."""
    if not isinstance(value, str):
        raise MalformedInputException(
            f"Expected a str to encode but received {type(value)}."
        )
    try:
        return quote(value, safe="")
    except UnicodeEncodeError as e:
        raise MalformedInputException(
            f"Unable to encode {value!r} as utf-8 for signing."
        ) from e


def canonical_headers(
    host: str, amz_date: str, session_token: str | None = None
) -> tuple[str, str]:
    """Build the canonical header block and the signed headers list.

    Only ``host``, ``x-amz-date`` and, when a non-empty token is supplied,
    ``x-amz-security-token`` are signed.
    """
    headers = {HOST_HEADER: host, DATE_HEADER: amz_date}
    if session_token:
        headers[SECURITY_TOKEN_HEADER] = session_token

    for name, value in headers.items():
        if not isinstance(value, str):
            raise MalformedInputException(
                f"Header {name!r} has a value of type {type(value)}. Expected str."
            )

    normalized = sorted((name.lower(), value) for name, value in headers.items())
    block = "".join(f"{name}:{' '.join(value.split())}\n" for name, value in normalized)
    signed = ";".join(name for name, _ in normalized)
    return block, signed


def stringify_query_value(param: QueryParam) -> str:
    """Render a query value as text.

    An absent value becomes the empty string. Falsy values such as ``0`` keep their
    text form. Integral floats are rendered without a fractional part, so ``1.0``
    becomes ``1``. ``nan`` and infinite floats are rejected.
    """
    value = param.value
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        raise MalformedInputException(
            f"Query parameter {param.key!r} has a value of type {type(value)}. "
            "Expected str, int, float, or None."
        )
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedInputException(
                f"Query parameter {param.key!r} has a non-finite value {value!r}."
            )
        if value.is_integer():
            return str(int(value))
    return str(value)


def canonical_query(params: Iterable[QueryParam]) -> str:
    query_parts = (
        (uri_encode(param.key), uri_encode(stringify_query_value(param)))
        for param in params
        if not param.disabled
    )
    # key-value pairs must be in sorted order for their encoded forms.
    return "&".join(f"{key}={value}" for key, value in sorted(query_parts))


def canonical_uri(path: str) -> str:
    if not isinstance(path, str):
        raise MalformedInputException(
            f"Expected the request path to be a str but received {type(path)}."
        )
    if not path.startswith("/"):
        path = f"/{path}"
    # Segments are decoded first so an already-encoded path isn't encoded twice.
    # Decoding to bytes keeps escapes that aren't valid utf-8, such as %FF, intact.
    encoded = "/".join(_encode_path_segment(segment) for segment in path.split("/"))
    return encoded.replace("+", "%20")


def _encode_path_segment(segment: str) -> str:
    try:
        return quote(unquote_to_bytes(segment), safe="")
    except UnicodeEncodeError as e:
        raise MalformedInputException(
            f"Unable to encode path segment {segment!r} as utf-8 for signing."
        ) from e


def payload_hash(body: bytes | bytearray | memoryview | str | None) -> str:
    if body is None:
        return EMPTY_SHA256_HASH
    if isinstance(body, str):
        try:
            body = body.encode("utf-8")
        except UnicodeEncodeError as e:
            raise MalformedInputException(
                "Unable to encode the request body as utf-8 for signing."
            ) from e
    if not isinstance(body, bytes | bytearray | memoryview):
        raise MalformedInputException(
            f"Expected the request body to be bytes, str, or None but received "
            f"{type(body)}."
        )
    return sha256(body).hexdigest()


def canonical_form(
    request: RequestDescriptor,
    *,
    host: str,
    amz_date: str,
    session_token: str | None = None,
) -> CanonicalForm:
    """Compute every canonical component for ``request``.

    :param request: The request being signed.
    :param host: The host the signature is computed against. This can differ from
        the host the request is sent to.
    :param amz_date: The signing timestamp in ``YYYYMMDDTHHMMSSZ`` format.
    :param session_token: Optional session token for temporary credentials.
    """
    headers, signed = canonical_headers(host, amz_date, session_token)
    return CanonicalForm(
        canonical_uri=canonical_uri(request.path),
        canonical_query=canonical_query(request.query),
        canonical_headers=headers,
        signed_headers=signed,
        payload_hash=payload_hash(request.body),
    )
