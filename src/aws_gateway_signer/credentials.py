# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ._identity import AWSCredentialIdentity

_LOGGER = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_PATH: tuple[str, ...] = ("credential",)


def credentials_from_response(
    body: bytes | str | Mapping[str, Any],
    *,
    path: Sequence[str] = DEFAULT_CREDENTIALS_PATH,
) -> AWSCredentialIdentity | None:
    """Extract temporary credentials from an authentication response.

    The response is expected to contain an object at ``path`` holding
    ``AccessKeyId``, ``SecretKey`` and, optionally, ``SessionToken``. For example,
    with the default path::

        {"credential": {"AccessKeyId": "...", "SecretKey": "...", "SessionToken": "..."}}

    Nothing is raised for responses that don't carry credentials. The problem is
    logged and ``None`` is returned so previously stored credentials stay in use.

    :param body: Raw response bytes or text, or an already-parsed document.
    :param path: Keys leading from the document root to the credentials object.
    """
    if isinstance(body, bytes | str):
        try:
            document: Any = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            _LOGGER.error("Failed to parse credentials response as JSON: %s", e)
            return None
    else:
        document = body

    creds: Any = document
    for key in path:
        if not isinstance(creds, Mapping) or key not in creds:
            _LOGGER.warning(
                "Credentials not found in response at path %s.", ".".join(path)
            )
            return None
        creds = creds[key]

    if not isinstance(creds, Mapping):
        _LOGGER.warning("Expected an object at path %s.", ".".join(path))
        return None

    access_key_id = creds.get("AccessKeyId")
    secret_access_key = creds.get("SecretKey")
    session_token = creds.get("SessionToken")

    if not access_key_id or not secret_access_key:
        _LOGGER.warning(
            "Credentials at path %s are missing AccessKeyId or SecretKey.",
            ".".join(path),
        )
        return None

    _LOGGER.debug("Extracted credentials for access key %s", access_key_id)
    return AWSCredentialIdentity(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token or None,
    )
