# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .signers import SigningMaterial


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receives the intermediate values of each signing call.

    Sinks are purely observational. Nothing they do affects the signature.
    """

    def emit(self, material: SigningMaterial) -> None: ...


class LoggingDiagnosticsSink:
    """Writes the canonical request, string to sign and Authorization header to a
    logger, which is usually enough to track down a signature mismatch."""

    def __init__(
        self, logger: logging.Logger | None = None, level: int = logging.DEBUG
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._level = level

    def emit(self, material: SigningMaterial) -> None:
        self._logger.log(self._level, "Canonical Request:\n%s", material.canonical_request)
        self._logger.log(self._level, "String to Sign:\n%s", material.string_to_sign)
        self._logger.log(self._level, "Authorization Header:\n%s", material.authorization)
