# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from .exceptions import MalformedInputException

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"


@dataclass(frozen=True)
class SigningTimestamp:
    """The instant a request is signed, in SigV4 basic format.

    A single instance is captured per signing call so the credential scope and the
    ``X-Amz-Date`` header always agree.
    """

    amz_date: str
    """UTC time formatted as ``YYYYMMDDTHHMMSSZ``."""

    @property
    def date_stamp(self) -> str:
        """The ``YYYYMMDD`` prefix of ``amz_date``."""
        return self.amz_date[0:8]

    @classmethod
    def now(cls, clock: Callable[[], datetime] | None = None) -> "SigningTimestamp":
        """Read the current time once.

        :param clock: Optional callable returning the current ``datetime``. Defaults
            to the system clock in UTC.
        """
        current = clock() if clock is not None else datetime.now(UTC)
        return cls.from_datetime(current)

    @classmethod
    def from_datetime(cls, value: datetime) -> "SigningTimestamp":
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        else:
            value = value.astimezone(UTC)
        return cls(amz_date=value.strftime(SIGV4_TIMESTAMP_FORMAT))

    @classmethod
    def from_amz_date(cls, amz_date: str) -> "SigningTimestamp":
        """Build a timestamp from a fixed ``YYYYMMDDTHHMMSSZ`` string."""
        if not isinstance(amz_date, str):
            raise MalformedInputException(
                f"Expected amz_date to be a str but received {type(amz_date)}."
            )
        try:
            parsed = datetime.strptime(amz_date, SIGV4_TIMESTAMP_FORMAT)
        except ValueError as e:
            raise MalformedInputException(
                f"Invalid amz_date {amz_date!r}. Expected format YYYYMMDDTHHMMSSZ."
            ) from e
        return cls.from_datetime(parsed)


def now() -> tuple[str, str]:
    """Return ``(amz_date, date_stamp)`` for the current UTC time."""
    timestamp = SigningTimestamp.now()
    return timestamp.amz_date, timestamp.date_stamp
