# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections import Counter, OrderedDict
from collections.abc import Iterable, Iterator
from copy import deepcopy
from dataclasses import dataclass

from .canonical import canonical_uri, stringify_query_value, uri_encode


class Field:
    """A name-value pair representing a single header in an HTTP request.

    All field names are case insensitive and case-variance must be treated as
    equivalent. Names may be normalized but should be preserved for accuracy during
    transmission.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def as_string(self, delimiter: str = ",") -> str:
        """Get delimited string of all values.

        If the ``Field`` has zero values, the empty string is returned. If the ``Field``
        has exactly one value, the value is returned unmodified.
        """
        value_count = len(self.values)
        if value_count == 0:
            return ""
        if value_count == 1:
            return self.values[0]
        return delimiter.join(quote_and_escape_field_value(val) for val in self.values)

    def __eq__(self, other: object) -> bool:
        """Name and values must match.

        Values order must match.
        """
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, value={self.values!r})"


class Fields:
    def __init__(self, initial: Iterable[Field] | None = None):
        """Collection of header entries mapped by case-insensitive name.

        :param initial: Initial list of ``Field`` objects. ``Field``s can also be added
        and later removed.
        """
        init_fields = list(initial) if initial is not None else []
        init_field_names = [self._normalize_field_name(fld.name) for fld in init_fields]
        fname_counter = Counter(init_field_names)
        repeated_names_exist = (
            len(init_fields) > 0 and fname_counter.most_common(1)[0][1] > 1
        )
        if repeated_names_exist:
            non_unique_names = [name for name, num in fname_counter.items() if num > 1]
            raise ValueError(
                "Field names of the initial list of fields must be unique. The "
                "following normalized field names appear more than once: "
                f"{', '.join(non_unique_names)}."
            )
        init_tuples = zip(init_field_names, init_fields)
        self.entries: OrderedDict[str, Field] = OrderedDict(init_tuples)

    @classmethod
    def from_mapping(cls, headers: dict[str, str]) -> Fields:
        return cls([Field(name=k, values=[v]) for k, v in headers.items()])

    def set_field(self, field: Field) -> None:
        """Alias for __setitem__ to utilize the field.name for the entry key."""
        self.__setitem__(field.name, field)

    def upsert(self, name: str, value: str) -> None:
        """Replace the values of ``name`` if present, otherwise append a new field.

        An existing entry keeps its position in the collection but takes the casing
        of ``name``.
        """
        self.set_field(Field(name=name, values=[value]))

    def __setitem__(self, name: str, field: Field) -> None:
        """Set or override entry for a Field name."""
        normalized_name = self._normalize_field_name(name)
        normalized_field_name = self._normalize_field_name(field.name)
        if normalized_name != normalized_field_name:
            raise ValueError(
                f"Supplied key {name} does not match Field.name "
                f"provided: {normalized_field_name}"
            )
        self.entries[normalized_name] = field

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self[key] if key in self else default

    def __getitem__(self, name: str) -> Field:
        """Retrieve Field entry."""
        normalized_name = self._normalize_field_name(name)
        return self.entries[normalized_name]

    def __delitem__(self, name: str) -> None:
        """Delete entry from collection."""
        normalized_name = self._normalize_field_name(name)
        del self.entries[normalized_name]

    def as_dict(self) -> dict[str, str]:
        """Original-case names mapped to their delimited values."""
        return {field.name: field.as_string() for field in self}

    def _normalize_field_name(self, name: str) -> str:
        """Normalize field names.

        For use as key in ``entries``.
        """
        return name.lower()

    def __eq__(self, other: object) -> bool:
        """Entries must match in values and order."""
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Fields({self.entries})"

    def __contains__(self, key: str) -> bool:
        return self._normalize_field_name(key) in self.entries


@dataclass(kw_only=True)
class QueryParam:
    """A single query parameter as entered by the caller."""

    key: str
    value: str | int | float | None = None
    """``None`` means the value is absent and is sent as an empty value."""

    disabled: bool = False
    """Disabled params are neither signed nor transmitted."""


class RequestDescriptor:
    def __init__(
        self,
        *,
        method: str,
        path: str = "/",
        query: Iterable[QueryParam] | None = None,
        fields: Fields | None = None,
        body: bytes | str | None = None,
    ):
        """The parts of an outgoing request that take part in signing.

        :param method: HTTP verb, for example ``GET``.
        :param path: Request path, with or without a leading ``/``.
        :param query: Ordered query parameters, including disabled ones.
        :param fields: Request headers. Signing upserts into this collection.
        :param body: Request payload, or ``None`` for bodiless requests.
        """
        self.method = method
        self.path = path
        self.query: list[QueryParam] = list(query) if query is not None else []
        self.fields = fields if fields is not None else Fields()
        self.body = body

    def enabled_query(self) -> list[QueryParam]:
        """Query params that are signed and transmitted."""
        return [param for param in self.query if not param.disabled]

    def build_url(self, base_url: str) -> str:
        """Construct the URL actually sent over the network.

        ``base_url`` is the network destination, which may differ from the host the
        request is signed for. Disabled query params are left out.
        """
        url = base_url.rstrip("/") + canonical_uri(self.path)
        pairs = [
            f"{uri_encode(param.key)}={uri_encode(stringify_query_value(param))}"
            for param in self.enabled_query()
        ]
        if pairs:
            url = f"{url}?{'&'.join(pairs)}"
        return url

    def __deepcopy__(
        self, memo: dict[int, RequestDescriptor] | None = None
    ) -> RequestDescriptor:
        if memo is None:
            memo = {}

        if id(self) in memo:
            return memo[id(self)]

        # bytes and str bodies are immutable so they're shared with the copy
        new_instance = self.__class__(
            method=self.method,
            path=self.path,
            query=deepcopy(self.query, memo),
            fields=deepcopy(self.fields, memo),
            body=self.body,
        )
        memo[id(self)] = new_instance
        return new_instance

    def __repr__(self) -> str:
        return (
            f"RequestDescriptor(method={self.method!r}, path={self.path!r}, "
            f"query={self.query!r}, fields={self.fields!r})"
        )


def quote_and_escape_field_value(value: str) -> str:
    """Escapes and quotes a single :class:`Field` value if necessary.

    See :func:`Field.as_string` for quoting and escaping logic.
    """
    chars_to_quote = (",", '"')
    if any(char in chars_to_quote for char in value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    else:
        return value
