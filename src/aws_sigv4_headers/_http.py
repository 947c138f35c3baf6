"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from .exceptions import MissingExpectedParameterException


@dataclass
class Field:
    """A single header name with its ordered values."""

    name: str
    values: list[str] = field(default_factory=list)

    def add(self, value: str) -> None:
        """Append a value to the field."""
        self.values.append(value)

    def set(self, values: list[str]) -> None:
        """Replace all existing values of the field."""
        self.values = list(values)

    def as_string(self, delimiter: str = ", ") -> str:
        """Get the comma-delimited string of all values."""
        return delimiter.join(self.values)


class Fields:
    """
    Insertion ordered collection of :class:`Field` keyed by header name.

    Names are compared case-insensitively but stored as first given, so
    ``fields["host"]`` finds a field set as ``Host``.
    """

    def __init__(self, initial: Iterable[Field] | dict[str, list[str]] | None = None):
        self._entries: dict[str, Field] = {}
        if initial is None:
            return
        if isinstance(initial, dict):
            initial = (Field(name=k, values=list(v)) for k, v in initial.items())
        for fld in initial:
            self.set_field(fld)

    def set_field(self, field: Field) -> None:
        """Insert or replace a field, keeping its original position if replaced."""
        # dict assignment to an existing key keeps its slot.
        self._entries[self._normalize_field_name(field.name)] = field

    def get_field(self, name: str) -> Field | None:
        return self._entries.get(self._normalize_field_name(name))

    def remove_field(self, name: str) -> None:
        """Remove a field by name. Missing names are ignored."""
        self._entries.pop(self._normalize_field_name(name), None)

    def _normalize_field_name(self, name: str) -> str:
        return name.lower()

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self._normalize_field_name(name) in self._entries

    def __getitem__(self, name: str) -> Field:
        return self._entries[self._normalize_field_name(name)]

    def __setitem__(self, name: str, values: list[str]) -> None:
        self.set_field(Field(name=name, values=list(values)))

    def __delitem__(self, name: str) -> None:
        del self._entries[self._normalize_field_name(name)]

    def __iter__(self) -> Iterator[Field]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"Fields({list(self._entries.values())!r})"


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location for a request."""

    scheme: str = "https"
    host: str
    port: int | None = None
    path: str | None = None
    query: str | None = None
    fragment: str | None = None

    @property
    def netloc(self) -> str:
        """Construct the netloc string in the format ``{host}:{port}``.

        IPv6 literals are wrapped in brackets. The port is omitted when unset.
        """
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None:
            return host
        return f"{host}:{self.port}"

    @classmethod
    def from_url(cls, url: str) -> "URI":
        """Parse an absolute URL into its components.

        :raises ValueError: if ``urllib.parse`` rejects the URL (for
            example an out-of-range port).
        :raises MissingExpectedParameterException: if the URL has no host.
        """
        parts = urlsplit(url)
        if not parts.hostname:
            raise MissingExpectedParameterException(
                f"Unable to determine a host from URL {url!r}."
            )
        return cls(
            scheme=parts.scheme or "https",
            host=parts.hostname,
            port=parts.port,
            path=parts.path or None,
            query=parts.query or None,
            fragment=parts.fragment or None,
        )
