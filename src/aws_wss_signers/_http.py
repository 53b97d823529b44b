# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Endpoint and query parameter primitives used when presigning WebSocket URLs."""

from __future__ import annotations

from collections import Counter, OrderedDict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from urllib.parse import quote, urlunparse

from .exceptions import (
    CryptoFailureError,
    DuplicateParameterKeyError,
    InvalidEndpointError,
    MalformedEndpointError,
)

WSS_SCHEME: str = "wss"


def uri_encode(value: str) -> str:
    """Percent-encode ``value`` the way SigV4 canonical strings require.

    Every UTF-8 byte outside of ``A-Z a-z 0-9 - _ . ~`` becomes ``%XX`` with
    uppercase hex digits. Unlike form encoding, ``! ' ( ) *`` and ``/`` are
    escaped too and spaces become ``%20``.

    :raises CryptoFailureError: ``value`` has no UTF-8 encoding, such as a lone
        surrogate.
    """
    try:
        return quote(string=value, safe="")
    except UnicodeEncodeError as e:
        raise CryptoFailureError("Query component isn't valid UTF-8 text.") from e


class QueryParameters:
    def __init__(
        self,
        initial: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    ):
        """Collection of query parameters with unique, case-sensitive names.

        :param initial: Initial parameters, either a mapping or name-value pairs.
            Names repeated within the pairs are rejected.
        """
        if isinstance(initial, Mapping):
            init_pairs = list(initial.items())
        else:
            init_pairs = list(initial) if initial is not None else []
        name_counter = Counter(name for name, _ in init_pairs)
        non_unique_names = [name for name, num in name_counter.items() if num > 1]
        if non_unique_names:
            raise DuplicateParameterKeyError(
                "Query parameter names must be unique. The following names appear "
                f"more than once: {', '.join(non_unique_names)}.",
                key=non_unique_names[0],
            )
        self.entries: OrderedDict[str, str] = OrderedDict(init_pairs)

    def __setitem__(self, name: str, value: str) -> None:
        """Set or override the value for a parameter name."""
        self.entries[name] = value

    def __getitem__(self, name: str) -> str:
        return self.entries[name]

    def __delitem__(self, name: str) -> None:
        del self.entries[name]

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.entries.get(name, default)

    def add(self, name: str, value: str) -> None:
        """Add a parameter that must not already be present."""
        if name in self.entries:
            raise DuplicateParameterKeyError(
                f"Query parameter {name} is already set.", key=name
            )
        self.entries[name] = value

    def extend(self, other: Mapping[str, str] | QueryParameters) -> None:
        """Merge every parameter of ``other`` into this collection.

        Nothing is merged if any name of ``other`` is already present.
        """
        other_items = list(other.items())
        for name, _ in other_items:
            if name in self.entries:
                raise DuplicateParameterKeyError(
                    f"Query parameter {name} collides with an existing parameter.",
                    key=name,
                )
        self.entries.update(other_items)

    def copy(self) -> QueryParameters:
        return QueryParameters(self.entries.items())

    def items(self) -> Iterable[tuple[str, str]]:
        return self.entries.items()

    def sorted_items(self) -> list[tuple[str, str]]:
        """Parameters in ascending byte order of their encoded names."""
        return sorted(
            self.entries.items(), key=lambda item: uri_encode(item[0]).encode("utf-8")
        )

    def as_query_string(self) -> str:
        """Render ``name=value`` pairs joined by ``&``, sorted and strictly encoded."""
        encoded_pairs = sorted(
            (uri_encode(name), uri_encode(value)) for name, value in self.entries.items()
        )
        return "&".join(f"{name}={value}" for name, value in encoded_pairs)

    def __eq__(self, other: object) -> bool:
        """Names and values must match. Insertion order is ignored."""
        if not isinstance(other, QueryParameters):
            return False
        return dict(self.entries) == dict(other.entries)

    def __iter__(self) -> Iterator[str]:
        yield from self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __repr__(self) -> str:
        return f"QueryParameters({dict(self.entries)})"


@dataclass(kw_only=True, frozen=True)
class URI:
    """Target location of a presigned WebSocket connection."""

    scheme: str = WSS_SCHEME
    """Always ``wss`` for parsed endpoints."""

    host: str
    """The host, including an explicit port if the endpoint had one."""

    path: str = "/"
    """Path component of the URI, ``/`` when the endpoint has none."""

    query: str | None = None
    """Rendered query component, set once the URI has been signed."""

    def build(self) -> str:
        """Construct the string form ``{scheme}://{host}{path}?{query}``."""
        components = (
            self.scheme,
            self.host,
            self.path,
            "",  # params
            self.query,
            "",  # fragment
        )
        return urlunparse(components)


def parse_endpoint(endpoint: str) -> URI:
    """Split a raw ``wss://host/path`` endpoint into a :class:`URI`.

    :param endpoint: WebSocket endpoint including scheme, host and optional path.
    :raises InvalidEndpointError: The scheme isn't ``wss://`` or the host is empty.
    :raises MalformedEndpointError: A query string or fragment is embedded.
    """
    prefix = f"{WSS_SCHEME}://"
    if not endpoint.startswith(prefix):
        raise InvalidEndpointError(
            f"Endpoint {endpoint} is not a secure WebSocket endpoint. "
            f"It should start with {prefix}."
        )
    if "?" in endpoint or "#" in endpoint:
        raise MalformedEndpointError(
            f"Endpoint {endpoint} should not contain any query parameters "
            "or fragments."
        )

    remainder = endpoint[len(prefix) :]
    host, slash, path = remainder.partition("/")
    if not host:
        raise InvalidEndpointError(f"Endpoint {endpoint} does not contain a host.")
    return URI(host=host, path=f"{slash}{path}" if slash else "/")
