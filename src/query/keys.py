# src/query/keys.py — v1
"""Hierarchical query keys.

A QueryKey is an ordered tuple of segments. A segment is either an
identifier (non-empty ``str`` or ``int``) or a ``Params`` record of named
parameters. Params compare by value regardless of insertion order, but keep
that order for display and transport.

This is the only module that builds or compares keys. Everything else goes
through ``build_key``, ``is_prefix_of`` and ``serialize_key``.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any, Union

from metacache.query.errors import KeyConstructionError

_SCALARS = (str, int, float, bool, type(None))


def _freeze(value: Any, path: str) -> Any:
    """Convert a parameter value into an immutable, hashable form."""
    if isinstance(value, Params):
        return value
    if isinstance(value, Mapping):
        return Params(value)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v, f"{path}[{i}]") for i, v in enumerate(value))
    if isinstance(value, _SCALARS):
        return value
    raise KeyConstructionError(
        f"Unsupported parameter value at {path}: {type(value).__name__}"
    )


def _plain(value: Any, *, sort: bool) -> Any:
    """JSON-ready form of a frozen value."""
    if isinstance(value, Params):
        return value.to_dict(sort=sort)
    if isinstance(value, tuple):
        return [_plain(v, sort=sort) for v in value]
    return value


def _canonical(value: Any) -> str:
    return json.dumps(_plain(value, sort=True), sort_keys=True, separators=(",", ":"))


class Params(Mapping[str, Any]):
    """Immutable parameter record used as a key segment."""

    __slots__ = ("_items", "_token")

    def __init__(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        merged: dict[str, Any] = {}
        for source in (values or {}, kwargs):
            for name, value in source.items():
                if not isinstance(name, str):
                    raise KeyConstructionError(
                        f"Parameter names must be strings, got {name!r}"
                    )
                merged[name] = _freeze(value, name)
        self._items: tuple[tuple[str, Any], ...] = tuple(merged.items())
        self._token = _canonical(self)

    def __getitem__(self, name: str) -> Any:
        for key, value in self._items:
            if key == name:
                return value
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Params):
            return self._token == other._token
        if isinstance(other, Mapping):
            return self == Params(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._token)

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self._items)
        return f"Params({body})"

    def to_dict(self, *, sort: bool = False) -> dict[str, Any]:
        """Plain dict; insertion order unless ``sort`` is set."""
        items = sorted(self._items) if sort else self._items
        return {k: _plain(v, sort=sort) for k, v in items}


Segment = Union[str, int, Params]


def _segment(value: Any) -> Segment:
    if isinstance(value, bool):
        raise KeyConstructionError("Boolean key segments must be wrapped in Params")
    if isinstance(value, str):
        if not value:
            raise KeyConstructionError("Identifier segments must be non-empty")
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, Params):
        return value
    if isinstance(value, Mapping):
        return Params(value)
    raise KeyConstructionError(
        f"Unsupported key segment {value!r} ({type(value).__name__})"
    )


class QueryKey:
    """Ordered, immutable sequence of key segments."""

    __slots__ = ("_segments", "_tokens", "_serialized")

    def __init__(self, segments: tuple[Segment, ...]) -> None:
        self._segments = segments
        self._tokens = tuple(_canonical(s) for s in segments)
        self._serialized = "[" + ",".join(self._tokens) + "]"

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def root(self) -> Segment:
        return self._segments[0]

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryKey):
            return NotImplemented
        return self._serialized == other._serialized

    def __hash__(self) -> int:
        return hash(self._serialized)

    def __repr__(self) -> str:
        return f"QueryKey({', '.join(repr(s) for s in self._segments)})"

    def __str__(self) -> str:
        return "/".join(
            json.dumps(s.to_dict(), separators=(",", ":")) if isinstance(s, Params) else str(s)
            for s in self._segments
        )

    def to_wire(self) -> list[Any]:
        """JSON-ready list, Params in insertion order."""
        return [_plain(s, sort=False) for s in self._segments]


def build_key(*segments: Any) -> QueryKey:
    """Build a key; QueryKey arguments are spliced in place.

    ``build_key(parent, "list", {"includeSystem": False})`` extends ``parent``.
    """
    flat: list[Segment] = []
    for value in segments:
        if isinstance(value, QueryKey):
            flat.extend(value.segments)
        else:
            flat.append(_segment(value))
    if not flat:
        raise KeyConstructionError("A query key needs at least one segment")
    return QueryKey(tuple(flat))


def is_prefix_of(prefix: QueryKey, key: QueryKey) -> bool:
    """True when ``prefix``'s segments lead ``key``'s (a key prefixes itself)."""
    n = len(prefix._tokens)
    return n <= len(key._tokens) and key._tokens[:n] == prefix._tokens


def is_strict_prefix_of(prefix: QueryKey, key: QueryKey) -> bool:
    """Ancestor relation of the key tree."""
    return len(prefix) < len(key) and is_prefix_of(prefix, key)


def serialize_key(key: QueryKey) -> str:
    """Canonical string used as the cache store's mapping key."""
    return key._serialized


def parse_key(wire: str | list[Any]) -> QueryKey:
    """Inverse of ``serialize_key`` / ``QueryKey.to_wire``."""
    if isinstance(wire, str):
        try:
            wire = json.loads(wire)
        except json.JSONDecodeError as exc:
            raise KeyConstructionError(f"Malformed serialized key: {exc}") from exc
    if not isinstance(wire, list):
        raise KeyConstructionError("A serialized key must be a JSON list")
    return build_key(*wire)
