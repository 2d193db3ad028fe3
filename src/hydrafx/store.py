"""Request-scoped data store.

Maps cell identifiers to entries written Go-style as ``[result, err]``:

    [value]              the call succeeded
    [None, "message"]    the call failed

The wire form is a JSON array of ``[id, entry]`` pairs in insertion order.
"""

from __future__ import annotations

import json
from typing import Any, Iterator

from pydantic import TypeAdapter

from hydrafx.errors import SsrDataError

_ANY = TypeAdapter(Any)


def _jsonable(value: Any) -> Any:
    return _ANY.dump_python(value, mode="json")


Entry = list[Any]


def ok_entry(value: Any) -> Entry:
    return [value]


def error_entry(message: str) -> Entry:
    return [None, message]


def unpack_entry(entry: Entry) -> tuple[Any, str | None]:
    """Split an entry into ``(value, error)``."""
    value = entry[0] if entry else None
    error = entry[1] if len(entry) > 1 else None
    return value, error


class DataStore:
    """Identifier -> entry mapping owned by one render context."""

    __slots__ = ("_entries",)

    def __init__(self, entries: dict[int, Entry] | None = None) -> None:
        self._entries: dict[int, Entry] = dict(entries) if entries else {}

    def get(self, id_: int) -> Entry | None:
        return self._entries.get(id_)

    def set(self, id_: int, entry: Entry) -> None:
        self._entries[id_] = entry

    def has(self, id_: int) -> bool:
        return id_ in self._entries

    __contains__ = has

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def items(self):
        return self._entries.items()

    def serialize(self) -> str:
        return json.dumps(
            [[id_, entry] for id_, entry in self._entries.items()],
            default=_jsonable,
            separators=(",", ":"),
        )

    @classmethod
    def deserialize(cls, text: str) -> DataStore:
        try:
            pairs = json.loads(text)
        except ValueError as e:
            raise SsrDataError(f"ssr data is not valid JSON: {e}") from e
        if not isinstance(pairs, list):
            raise SsrDataError("ssr data must be a JSON array of [id, entry] pairs")
        store = cls()
        for pair in pairs:
            if (
                not isinstance(pair, list)
                or len(pair) != 2
                or not isinstance(pair[0], int)
                or not isinstance(pair[1], list)
            ):
                raise SsrDataError(f"malformed ssr data pair: {pair!r}")
            store.set(pair[0], pair[1])
        return store

    def __repr__(self) -> str:
        return f"DataStore({self._entries!r})"


def create_store() -> DataStore:
    return DataStore()


def serialize_store(store: DataStore) -> str:
    return store.serialize()


def deserialize_store(text: str) -> DataStore:
    return DataStore.deserialize(text)
