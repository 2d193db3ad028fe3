"""Deterministic cell identifiers.

Both executions of a tree (server and client) compute the same identifier for
the same call site without talking to each other:

    path_hash = hash_fast("Root\\nList\\nItem(a)")
    cell_id   = hash_fast(f"{path_hash}-{call_index}")   # or f"{path_hash}-{key}"

The call index counts requests per path hash within one render context, so
it only matches across executions when calls happen in the same order. Pass
an explicit ``key`` to a data call when that order cannot be guaranteed.

Counters are keyed by the hash, not the path string: two different paths
that collide share one counter. That risk is accepted for a 32-bit hash over
the handful of components in one request.
"""

from __future__ import annotations

from typing import Sequence

from hydrafx.component import ComponentInstance, current_instance
from hydrafx.errors import UsageError

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
PATH_SEPARATOR = "\n"

_MASK = 0xFFFFFFFF


def _int32(value: int) -> int:
    value &= _MASK
    return value - 0x100000000 if value & 0x80000000 else value


def hash_fast(text: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of text, as a signed int."""
    h = FNV_OFFSET_BASIS
    raw = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(raw), 2):
        h ^= raw[i] | (raw[i + 1] << 8)
        h = (h * FNV_PRIME) & _MASK
    return _int32(h)


def path_hash(path: Sequence[str]) -> int:
    return hash_fast(PATH_SEPARATOR.join(path))


def cell_id(path_hash_: int, index_or_key: int | str) -> int:
    return hash_fast(f"{path_hash_}-{index_or_key}")


class CallCounter:
    """Per-render counter of data calls issued for each path hash."""

    __slots__ = ("_issued",)

    def __init__(self) -> None:
        self._issued: dict[int, int] = {}

    def next(self, path_hash_: int) -> int:
        """Return 0 on the first request for a hash, then 1, 2, ..."""
        index = self._issued.get(path_hash_, -1) + 1
        self._issued[path_hash_] = index
        return index

    def __len__(self) -> int:
        return len(self._issued)


def component_path(instance: ComponentInstance | None) -> list[str]:
    """Names from the root down to instance, keyed siblings suffixed ``(key)``."""
    path: list[str] = []
    while instance is not None:
        name = instance.name
        if instance.key is not None and str(instance.key):
            name += f"({instance.key})"
        path.append(name)
        instance = instance.parent
    path.reverse()
    return path


def use_path_hash() -> int:
    """Path hash of the component whose setup is running."""
    instance = current_instance()
    if instance is None:
        raise UsageError("use_path_hash() must be called during component setup")
    return path_hash(component_path(instance))


def use_ssr_id(key: str | None = None) -> int:
    """Identifier for the next data call of the current component.

    Without a key the identifier depends on how many calls this component
    path already made in the active render context.
    """
    h = use_path_hash()
    if not key:
        from hydrafx.context import use_render_context

        return cell_id(h, use_render_context().next_call_index(h))
    return cell_id(h, key)
