"""Async data cells: one data-fetching call site and its state machine.

    idle -> loading -> done
                    -> error

``use_async_data`` must be called during component setup. On the server the
cell fetches during the prefetch pass and records ``[data]`` or
``[None, error]`` under its identifier; on the client the same call site
computes the same identifier and adopts that entry instead of fetching.

This only works when data calls happen in the same relative order on both
sides. When they cannot (conditional calls, unstable loops), pass ``key=``:
keyed cells are addressed by component path and key alone.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Literal, Mapping, TypeVar, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from hydrafx._tracking import batch
from hydrafx.context import use_render_context
from hydrafx.ids import use_ssr_id
from hydrafx.ref import Ref
from hydrafx.store import Entry, unpack_entry

logger = logging.getLogger("hydrafx.cell")

T = TypeVar("T")

State = Literal["idle", "loading", "done", "error"]
Fetcher = Union[Callable[[], Union[Awaitable[T], T]], Callable[[int], Union[Awaitable[T], T]]]


class AsyncDataOptions(BaseModel):
    """Options of a data call. Accepts ``clientOnly`` style keys; ignores unknown ones."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    key: str | None = None
    client_only: bool = False
    manual: bool = False
    revalidate: bool = False


def _takes_id(fn: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    # A bare *args (an unwrapped decorator, say) does not ask for the id.
    return any(p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) for p in params)


def _message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class AsyncData(Generic[T]):
    """State of one data call. ``state``, ``data`` and ``error`` are reactive."""

    def __init__(self, id_: int, fetcher: Fetcher, options: AsyncDataOptions) -> None:
        self.id = id_
        self.options = options
        self._fetcher = fetcher
        self._pass_id = _takes_id(fetcher)
        self._state: Ref[State] = Ref("idle")
        self._data: Ref[T | None] = Ref(None)
        self._error: Ref[str | None] = Ref(None)
        self._from_server = Ref(False)

    @property
    def state(self) -> State:
        return self._state.get()

    @property
    def data(self) -> T | None:
        return self._data.get()

    @property
    def error(self) -> str | None:
        return self._error.get()

    @property
    def from_server(self) -> bool:
        """True when the current outcome was adopted from the server store."""
        return self._from_server.get()

    def snapshot(self) -> tuple[State, T | None, str | None]:
        return self.state, self.data, self.error

    async def execute(self) -> None:
        """Run the fetcher. Failures end in ``state == "error"``, never raise.

        Overlapping calls are not merged; whichever finishes last wins.
        After an error ``data`` still holds the previous value and is stale.
        """
        self._state.set("loading")
        try:
            result = self._fetcher(self.id) if self._pass_id else self._fetcher()
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            message = _message(exc)
            logger.warning("Async data %d failed: %s", self.id, message)
            with batch():
                self._error.set(message)
                self._from_server.set(False)
                self._state.set("error")
            return
        with batch():
            self._data.set(result)
            self._from_server.set(False)
            self._state.set("done")
            self._error.set(None)

    def adopt(self, entry: Entry) -> None:
        """Take over an outcome recorded by the server."""
        value, error = unpack_entry(entry)
        with batch():
            if error:
                self._state.set("error")
                self._error.set(error)
                self._data.set(None)
            else:
                self._state.set("done")
                self._error.set(None)
                self._data.set(value)
            self._from_server.set(True)

    def __repr__(self) -> str:
        return f"AsyncData(id={self.id}, state={self._state.peek()!r})"


def _coerce_options(
    options: AsyncDataOptions | Mapping[str, Any] | None,
    overrides: Mapping[str, Any],
) -> AsyncDataOptions:
    if isinstance(options, AsyncDataOptions):
        if not overrides:
            return options
        merged = options.model_dump()
    else:
        merged = dict(options or {})
    merged.update(overrides)
    return AsyncDataOptions.model_validate(merged)


def use_async_data(
    fetcher: Fetcher,
    options: AsyncDataOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> AsyncData[Any]:
    """Declare a data call for the component being set up.

    Usage:
        class UserCard(Component):
            def setup(self):
                self.user = use_async_data(load_user, key="user")

            def render(self, slot):
                return f"<p>{self.user.data['name']}</p>"
    """
    opts = _coerce_options(options, kwargs)
    id_ = use_ssr_id(opts.key)
    ctx = use_render_context()
    cell: AsyncData[Any] = AsyncData(id_, fetcher, opts)
    ctx.strategy.attach(cell, ctx)
    return cell
