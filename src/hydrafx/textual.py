"""Textual integration for hydrafx. Opt-in, requires textual.

A hydrated tree can back a Textual widget. Cell refs change when mount-time
fetches resolve; the bridges here turn those changes into widget updates.

Guarding, NoMatches handling and thread marshaling live here so call sites
stay plain.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches
from textual.widgets import Static

from hydrafx.cell import AsyncData
from hydrafx.client import Hydration
from hydrafx.ref import Effect
from hydrafx.ref import autorun as _autorun
from hydrafx.ref import reaction as _reaction

# Keyed by id(app) so several apps can coexist in one process.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Hold guarded effects while widgets are being swapped."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Can the widget tree be queried right now?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn: Callable[..., Any]) -> Callable[..., None]:
    main = threading.get_ident()

    def safe(*args: Any) -> None:
        try:
            fn(*args)
        except NoMatches:
            pass

    def guarded(*args: Any) -> None:
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(safe, *args)
        else:
            safe(*args)

    return guarded


def reaction(app, source, effect_fn, *, fire_immediately=False) -> Effect:
    """reaction() whose effect only touches widgets when the app can take it."""
    return _reaction(source, _guard(app, effect_fn), fire_immediately=fire_immediately)


def autorun(app, fn) -> Effect:
    """autorun() whose body only runs when the app can take it."""
    return _autorun(_guard(app, fn))


def bind(app, cell: AsyncData, effect_fn, *, fire_immediately=True) -> Effect:
    """Call effect_fn(state, data, error) whenever the cell's outcome changes."""
    return reaction(
        app,
        cell.snapshot,
        lambda snap: effect_fn(*snap),
        fire_immediately=fire_immediately,
    )


class HydrationView(Static):
    """Shows a hydrated tree's rendered output and keeps it current."""

    def __init__(self, hydration: Hydration, **kwargs: Any) -> None:
        super().__init__(markup=False, **kwargs)
        self.hydration = hydration
        self._effect: Effect | None = None

    async def on_mount(self) -> None:
        self._effect = autorun(self.app, lambda: self.update(self.hydration.render()))
        await self.hydration.mount()

    def on_unmount(self) -> None:
        if self._effect is not None:
            self._effect.dispose()
            self._effect = None
