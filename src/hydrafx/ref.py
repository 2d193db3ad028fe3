"""Reactive refs and effects.

Async data cells keep ``state``, ``data`` and ``error`` in Refs. Reading a Ref
inside an effect subscribes the effect; writing a different value re-runs it.
This is what lets a client view re-render when a mount-time fetch resolves.

Two effect flavors:
- autorun(fn): runs fn now and again whenever a Ref it read changes.
- reaction(source, callback): tracks source and calls callback with the new
  value only when the value returned by source changes.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from hydrafx._tracking import current_effect, schedule

T = TypeVar("T")


class Ref(Generic[T]):
    """A single reactive value."""

    __slots__ = ("_value", "_observers")

    def __init__(self, value: T) -> None:
        self._value = value
        self._observers: set[Effect] = set()

    def get(self) -> T:
        effect = current_effect.get()
        if effect is not None:
            self._observers.add(effect)
            effect._dependencies.add(self)
        return self._value

    def peek(self) -> T:
        """Read without subscribing the running effect."""
        return self._value

    def set(self, value: T) -> None:
        old = self._value
        if old is value or old == value:
            return
        self._value = value
        for observer in list(self._observers):
            schedule(observer)

    def _unsubscribe(self, effect: Effect) -> None:
        self._observers.discard(effect)

    def __repr__(self) -> str:
        return f"Ref({self._value!r})"


class Effect:
    """A side effect that re-runs when the Refs it read change."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn
        self._dependencies: set[Ref] = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _track(self) -> Any:
        self._release()
        token = current_effect.set(self)
        try:
            return self._fn()
        finally:
            current_effect.reset(token)

    def _run(self) -> None:
        if not self._disposed:
            self._track()

    def _release(self) -> None:
        for dep in self._dependencies:
            dep._unsubscribe(self)
        self._dependencies.clear()

    def dispose(self) -> None:
        """Stop re-running and drop all subscriptions."""
        self._disposed = True
        self._release()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        name = getattr(self._fn, "__name__", "effect")
        return f"{type(self).__name__}({name}, {state})"


class _Reaction(Effect):
    """Effect that compares the tracked value before calling back."""

    def __init__(self, source: Callable[[], T], callback: Callable[[T], None]) -> None:
        super().__init__(source)
        self._callback = callback
        self._last: Any = None
        self._primed = False

    def _run(self) -> None:
        if self._disposed:
            return
        value = self._track()
        if not self._primed or value != self._last:
            self._last = value
            self._primed = True
            self._callback(value)

    def _prime(self) -> None:
        self._last = self._track()
        self._primed = True


def autorun(fn: Callable[[], Any]) -> Effect:
    """Run fn now and whenever a Ref it reads changes.

    Usage:
        count = Ref(0)
        seen = []
        effect = autorun(lambda: seen.append(count.get()))
        count.set(1)      # seen == [0, 1]
        effect.dispose()
    """
    effect = Effect(fn)
    effect._run()
    return effect


def reaction(
    source: Callable[[], T],
    callback: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> Effect:
    """Call callback whenever the value produced by source changes."""
    effect = _Reaction(source, callback)
    if fire_immediately:
        effect._run()
    else:
        effect._prime()
    return effect
