"""Minimal component tree.

Just enough of a component framework to drive data calls the same way on
both sides:

1. ``setup_tree`` walks the tree synchronously, instantiating components and
   calling ``setup()`` with the instance set as current. Hooks and data calls
   made here are attributed to that instance.
2. ``prefetch_tree`` (server) awaits every server-prefetch hook concurrently,
   only after the whole walk finished.
3. ``run_mounted`` (client) runs mount hooks children first.
4. ``render_tree`` renders every component to a string.

The tree's shape comes from ``children()`` during setup, so it must not
depend on fetched data. ``render()`` runs last and may read any of it.
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, Iterable, Iterator

from hydrafx.errors import UsageError

Hook = Callable[[], Any]


class Component:
    """Base class for tree nodes. Subclasses override the three methods."""

    name: ClassVar[str | None] = None

    def __init__(self, **props: Any) -> None:
        self.props = props

    def setup(self) -> None:
        """Register data calls and hooks."""

    def children(self) -> Iterable[Node]:
        return ()

    def render(self, slot: str) -> str:
        """Render this component; ``slot`` is the rendered children."""
        return slot


@dataclass(frozen=True)
class Node:
    """Description of a component to instantiate: type, sibling key, props."""

    type: type[Component]
    key: str | int | None = None
    props: dict[str, Any] = field(default_factory=dict)


def h(type_: type[Component], key: str | int | None = None, **props: Any) -> Node:
    return Node(type_, key, props)


@dataclass(eq=False)
class ComponentInstance:
    component: Component
    key: str | int | None = None
    parent: ComponentInstance | None = None
    children: list[ComponentInstance] = field(default_factory=list)
    prefetch_hooks: list[Hook] = field(default_factory=list)
    mounted_hooks: list[Hook] = field(default_factory=list)

    @property
    def name(self) -> str:
        cls = type(self.component)
        return cls.name or cls.__name__

    def walk(self) -> Iterator[ComponentInstance]:
        """Pre-order: parent before children, siblings in order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def walk_post(self) -> Iterator[ComponentInstance]:
        for child in self.children:
            yield from child.walk_post()
        yield self


_current_instance: contextvars.ContextVar[ComponentInstance | None] = contextvars.ContextVar(
    "hydrafx_current_instance", default=None
)


def current_instance() -> ComponentInstance | None:
    return _current_instance.get()


def _require_instance(hook_name: str) -> ComponentInstance:
    instance = _current_instance.get()
    if instance is None:
        raise UsageError(f"{hook_name}() must be called during component setup")
    return instance


def on_server_prefetch(hook: Callable[[], Awaitable[Any]]) -> None:
    _require_instance("on_server_prefetch").prefetch_hooks.append(hook)


def on_mounted(hook: Hook) -> None:
    _require_instance("on_mounted").mounted_hooks.append(hook)


def setup_tree(node: Node, parent: ComponentInstance | None = None) -> ComponentInstance:
    instance = ComponentInstance(node.type(**node.props), node.key, parent)
    token = _current_instance.set(instance)
    try:
        instance.component.setup()
        child_nodes = list(instance.component.children())
    finally:
        _current_instance.reset(token)
    for child in child_nodes:
        instance.children.append(setup_tree(child, instance))
    return instance


async def prefetch_tree(root: ComponentInstance) -> None:
    hooks = [hook for inst in root.walk() for hook in inst.prefetch_hooks]
    if hooks:
        await asyncio.gather(*(hook() for hook in hooks))


async def run_mounted(root: ComponentInstance) -> None:
    pending = []
    for inst in root.walk_post():
        for hook in inst.mounted_hooks:
            result = hook()
            if inspect.isawaitable(result):
                pending.append(result)
    if pending:
        await asyncio.gather(*pending)


def render_tree(root: ComponentInstance) -> str:
    slot = "".join(render_tree(child) for child in root.children)
    return root.component.render(slot)
