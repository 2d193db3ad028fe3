"""How a data cell hooks into the tree, per render mode.

A render context picks one strategy when it is created; cells never check
which side they run on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hydrafx.component import on_mounted, on_server_prefetch
from hydrafx.store import error_entry, ok_entry

if TYPE_CHECKING:
    from hydrafx.cell import AsyncData
    from hydrafx.context import RenderContext


class ProducingStrategy:
    """Server side: fetch during prefetch and record the outcome."""

    def attach(self, cell: AsyncData, ctx: RenderContext) -> None:
        options = cell.options
        if options.manual or options.client_only:
            return

        async def prefetch() -> None:
            await cell.execute()
            if cell.state == "error":
                ctx.ssr_data.set(cell.id, error_entry(cell.error))
            else:
                ctx.ssr_data.set(cell.id, ok_entry(cell.data))

        on_server_prefetch(prefetch)


class ConsumingStrategy:
    """Client side: adopt what the server recorded, fetch what it did not."""

    def attach(self, cell: AsyncData, ctx: RenderContext) -> None:
        options = cell.options
        if options.manual:
            return
        if options.client_only:
            on_mounted(cell.execute)
            return

        entry = ctx.ssr_data.get(cell.id)
        if entry is not None:
            cell.adopt(entry)
        if entry is None or options.revalidate:
            on_mounted(cell.execute)
