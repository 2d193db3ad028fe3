"""Client bootstrap: re-run a tree against a server-rendered page.

    hydration = Hydration(h(App), document)
    await hydration.mount()       # runs fetches the server did not cover
    print(hydration.render())
"""

from __future__ import annotations

import logging

import httpx

from hydrafx.api import install_api_client
from hydrafx.component import Node, render_tree, run_mounted, setup_tree
from hydrafx.config import SsrSettings, get_settings
from hydrafx.context import create_consuming_context
from hydrafx.document import extract_ssr_data, is_hydrating
from hydrafx.store import DataStore

logger = logging.getLogger("hydrafx.client")


class Hydration:
    """A consuming render of root, seeded from ``document`` when given.

    Setup runs in the constructor, before anything is mounted, so every cell
    has already adopted its server entry by the time the object is returned.
    """

    def __init__(
        self,
        root: Node,
        document: str | None = None,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings: SsrSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        if document is None:
            store, self.document = DataStore(), ""
            self.hydrating = False
        else:
            store, self.document = extract_ssr_data(document, settings.data_element_id)
            self.hydrating = is_hydrating(document, settings.hydrate_attribute)
        self.context = create_consuming_context(store=store)
        install_api_client(self.context, settings, base_url=base_url, transport=transport)
        with self.context.activate():
            self.root = setup_tree(root)
        logger.debug(
            "%s %s with %d ssr entries",
            "Hydrating" if self.hydrating else "Client render of",
            self.root.name,
            len(store),
        )

    @property
    def ssr_data(self) -> DataStore:
        return self.context.ssr_data

    def render(self) -> str:
        with self.context.activate():
            return render_tree(self.root)

    async def mount(self) -> None:
        with self.context.activate():
            await run_mounted(self.root)

    async def aclose(self) -> None:
        await self.context.aclose()

    async def __aenter__(self) -> Hydration:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def load_page(
    url: str,
    root: Node,
    *,
    client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    settings: SsrSettings | None = None,
) -> Hydration:
    """Fetch a server-rendered page and hydrate root against it.

    ``client`` fetches the page and stays open; the caller owns it. Without
    one a temporary client is used and closed. ``transport`` backs the
    hydrated tree's API client and is closed with the hydration. API calls
    go to the page's origin.
    """
    settings = settings or get_settings()
    if client is None:
        async with httpx.AsyncClient() as page_client:
            response = await page_client.get(url)
    else:
        response = await client.get(url)
    response.raise_for_status()
    origin = f"{response.url.scheme}://{response.url.netloc.decode('ascii')}"
    return Hydration(
        root,
        response.text,
        base_url=origin + settings.api_prefix,
        transport=transport,
        settings=settings,
    )
