"""Server-side rendering pipeline and Starlette wiring.

Each document request gets a fresh store and producing context. The tree is
set up, every data call is prefetched concurrently, and the rendered markup
and serialized store are written into the page template.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable, Sequence, Union

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse
from starlette.routing import BaseRoute, Mount, Route

from hydrafx.api import install_api_client
from hydrafx.component import Node, prefetch_tree, render_tree, setup_tree
from hydrafx.config import SsrSettings, get_settings
from hydrafx.context import ServerContext, create_producing_context
from hydrafx.document import embed_document
from hydrafx.proxy import InternalHttp, make_internal_http
from hydrafx.store import create_store

logger = logging.getLogger("hydrafx.server")

RootFactory = Union[Node, Callable[[Request], Node]]

DEFAULT_TEMPLATE = """<!doctype html>
<html>
  <head><meta charset="utf-8"></head>
  <body>
    <div id="app" data-hydrate="false"><!--ssr--></div>
    <!--ssr-data-->
  </body>
</html>
"""


class PageTemplate:
    """The page the rendered tree is written into.

    In production the file is read once. With ``reload=True`` (development)
    it is read again on every request so edits show up without a restart.
    """

    def __init__(self, path: Path | str | None = None, *, text: str | None = None, reload: bool = False) -> None:
        if path is None and text is None:
            raise ValueError("PageTemplate needs a path or text")
        self.path = Path(path) if path is not None else None
        self.reload = reload and self.path is not None
        self._text = text
        if self._text is None and not self.reload:
            self._text = self._read()

    def _read(self) -> str:
        return Path(self.path).read_text(encoding="utf-8")

    def load(self) -> str:
        if self.reload or self._text is None:
            return self._read()
        return self._text

    @classmethod
    def from_settings(cls, settings: SsrSettings) -> PageTemplate:
        if settings.template_path.exists():
            return cls(settings.template_path, reload=settings.reload_template)
        logger.info("Template %s not found; using the built-in page", settings.template_path)
        return cls(text=DEFAULT_TEMPLATE)


async def render_page(
    root: Node,
    template: str,
    *,
    internal_http: InternalHttp | None = None,
    settings: SsrSettings | None = None,
) -> str:
    """Render root into template with its data store embedded."""
    settings = settings or get_settings()
    store = create_store()
    ctx = create_producing_context()
    ctx.provide(ServerContext(data_storage=store, internal_http=internal_http))
    install_api_client(ctx, settings)
    try:
        with ctx.activate():
            tree = setup_tree(root)
            await prefetch_tree(tree)
            rendered = render_tree(tree)
    finally:
        await ctx.aclose()
    logger.debug("Rendered %s with %d ssr entries", tree.name, len(ctx.ssr_data))
    return embed_document(template, rendered, ctx.ssr_data, settings)


def create_ssr_endpoint(
    root: RootFactory,
    template: PageTemplate,
    settings: SsrSettings,
) -> Callable[[Request], Awaitable[HTMLResponse]]:
    async def ssr(request: Request) -> HTMLResponse:
        node = root if isinstance(root, Node) else root(request)
        html = await render_page(
            node,
            template.load(),
            internal_http=make_internal_http(request.app, settings),
            settings=settings,
        )
        return HTMLResponse(html)

    return ssr


def create_app(
    root: RootFactory,
    *,
    api_routes: Sequence[BaseRoute] = (),
    template: PageTemplate | None = None,
    settings: SsrSettings | None = None,
    debug: bool = False,
) -> Starlette:
    """Starlette app serving the API under ``api_prefix`` and rendering everything else."""
    settings = settings or get_settings()
    template = template or PageTemplate.from_settings(settings)
    routes: list[BaseRoute] = [
        Mount(settings.api_prefix, routes=list(api_routes)),
        Route("/{path:path}", create_ssr_endpoint(root, template, settings), methods=["GET"]),
    ]
    return Starlette(debug=debug, routes=routes)
