"""Embedding the data store in a page and getting it back out.

The server writes the store as a JSON script block at the data placeholder
and flips the hydration marker on the root element:

    <div id="app" data-hydrate="true">...</div>
    <script type="application/json" id="ssr-data">[[-1234,["hello"]]]</script>

The client finds the block by id, decodes it and drops it from the page
before any component runs.
"""

from __future__ import annotations

import logging
import re

from hydrafx.config import SsrSettings, get_settings
from hydrafx.store import DataStore

logger = logging.getLogger("hydrafx.document")

# JSON allows these as \u escapes; raw, they could end the script element early.
_SCRIPT_ESCAPES = str.maketrans({"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"})


def render_ssr_data(store: DataStore, element_id: str = "ssr-data") -> str:
    data = store.serialize().translate(_SCRIPT_ESCAPES)
    return f'<script type="application/json" id="{element_id}">{data}</script>'


def embed_document(
    template: str,
    rendered: str,
    store: DataStore,
    settings: SsrSettings | None = None,
) -> str:
    """Fill the template with rendered markup and the serialized store."""
    settings = settings or get_settings()
    marker = settings.hydrate_attribute
    return (
        template.replace(settings.app_placeholder, rendered, 1)
        .replace(f'{marker}="false"', f'{marker}="true"', 1)
        .replace(
            settings.data_placeholder,
            render_ssr_data(store, settings.data_element_id),
            1,
        )
    )


def _script_pattern(element_id: str) -> re.Pattern[str]:
    return re.compile(
        rf"<script\b[^>]*\bid=[\"']{re.escape(element_id)}[\"'][^>]*>(.*?)</script\s*>",
        re.DOTALL | re.IGNORECASE,
    )


def extract_ssr_data(document: str, element_id: str = "ssr-data") -> tuple[DataStore, str]:
    """Decode the embedded store and return it with the block removed.

    A document without the block yields an empty store and comes back as is.
    """
    match = _script_pattern(element_id).search(document)
    if match is None:
        logger.debug("No #%s block; starting with an empty store", element_id)
        return DataStore(), document
    store = DataStore.deserialize(match.group(1))
    logger.debug("Loaded %d ssr entries from #%s", len(store), element_id)
    return store, document[: match.start()] + document[match.end():]


def is_hydrating(document: str, attribute: str = "data-hydrate") -> bool:
    """True when the page was produced by a server render."""
    return re.search(rf"\b{re.escape(attribute)}=[\"']true[\"']", document) is not None
