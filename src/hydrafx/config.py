"""Settings loaded from the environment (``HYDRAFX_*``)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class SsrSettings(BaseSettings):
    """Where the server-rendered pieces go in the page and where the API lives."""

    model_config = SettingsConfigDict(env_prefix="HYDRAFX_", extra="ignore")

    # Page template
    template_path: Path = Path("index.html")
    reload_template: bool = False  # dev: re-read the template on every request
    app_placeholder: str = "<!--ssr-->"
    data_placeholder: str = "<!--ssr-data-->"
    data_element_id: str = "ssr-data"
    hydrate_attribute: str = "data-hydrate"

    # API
    api_prefix: str = "/api"
    internal_base_url: str = "http://ssr.internal"
    public_base_url: str = "http://localhost:3000"


@lru_cache
def get_settings() -> SsrSettings:
    return SsrSettings()
