"""End-to-end tests: server render over Starlette, then client hydration."""

import asyncio

import httpx
import pytest
from starlette.testclient import TestClient

from hydrafx import (
    Component,
    DataStore,
    Hydration,
    PageTemplate,
    SsrSettings,
    create_app,
    extract_ssr_data,
    h,
    load_page,
    render_page,
    use_async_data,
)
from hydrafx.server import DEFAULT_TEMPLATE

from sample_app import Broken, Greeting


@pytest.fixture
def settings():
    return SsrSettings(template_path="does-not-exist.html")


@pytest.fixture
def app(api_routes, settings):
    return create_app(h(Greeting), api_routes=api_routes, settings=settings)


class TestServerRender:
    def test_renders_with_data_embedded(self, app, hits):
        response = TestClient(app).get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        html = response.text
        assert "<p>world</p>" in html
        assert 'data-hydrate="true"' in html
        store, _ = extract_ssr_data(html)
        assert list(v for _, v in store.items()) == [[{"hello": "world"}]]
        assert hits.count == 1

    def test_every_path_renders(self, app):
        assert "<p>world</p>" in TestClient(app).get("/some/page").text

    def test_api_prefix_is_not_rendered(self, app):
        response = TestClient(app).get("/api/nope")
        assert response.status_code == 404
        assert "ssr-data" not in response.text

    def test_api_still_served(self, app):
        assert TestClient(app).get("/api/hello").json() == {"hello": "world"}

    def test_handler_crash_becomes_error_entry(self, api_routes, settings):
        app = create_app(h(Broken), api_routes=api_routes, settings=settings)
        html = TestClient(app).get("/").text
        assert "<p>error</p>" in html
        store, _ = extract_ssr_data(html)
        [(_, entry)] = store.items()
        assert entry[0] is None
        assert entry[1].startswith("Server error '500 Internal Server Error'")

    def test_root_factory_gets_request(self, settings):
        class Path(Component):
            def render(self, slot):
                return f"<p>{self.props['path']}</p>"

        app = create_app(lambda request: h(Path, path=request.url.path), settings=settings)
        assert "<p>/deep/link</p>" in TestClient(app).get("/deep/link").text

    def test_each_request_gets_a_fresh_store(self, app):
        client = TestClient(app)
        first, _ = extract_ssr_data(client.get("/").text)
        second, _ = extract_ssr_data(client.get("/").text)
        assert list(first) == list(second)
        assert len(second) == 1


class TestRenderPage:
    def test_without_internal_http(self):
        class Local(Component):
            def setup(self):
                self.value = use_async_data(lambda: 41 + 1)

            def render(self, slot):
                return f"<b>{self.value.data}</b>"

        html = asyncio.run(render_page(h(Local), DEFAULT_TEMPLATE, settings=SsrSettings()))
        assert "<b>42</b>" in html
        store, _ = extract_ssr_data(html)
        assert [entry for _, entry in store.items()] == [[42]]

    def test_render_failure_propagates(self):
        class Exploding(Component):
            def render(self, slot):
                raise RuntimeError("template bug")

        with pytest.raises(RuntimeError, match="template bug"):
            asyncio.run(render_page(h(Exploding), DEFAULT_TEMPLATE, settings=SsrSettings()))


class TestPageTemplate:
    def test_text(self):
        assert PageTemplate(text="<html/>").load() == "<html/>"

    def test_file_read_once(self, tmp_path):
        path = tmp_path / "index.html"
        path.write_text("v1")
        template = PageTemplate(path)
        path.write_text("v2")
        assert template.load() == "v1"

    def test_reload_reads_every_time(self, tmp_path):
        path = tmp_path / "index.html"
        path.write_text("v1")
        template = PageTemplate(path, reload=True)
        path.write_text("v2")
        assert template.load() == "v2"

    def test_from_settings_falls_back_to_builtin(self, settings):
        assert PageTemplate.from_settings(settings).load() == DEFAULT_TEMPLATE

    def test_from_settings_uses_file(self, tmp_path):
        path = tmp_path / "index.html"
        path.write_text("<custom/>")
        settings = SsrSettings(template_path=path, reload_template=True)
        template = PageTemplate.from_settings(settings)
        assert template.reload
        assert template.load() == "<custom/>"

    def test_needs_a_source(self):
        with pytest.raises(ValueError):
            PageTemplate()


class TestHydration:
    def _page(self, app):
        return TestClient(app).get("/").text

    def test_hydrates_without_refetching(self, app, hits, settings):
        html = self._page(app)
        assert hits.count == 1

        async def go():
            async with Hydration(
                h(Greeting),
                html,
                base_url="http://testserver/api",
                transport=httpx.ASGITransport(app=app),
                settings=settings,
            ) as hydration:
                assert hydration.hydrating
                assert hydration.render() == "<p>world</p>"
                await hydration.mount()
                return hydration

        hydration = asyncio.run(go())
        assert hits.count == 1
        assert hydration.root.component.hello.from_server
        assert "ssr-data" not in hydration.document

    def test_revalidate_fetches_again(self, api_routes, settings, hits):
        app = create_app(h(Greeting, revalidate=True), api_routes=api_routes, settings=settings)
        html = self._page(app)

        async def go():
            async with Hydration(
                h(Greeting, revalidate=True),
                html,
                base_url="http://testserver/api",
                transport=httpx.ASGITransport(app=app),
                settings=settings,
            ) as hydration:
                await hydration.mount()
                return hydration

        hydration = asyncio.run(go())
        assert hits.count == 2
        assert not hydration.root.component.hello.from_server
        assert len(hydration.ssr_data) == 1

    def test_client_only_render_fetches_on_mount(self, app, hits, settings):
        async def go():
            async with Hydration(
                h(Greeting),
                base_url="http://testserver/api",
                transport=httpx.ASGITransport(app=app),
                settings=settings,
            ) as hydration:
                assert not hydration.hydrating
                assert hydration.render() == "<p>loading</p>"
                await hydration.mount()
                return hydration.render()

        assert asyncio.run(go()) == "<p>world</p>"
        assert hits.count == 1

    def test_error_replayed_from_server(self, api_routes, settings):
        app = create_app(h(Broken), api_routes=api_routes, settings=settings)
        hydration = Hydration(h(Broken), self._page(app), settings=settings)
        assert hydration.render() == "<p>error</p>"
        asyncio.run(hydration.aclose())

    def test_empty_store_without_document(self, settings):
        hydration = Hydration(h(Component), settings=settings)
        assert isinstance(hydration.ssr_data, DataStore)
        assert len(hydration.ssr_data) == 0
        asyncio.run(hydration.aclose())


class TestLoadPage:
    def test_fetches_and_hydrates(self, app, hits, settings):
        transport = httpx.ASGITransport(app=app)

        async def go():
            async with httpx.AsyncClient(transport=transport) as client:
                hydration = await load_page(
                    "http://testserver/", h(Greeting), client=client, transport=transport, settings=settings
                )
                assert not client.is_closed
                async with hydration:
                    await hydration.mount()
                    return hydration.render(), hydration.hydrating

        rendered, hydrating = asyncio.run(go())
        assert rendered == "<p>world</p>"
        assert hydrating
        assert hits.count == 1
