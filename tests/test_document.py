"""Tests for embedding and extracting the ssr data block."""

import logging

from hydrafx import DataStore, SsrSettings, embed_document, extract_ssr_data, is_hydrating
from hydrafx.document import render_ssr_data

TEMPLATE = (
    '<html><body><div id="app" data-hydrate="false"><!--ssr--></div>'
    "<!--ssr-data--></body></html>"
)


class TestEmbed:
    def test_fills_placeholders_and_flips_marker(self):
        s = DataStore()
        s.set(42, ["hello"])
        html = embed_document(TEMPLATE, "<p>hi</p>", s, SsrSettings())
        assert '<div id="app" data-hydrate="true"><p>hi</p></div>' in html
        assert '<script type="application/json" id="ssr-data">[[42,["hello"]]]</script>' in html
        assert "<!--ssr" not in html

    def test_empty_store_still_embeds_block(self):
        html = embed_document(TEMPLATE, "", DataStore(), SsrSettings())
        assert 'id="ssr-data">[]</script>' in html

    def test_custom_settings(self):
        settings = SsrSettings(data_element_id="state", hydrate_attribute="data-ssr")
        template = '<div data-ssr="false"><!--ssr--></div><!--ssr-data-->'
        html = embed_document(template, "x", DataStore(), settings)
        assert 'data-ssr="true"' in html
        assert 'id="state"' in html

    def test_values_cannot_close_the_script(self):
        s = DataStore()
        s.set(1, ["</script><script>alert(1)</script>"])
        block = render_ssr_data(s)
        assert block.count("</script>") == 1
        restored, _ = extract_ssr_data(block)
        assert restored.get(1) == ["</script><script>alert(1)</script>"]


class TestExtract:
    def test_round_trip_through_document(self):
        s = DataStore()
        s.set(42, ["hello"])
        s.set(-5, [None, "boom"])
        html = embed_document(TEMPLATE, "<p>hi</p>", s, SsrSettings())
        restored, remaining = extract_ssr_data(html)
        assert restored.get(42) == ["hello"]
        assert restored.get(-5) == [None, "boom"]
        assert "ssr-data" not in remaining
        assert "<p>hi</p>" in remaining

    def test_missing_block_is_empty_store(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="hydrafx.document"):
            store, remaining = extract_ssr_data("<html></html>")
        assert len(store) == 0
        assert remaining == "<html></html>"
        assert "empty store" in caplog.text

    def test_finds_block_with_other_attribute_order(self):
        doc = "<script id='ssr-data' type=\"application/json\">[[1,[2]]]</script>"
        store, _ = extract_ssr_data(doc)
        assert store.get(1) == [2]

    def test_ignores_other_scripts(self):
        doc = '<script id="other">[[1,[2]]]</script>'
        store, remaining = extract_ssr_data(doc)
        assert len(store) == 0
        assert remaining == doc


class TestHydrationMarker:
    def test_template_is_not_hydrating(self):
        assert not is_hydrating(TEMPLATE)

    def test_rendered_page_is_hydrating(self):
        assert is_hydrating(embed_document(TEMPLATE, "", DataStore(), SsrSettings()))
