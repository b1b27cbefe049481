"""Tests for html_to_text and HtmlStrategy."""

from __future__ import annotations

from searchlight.ingest.fetch import FetchedResource
from searchlight.ingest.html import HtmlStrategy, html_to_text


def _resource(body: bytes, content_type: str = "text/html") -> FetchedResource:
    return FetchedResource(url="https://example.com", content_type=content_type, body=body)


def test_html_converted_to_text():
    result = html_to_text("<html><body><p>Tokyo countdown at Shibuya.</p></body></html>")
    assert "Tokyo countdown at Shibuya." in result
    assert "<" not in result


def test_html_script_and_style_removed():
    markup = (
        "<html><head><title>T</title><style>p{color:red}</style></head>"
        "<body><script>alert('x')</script><p>Content.</p></body></html>"
    )
    result = html_to_text(markup)
    assert "alert" not in result
    assert "color" not in result
    assert "Content." in result


def test_html_preserves_text_order():
    result = html_to_text("<h1>First</h1><p>Second</p><p>Third</p>")
    assert result.index("First") < result.index("Second") < result.index("Third")


def test_script_only_shell_is_empty():
    markup = '<html><body><div id="root"></div><script src="/app.js"></script></body></html>'
    assert html_to_text(markup) == ""


def test_blank_markup_is_empty():
    assert html_to_text("   ") == ""


def test_links_are_not_rendered_as_urls():
    result = html_to_text('<p>See <a href="https://example.com/x">the guide</a>.</p>')
    assert "the guide" in result
    assert "https://example.com/x" not in result


def test_strategy_accepts_html_types():
    strategy = HtmlStrategy()
    assert strategy.accepts("text/html; charset=utf-8")
    assert strategy.accepts("application/xhtml+xml")
    assert not strategy.accepts("application/pdf")


def test_strategy_extracts_body():
    text = HtmlStrategy().try_extract(_resource(b"<p>Fireworks at midnight.</p>"))
    assert "Fireworks at midnight." in text


def test_strategy_repeated_calls_are_independent():
    strategy = HtmlStrategy()
    first = strategy.try_extract(_resource(b"<p>One</p>"))
    second = strategy.try_extract(_resource(b"<p>Two</p>"))
    assert first == "One"
    assert second == "Two"
