"""Tests for the front-end page renderer."""

from app.services.template_renderer import render_index_page


def test_render_index_page():
    page = render_index_page()

    assert "<title>Video Hub</title>" in page
    assert '<option value="2160p">4K (2160p)</option>' in page
    assert '<option value="mp3">MP3 Audio (Best Quality)</option>' in page
    assert '"1080p": "1080p"' in page
    assert "/static/app.js" in page


def test_render_index_page_escapes_title():
    page = render_index_page(title="<Hub>")

    assert "<title>&lt;Hub&gt;</title>" in page
