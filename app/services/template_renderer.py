"""HTML template rendering for the browser front end."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.services.qualities import DISPLAY_LABELS, QualityToken, VIDEO_TOKENS

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html", "jinja")),
)


def render_index_page(*, title: str = "Video Hub") -> str:
    """Render the single-page downloader UI."""

    template = _env.get_template("index.html.jinja")
    return template.render(
        title=title,
        video_qualities=[(token.value, DISPLAY_LABELS[token.value]) for token in VIDEO_TOKENS],
        audio_quality=(QualityToken.MP3.value, DISPLAY_LABELS[QualityToken.MP3.value]),
        display_labels=DISPLAY_LABELS,
    )
