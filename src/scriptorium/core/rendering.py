"""HTML for the ``content`` property.

Post text is authored in CommonMark; the normalizer stores the rendered HTML
next to it as ``content.html``. Raw HTML in the text passes through.
"""

from markdown_it import MarkdownIt

_COMMONMARK = MarkdownIt("commonmark", {"html": True})


def render_html(text: str) -> str:
    """Render post text to an HTML fragment, or ``""`` for blank text."""
    if not text or not text.strip():
        return ""
    return _COMMONMARK.render(text).strip()
