"""HTML sink: escaped archive text in a wrapping ``<pre>`` element."""

from __future__ import annotations

import base64
import html
from typing import BinaryIO

from pygments import format as pygments_format
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer
from pygments.util import ClassNotFound

from .fonts import FontResource
from .stream import iter_text_chunks

DEFAULT_HTML_STYLE = "default"
ARCHIVE_CSS_CLASS = "archive"
HTML_FONT_SIZE_PT = 9


def _formatter_for_style(style: str) -> HtmlFormatter:
    try:
        return HtmlFormatter(style=style, nowrap=True)
    except ClassNotFound:
        return HtmlFormatter(style=DEFAULT_HTML_STYLE, nowrap=True)


class HtmlSink:
    """Render archive bytes into a standalone HTML document.

    The font, when given, is embedded as a base64 ``@font-face`` so the page
    shows the marker glyphs without relying on installed fonts.
    """

    def __init__(
        self,
        font: FontResource | None = None,
        *,
        style: str = DEFAULT_HTML_STYLE,
        title: str = "archive",
    ) -> None:
        self.font = font
        self.style = style
        self.title = title

    def _head(self, formatter: HtmlFormatter) -> str:
        css: list[str] = []
        family = "monospace"
        if self.font is not None:
            encoded = base64.b64encode(self.font.data).decode("ascii")
            css.append(
                f'@font-face {{ font-family: "{self.font.family}"; '
                f'src: url(data:font/ttf;base64,{encoded}) format("truetype"); }}'
            )
            family = f'"{self.font.family}", monospace'
        css.append(
            f".{ARCHIVE_CSS_CLASS} {{ font-family: {family}; font-size: {HTML_FONT_SIZE_PT}pt; "
            "white-space: pre-wrap; word-break: break-all; }"
        )
        css.append(formatter.get_style_defs(f".{ARCHIVE_CSS_CLASS}"))
        return (
            "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
            f"<title>{html.escape(self.title)}</title>\n"
            "<style>\n" + "\n".join(css) + "\n</style>\n</head>\n<body>\n"
            f'<pre class="{ARCHIVE_CSS_CLASS}">'
        )

    def __call__(self, reader: BinaryIO, out: BinaryIO) -> None:
        formatter = _formatter_for_style(self.style)
        lexer = TextLexer(stripnl=False, ensurenl=False)
        out.write(self._head(formatter).encode("utf-8"))
        for text in iter_text_chunks(reader):
            out.write(pygments_format(lexer.get_tokens(text), formatter).encode("utf-8"))
        out.write(b"</pre>\n</body>\n</html>\n")


__all__ = ["ARCHIVE_CSS_CLASS", "DEFAULT_HTML_STYLE", "HtmlSink"]
