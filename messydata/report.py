"""
Walkthrough Report
==================
Renders the walkthrough sections into one standalone HTML page: a
table of contents, then each section's prose, tables and figures.
"""

import html
import logging
import os
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

_STYLE = """
body { font-family: sans-serif; max-width: 56em; margin: 2em auto; line-height: 1.5; }
table.dataframe { border-collapse: collapse; margin: 1em 0; }
table.dataframe th, table.dataframe td { border: 1px solid #ccc; padding: 0.2em 0.6em; }
figure img { max-width: 100%; }
nav li { margin: 0.2em 0; }
"""


class Section:
    """One narrative section: prose, captioned tables and figure paths."""

    def __init__(self, anchor: str, title: str, paragraphs=None, tables=None, figures=None) -> None:
        self.anchor = anchor
        self.title = title
        self.paragraphs: list[str] = list(paragraphs or [])
        self.tables: list[tuple[str, pd.DataFrame]] = [(c, t.copy()) for c, t in (tables or [])]
        self.figures: list[tuple[str, Path]] = list(figures or [])

    def add_paragraph(self, text: str) -> None:
        self.paragraphs.append(text)

    def add_table(self, caption: str, df: pd.DataFrame) -> None:
        self.tables.append((caption, df.copy()))

    def add_figure(self, caption: str, path) -> None:
        self.figures.append((caption, Path(path)))


def _figure_src(path: Path, base_dir: Path | None) -> str:
    if base_dir is None:
        return path.as_posix()
    try:
        return Path(os.path.relpath(path, base_dir)).as_posix()
    except ValueError:
        # different drive on Windows
        return path.as_posix()


def render_html(sections: list[Section], title: str, base_dir=None) -> str:
    """Return the HTML document; figure paths are made relative to ``base_dir``."""
    base_dir = Path(base_dir) if base_dir is not None else None
    out: list[str] = []
    out.append("<!DOCTYPE html>")
    out.append('<html lang="en">')
    out.append("<head>")
    out.append('<meta charset="utf-8">')
    out.append(f"<title>{html.escape(title)}</title>")
    out.append(f"<style>{_STYLE}</style>")
    out.append("</head>")
    out.append("<body>")
    out.append(f"<h1>{html.escape(title)}</h1>")

    out.append('<nav id="toc">')
    out.append("<h2>Contents</h2>")
    out.append("<ol>")
    for section in sections:
        out.append(
            f'<li><a href="#{html.escape(section.anchor)}">{html.escape(section.title)}</a></li>'
        )
    out.append("</ol>")
    out.append("</nav>")

    for section in sections:
        out.append(f'<section id="{html.escape(section.anchor)}">')
        out.append(f"<h2>{html.escape(section.title)}</h2>")
        for paragraph in section.paragraphs:
            out.append(f"<p>{html.escape(paragraph)}</p>")
        for caption, df in section.tables:
            out.append(f"<h3>{html.escape(caption)}</h3>")
            out.append(df.to_html(index=False, na_rep="NA", escape=True))
        for caption, path in section.figures:
            src = html.escape(_figure_src(path, base_dir))
            out.append("<figure>")
            out.append(f'<img src="{src}" alt="{html.escape(caption)}">')
            out.append(f"<figcaption>{html.escape(caption)}</figcaption>")
            out.append("</figure>")
        out.append("</section>")

    out.append("</body>")
    out.append("</html>")
    return "\n".join(out)


def write_report(sections: list[Section], path, title: str) -> Path:
    """Render ``sections`` and write the page to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = render_html(sections, title, base_dir=path.parent)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info("Walkthrough report saved to %s (%d sections)", path, len(sections))
    return path
