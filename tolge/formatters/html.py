"""
HTML rendering of translated articles for Tolge.
"""
import datetime
import html
import logging
import re
from typing import List, Optional, Sequence

import mistune

from tolge.core.article import ParsedLink
from tolge.core.errors import ValidationError
from tolge.extract.links import parse_markdown_links
from tolge.formatters.document import ArticleMeta, DocumentPayload, default_filename, link_target
from tolge.translation.orchestrator import split_translations

# Configure logging
logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"

PARAGRAPH_BREAK = re.compile(r'\n\s*\n')

DEFAULT_CSS = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif;
            max-width: 800px;
            margin: 0 auto;
            padding: 20px;
            line-height: 1.6;
            color: #333;
            font-size: 16px;
        }

        h1 {
            font-size: 1.75em;
            font-weight: 600;
            color: #1a1a1a;
            margin-top: 1.5em;
            margin-bottom: 0.5em;
        }

        a {
            color: #0066cc;
            text-decoration: none;
        }

        a:hover {
            text-decoration: underline;
        }

        p {
            margin-bottom: 1em;
        }

        .source {
            font-size: 0.95em;
            color: #666;
        }

        hr {
            border: none;
            border-top: 1px solid #e9ecef;
            margin: 30px 0;
        }
"""


class HtmlRenderer:
    """
    Renders translated articles as a standalone HTML page.
    """
    def __init__(self, css: Optional[str] = None, language: str = "et"):
        """
        Initialize the HtmlRenderer.

        Args:
            css: Stylesheet to inline, the built-in one when omitted
            language: Value of the page's lang attribute
        """
        self.css = css or DEFAULT_CSS
        self.language = language
        self.markdown = mistune.create_markdown(escape=True)

    def paragraph_to_markdown(self, text: str) -> str:
        """
        Normalize a paragraph so that only valid web links are rendered as links.

        Args:
            text: Paragraph with embedded markdown links

        Returns:
            Markdown where non-web link tokens are escaped to literal text
        """
        parts: List[str] = []
        for segment in parse_markdown_links(text):
            if isinstance(segment, ParsedLink):
                parts.append(f"[{segment.anchor_text}]({link_target(segment.url)})")
            else:
                parts.append(segment.replace('[', '\\['))
        return ''.join(parts)

    def render_article(self, article: ArticleMeta, translated: str) -> str:
        url = html.escape(article.url, quote=True)
        blocks = [
            f"<h1>{html.escape(article.title)}</h1>",
            f'<p class="source"><a href="{url}">{url}</a></p>',
        ]
        for paragraph in PARAGRAPH_BREAK.split(translated):
            paragraph = paragraph.strip()
            if paragraph:
                blocks.append(self.markdown(self.paragraph_to_markdown(paragraph)).strip())
        return "\n".join(blocks)

    def render(self, articles: Sequence[ArticleMeta], translation: str) -> str:
        """
        Render the full page.

        Args:
            articles: Article titles and URLs in translation order
            translation: Translation payload

        Returns:
            HTML document as a string
        """
        if not translation or not translation.strip():
            raise ValidationError("Translation text is required")
        if not articles:
            raise ValidationError("Article metadata is required")

        segments = split_translations(translation, len(articles))
        body = "\n<hr/>\n".join(
            self.render_article(article, translated)
            for article, translated in zip(articles, segments)
        )

        return f"""<!DOCTYPE html>
<html lang="{self.language}">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="generator" content="Tolge">
    <meta name="date" content="{datetime.datetime.now().strftime('%Y-%m-%d')}">
    <title>{html.escape(articles[0].title)}</title>
    <style>{self.css}    </style>
</head>
<body>
{body}
</body>
</html>
"""

    def assemble(
        self,
        articles: Sequence[ArticleMeta],
        translation: str,
        filename: Optional[str] = None,
    ) -> DocumentPayload:
        page = self.render(articles, translation)
        logger.info(f"Rendered HTML page with {len(articles)} article(s)")
        return DocumentPayload(
            data=page.encode("utf-8"),
            content_type=HTML_CONTENT_TYPE,
            filename=filename or default_filename("html"),
        )
