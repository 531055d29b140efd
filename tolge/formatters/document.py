"""
Word document assembly for Tolge.
"""
import io
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import RELATIONSHIP_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import RGBColor

from tolge.core.article import ParsedLink
from tolge.core.errors import ValidationError
from tolge.extract.links import parse_markdown_links
from tolge.translation.orchestrator import split_translations

# Configure logging
logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
LINK_COLOR = "0563C1"
ARTICLE_SEPARATOR = "* * *"

PARAGRAPH_BREAK = re.compile(r'\n\s*\n')


@dataclass(frozen=True)
class ArticleMeta:
    """Title and source URL of one article in the finished document."""
    title: str
    url: str


@dataclass(frozen=True)
class DocumentPayload:
    data: bytes
    content_type: str
    filename: str


def default_filename(extension: str = "docx") -> str:
    return f"translation_{int(time.time() * 1000)}.{extension}"


def link_target(url: str) -> str:
    """Make a www. address usable as a hyperlink target."""
    if url.lower().startswith('www.'):
        return f"https://{url}"
    return url


def add_hyperlink(paragraph, text: str, url: str):
    """
    Append a clickable hyperlink run to a paragraph.

    python-docx has no public API for creating hyperlinks, so the
    w:hyperlink element is built directly.

    Args:
        paragraph: docx paragraph
        text: Visible link text
        url: Link target

    Returns:
        The created w:hyperlink element
    """
    r_id = paragraph.part.relate_to(link_target(url), RELATIONSHIP_TYPE.HYPERLINK, is_external=True)

    hyperlink = OxmlElement('w:hyperlink')
    hyperlink.set(qn('r:id'), r_id)

    run = OxmlElement('w:r')
    properties = OxmlElement('w:rPr')

    color = OxmlElement('w:color')
    color.set(qn('w:val'), LINK_COLOR)
    properties.append(color)

    underline = OxmlElement('w:u')
    underline.set(qn('w:val'), 'single')
    properties.append(underline)

    run.append(properties)

    text_element = OxmlElement('w:t')
    text_element.text = text
    text_element.set(qn('xml:space'), 'preserve')
    run.append(text_element)

    hyperlink.append(run)
    paragraph._p.append(hyperlink)
    return hyperlink


class DocumentAssembler:
    """
    Builds the translated document from article metadata and translation text.
    """
    def __init__(self, separator: str = ARTICLE_SEPARATOR):
        self.separator = separator

    def add_rich_paragraph(self, document, text: str):
        """
        Add one paragraph whose markdown links become live hyperlinks.

        Args:
            document: docx Document
            text: Paragraph text with embedded [anchor](url) links

        Returns:
            The created paragraph
        """
        paragraph = document.add_paragraph()
        for segment in parse_markdown_links(text):
            if isinstance(segment, ParsedLink):
                add_hyperlink(paragraph, segment.anchor_text, segment.url)
            else:
                paragraph.add_run(segment)
        return paragraph

    def add_article(self, document, article: ArticleMeta, translated: str):
        document.add_heading(article.title, level=1)

        source = document.add_paragraph()
        add_hyperlink(source, article.url, article.url)

        for paragraph in PARAGRAPH_BREAK.split(translated):
            paragraph = paragraph.strip()
            if paragraph:
                self.add_rich_paragraph(document, paragraph)

    def add_separator(self, document):
        separator = document.add_paragraph()
        separator.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = separator.add_run(self.separator)
        run.font.color.rgb = RGBColor(0x80, 0x80, 0x80)

    def build(self, articles: Sequence[ArticleMeta], translation: str):
        """
        Build the document object.

        Args:
            articles: Article titles and URLs in translation order
            translation: Translation payload (text after the completion marker)

        Returns:
            docx Document
        """
        if not translation or not translation.strip():
            raise ValidationError("Translation text is required")
        if not articles:
            raise ValidationError("Article metadata is required")

        document = Document()
        segments = split_translations(translation, len(articles))

        for index, (article, translated) in enumerate(zip(articles, segments)):
            if index > 0:
                self.add_separator(document)
            self.add_article(document, article, translated)

        return document

    def assemble(
        self,
        articles: Sequence[ArticleMeta],
        translation: str,
        filename: Optional[str] = None,
    ) -> DocumentPayload:
        """
        Build and serialize the translated document.

        Args:
            articles: Article titles and URLs in translation order
            translation: Translation payload
            filename: Suggested filename, generated when omitted

        Returns:
            DocumentPayload with the .docx bytes
        """
        document = self.build(articles, translation)
        buffer = io.BytesIO()
        document.save(buffer)
        data = buffer.getvalue()
        logger.info(f"Assembled document with {len(articles)} article(s), {len(data)} bytes")
        return DocumentPayload(
            data=data,
            content_type=DOCX_CONTENT_TYPE,
            filename=filename or default_filename("docx"),
        )
