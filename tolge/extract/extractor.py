"""
Article extraction for Tolge.
"""
import asyncio
import copy
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urljoin

import trafilatura
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from tqdm import tqdm

from tolge.config import get_browserless_api_key, get_config
from tolge.core.article import Article
from tolge.core.errors import ExtractionError, TolgeError
from tolge.extract.links import element_to_markdown, replace_anchors, restore_links
from tolge.extract.noise import in_navigation, is_caption, is_noise_text
from tolge.extract.selector import CONTENT_SELECTORS, remove_noise, select_content
from tolge.extract.trimmer import TrimmerSettings, trim_trailing_list
from tolge.utils.http import PageFetcher, RenderingProxyFetcher

# Configure logging
logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 50000

HEADING_TAGS = ['h2', 'h3', 'h4', 'h5', 'h6']
TEXT_TAGS = set(['p'] + HEADING_TAGS)
WALK_TAGS = ['p'] + HEADING_TAGS + ['li', 'blockquote', 'div']
BLOCK_TAGS = WALK_TAGS + [
    'h1', 'br', 'ul', 'ol', 'dl', 'dt', 'dd', 'pre', 'table', 'tr',
    'section', 'article', 'main', 'figure', 'header', 'footer', 'aside',
]


@dataclass
class ExtractionSettings:
    min_content_length: int = MIN_CONTENT_LENGTH
    max_content_length: int = MAX_CONTENT_LENGTH
    selector_min_text: int = 150
    selector_min_paragraphs: int = 3
    structured_min_length: int = 200
    fallback_min_length: int = 100
    min_paragraph_length: int = 20
    min_direct_text: int = 20
    trimmer: TrimmerSettings = field(default_factory=TrimmerSettings)

    @classmethod
    def from_config(cls) -> "ExtractionSettings":
        section = get_config('extraction', {}) or {}
        known = {
            key: value for key, value in section.items()
            if key in cls.__dataclass_fields__ and key != 'trimmer'
        }
        return cls(trimmer=TrimmerSettings.from_config(get_config('trimmer', {}) or {}), **known)


@dataclass
class UrlError:
    url: str
    error: str


def _normalize_space(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def find_title(soup: BeautifulSoup) -> str:
    """
    Determine the page title.

    Args:
        soup: Parsed document

    Returns:
        Text of the first <h1>, falling back to <title>, or an empty string
    """
    heading = soup.find('h1')
    if heading is not None:
        title = _normalize_space(heading.get_text())
        if title:
            return title

    if soup.title is not None:
        title = _normalize_space(soup.title.get_text())
        if title:
            return title

    return ''


def find_base_url(soup: BeautifulSoup, url: str) -> str:
    base = soup.find('base', href=True)
    if base is not None:
        return urljoin(url, base['href'])
    return url


def direct_text_length(element: Tag) -> int:
    """Length of the text that belongs to the element itself, not its children."""
    direct = ''.join(
        str(child) for child in element.children
        if isinstance(child, NavigableString) and not isinstance(child, Comment)
    )
    return len(_normalize_space(direct))


def flatten_text(element: Tag, base_url: Optional[str] = None) -> str:
    """
    Flatten an element to plain paragraphs, one per block or non-empty line.

    Args:
        element: Element to flatten; it is copied, not modified
        base_url: Base URL for resolving links; links are kept as markdown
            when given and reduced to their text otherwise

    Returns:
        Lines joined by blank lines, boilerplate lines dropped
    """
    element = copy.copy(element)
    links = replace_anchors(element, base_url) if base_url else {}

    # Block boundaries become line breaks even in minified markup
    for block in element.find_all(BLOCK_TAGS):
        block.insert_before('\n')
        block.insert_after('\n')

    lines = [
        restore_links(_normalize_space(line), links)
        for line in element.get_text().split('\n')
    ]
    return '\n\n'.join(line for line in lines if line and not is_noise_text(line))


def document_text(html: str, min_length: int = 100, base_url: Optional[str] = None) -> str:
    """
    Flatten the main text of a whole document.

    trafilatura's main-content extraction is tried first; the body text with
    structural noise removed is used when it finds too little.

    Args:
        html: Page HTML
        min_length: Length the trafilatura result must reach
        base_url: Base URL for keeping links in the body-text fallback

    Returns:
        Paragraphs joined by blank lines, boilerplate lines dropped
    """
    extracted = trafilatura.extract(
        html,
        include_comments=False,
        include_tables=False,
        favor_recall=True,
    )
    if extracted:
        text = '\n\n'.join(
            _normalize_space(line) for line in extracted.split('\n')
            if line.strip() and not is_noise_text(line)
        )
        if len(text) >= min_length:
            return text

    soup = BeautifulSoup(html, 'html.parser')
    body = soup.body or soup
    remove_noise(body)
    return flatten_text(body, base_url)


def extract_paragraphs(container: Tag, base_url: str, settings: ExtractionSettings) -> List[str]:
    """
    Walk text-bearing elements of a container in document order.

    Args:
        container: Selected content container, noise already removed
        base_url: Base URL for resolving links
        settings: Length thresholds

    Returns:
        Accepted paragraphs with markdown links
    """
    paragraphs = []
    accepted = set()

    for element in container.find_all(WALK_TAGS):
        if any(id(parent) in accepted for parent in element.parents):
            continue
        if is_caption(element, container) or in_navigation(element, container):
            continue
        if element.name not in TEXT_TAGS and direct_text_length(element) < settings.min_direct_text:
            continue

        # Links are rewritten on a copy so ancestors and siblings stay intact
        text = element_to_markdown(copy.copy(element), base_url)

        if len(text) <= settings.min_paragraph_length or is_noise_text(text):
            continue

        accepted.add(id(element))
        paragraphs.append(text)

    return paragraphs


def extract_article(
    html: str,
    url: str,
    estonian_title: Optional[str] = None,
    settings: Optional[ExtractionSettings] = None,
) -> Article:
    """
    Extract an article from a downloaded page.

    Args:
        html: Page HTML
        url: URL the page came from
        estonian_title: Human-supplied title to use instead of the page title
        settings: Extraction thresholds, defaults from configuration

    Returns:
        The extracted Article

    Raises:
        ExtractionError: if the content is shorter than the minimum after all
            fallbacks
    """
    settings = settings or ExtractionSettings.from_config()
    soup = BeautifulSoup(html, 'html.parser')

    title = find_title(soup) or url
    base_url = find_base_url(soup, url)

    container, selector = select_content(
        soup,
        CONTENT_SELECTORS,
        min_text=settings.selector_min_text,
        min_paragraphs=settings.selector_min_paragraphs,
    )
    removed = remove_noise(container)
    logger.debug(f"Removed {removed} noise elements from {url} (selector: {selector or 'body'})")

    content = '\n\n'.join(extract_paragraphs(container, base_url, settings))

    if len(content) < settings.structured_min_length:
        logger.info(f"Structured extraction too short for {url} ({len(content)} chars), using fallbacks")
        container_text = flatten_text(container, base_url)
        if len(container_text) >= settings.fallback_min_length and len(container_text) > len(content):
            content = container_text
        else:
            body_text = document_text(html, settings.fallback_min_length, base_url)
            if len(body_text) >= settings.fallback_min_length and len(body_text) > len(content):
                content = body_text

    content = trim_trailing_list(content, settings.trimmer)

    if len(content) < settings.min_content_length:
        raise ExtractionError(
            f"Could not extract sufficient content from {url} ({len(content)} characters)", url
        )

    return Article(
        url=url,
        title=estonian_title or title,
        content=content[:settings.max_content_length],
        estonian_title=estonian_title,
    )


def create_fetcher() -> PageFetcher:
    """
    Build the page fetcher described by the configuration.

    A configured rendering-proxy token switches to the proxy fetcher.
    """
    options = dict(
        timeout=get_config('http.timeout_seconds', 60),
        max_attempts=get_config('http.max_attempts', 3),
        retry_delay=get_config('http.retry_delay', 2.0),
    )
    user_agent = get_config('http.user_agent')
    if user_agent:
        options['user_agent'] = user_agent

    token = get_browserless_api_key()
    if token:
        return RenderingProxyFetcher(
            token,
            endpoint=get_config('http.render_proxy_url', 'https://chrome.browserless.io/content'),
            wait_ms=get_config('http.render_wait_ms', 3000),
            **options,
        )
    return PageFetcher(**options)


class ArticleExtractor:
    """
    Fetches pages and extracts articles from them.
    """
    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        settings: Optional[ExtractionSettings] = None,
        max_concurrent: Optional[int] = None,
        show_progress: bool = False,
    ):
        self.fetcher = fetcher or create_fetcher()
        self.settings = settings or ExtractionSettings.from_config()
        self.max_concurrent = max_concurrent or get_config('http.max_concurrent', 5)
        self.show_progress = show_progress

    async def extract(self, url: str, estonian_title: Optional[str] = None) -> Article:
        """
        Fetch one URL and extract its article.

        Args:
            url: Page URL
            estonian_title: Optional human-supplied title

        Returns:
            The extracted Article

        Raises:
            FetchError: if the page could not be downloaded
            ExtractionError: if too little content was found
        """
        logger.info(f"Fetching {url}")
        html = await self.fetcher.fetch(url)
        logger.debug(f"Received {len(html)} characters from {url}")

        article = extract_article(html, url, estonian_title, self.settings)
        logger.info(f"Extracted {len(article.content)} characters from {url}")
        return article

    async def extract_many(
        self,
        urls: Sequence[str],
        estonian_titles: Optional[Sequence[Optional[str]]] = None,
    ) -> Tuple[List[Article], List[UrlError]]:
        """
        Extract several URLs concurrently.

        A failing URL never affects the others.

        Args:
            urls: Page URLs
            estonian_titles: Optional titles aligned with urls by index

        Returns:
            Tuple of (articles in input order, errors in input order)
        """
        titles = list(estonian_titles or [])
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def extract_with_semaphore(index: int, url: str):
            title = titles[index] if index < len(titles) else None
            async with semaphore:
                try:
                    return index, await self.extract(url, title or None)
                except TolgeError as e:
                    logger.error(f"Failed for {url}: {e}")
                    return index, UrlError(url=url, error=str(e))
                except Exception as e:
                    logger.exception(f"Unexpected error processing {url}: {e}")
                    return index, UrlError(url=url, error=f"Unexpected error: {e}")

        tasks = [extract_with_semaphore(i, url) for i, url in enumerate(urls)]
        results = {}

        async with self.fetcher:
            for task in tqdm(
                asyncio.as_completed(tasks),
                total=len(tasks),
                desc="Fetching articles",
                disable=not self.show_progress,
            ):
                index, result = await task
                results[index] = result

        articles = [results[i] for i in sorted(results) if isinstance(results[i], Article)]
        errors = [results[i] for i in sorted(results) if isinstance(results[i], UrlError)]
        return articles, errors
