"""
Content container selection for Tolge.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from tolge.extract.noise import NOISE_TAGS, has_noise_attributes

# Configure logging
logger = logging.getLogger(__name__)

# Most specific first; the document body is the implicit last resort
CONTENT_SELECTORS = [
    '.article-main',
    '.entry-content',
    'article .entry-content',
    '.post-content',
    '.article-content',
    '.article-body',
    'article',
    '[role="main"]',
    '.content',
    '.post',
    '.single-post',
    '.entry',
    '#content',
    '#main-content',
    'main article',
    'main',
]


def is_content_candidate(element: Tag, min_text: int = 150, min_paragraphs: int = 3) -> bool:
    """
    Decide whether an element holds enough text to be the article container.

    Args:
        element: Candidate element
        min_text: Text length that must be exceeded
        min_paragraphs: Number of <p> descendants that is enough on its own

    Returns:
        True if the element qualifies
    """
    if len(element.get_text().strip()) > min_text:
        return True
    return len(element.find_all('p')) >= min_paragraphs


def select_content(
    soup: BeautifulSoup,
    selectors: Sequence[str] = CONTENT_SELECTORS,
    min_text: int = 150,
    min_paragraphs: int = 3,
) -> Tuple[Tag, Optional[str]]:
    """
    Pick the article container using an ordered list of selectors.

    Args:
        soup: Parsed document
        selectors: CSS selectors in priority order
        min_text: See is_content_candidate
        min_paragraphs: See is_content_candidate

    Returns:
        Tuple of (container element, selector that matched or None when the
        body was used)
    """
    for selector in selectors:
        element = soup.select_one(selector)
        if element is not None and is_content_candidate(element, min_text, min_paragraphs):
            logger.debug(f"Selected content with selector: {selector}")
            return element, selector

    logger.debug("No specific content container found, falling back to body")
    return soup.body or soup, None


def remove_noise(container: Tag, tags: Sequence[str] = NOISE_TAGS) -> int:
    """
    Remove boilerplate subtrees from a container.

    Only descendants are touched; the container itself is always kept.

    Args:
        container: Selected content container
        tags: Tag names that are always removed

    Returns:
        Number of removed subtrees
    """
    removed = 0
    doomed: List[Tag] = list(container.find_all(tags))
    doomed.extend(
        element for element in container.find_all(True)
        if element.name not in tags and has_noise_attributes(element)
    )

    for element in doomed:
        if element.decomposed:
            continue
        element.decompose()
        removed += 1

    return removed
