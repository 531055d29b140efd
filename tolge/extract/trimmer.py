"""
Removal of trailing "related article" lists for Tolge.

Many sites append a run of unrelated headline teasers after the article.
They look like short, punctuation-light paragraphs; a long enough run of
them at the end of the text is cut off before translation.
"""
import re
from dataclasses import dataclass
from typing import List

LEAD_IN_WORDS = {
    'the', 'a', 'an', 'this', 'that', 'these', 'those',
    'it', 'he', 'she', 'they', 'we', 'i', 'you', 'his', 'her', 'their', 'our', 'its',
    'scientists', 'researchers', 'according', 'experts', 'officials',
    'in', 'on', 'at', 'for', 'but', 'and', 'however', 'when', 'while', 'after', 'as',
}

SENTENCE_END = re.compile(r'\.(\s|$)')
PARAGRAPH_BREAK = re.compile(r'\n\s*\n')


@dataclass
class TrimmerSettings:
    min_paragraphs: int = 3
    headline_min_length: int = 30
    headline_max_length: int = 200
    long_paragraph_length: int = 300
    run_length: int = 5
    min_removed: int = 4

    @classmethod
    def from_config(cls, section: dict) -> "TrimmerSettings":
        known = {key: value for key, value in section.items() if key in cls.__dataclass_fields__}
        return cls(**known)


def _first_word(paragraph: str) -> str:
    match = re.match(r"[\W_]*([A-Za-z']+)", paragraph)
    return match.group(1).lower() if match else ''


def is_headline_like(paragraph: str, settings: TrimmerSettings = TrimmerSettings()) -> bool:
    """
    Check whether a paragraph looks like a teaser headline.

    Args:
        paragraph: Stripped paragraph text
        settings: Length thresholds

    Returns:
        True for short paragraphs with at most one sentence-ending period
        that do not open like narrative prose
    """
    if not settings.headline_min_length <= len(paragraph) <= settings.headline_max_length:
        return False
    if len(SENTENCE_END.findall(paragraph)) > 1:
        return False
    return _first_word(paragraph) not in LEAD_IN_WORDS


def find_trailing_list_cutoff(paragraphs: List[str], settings: TrimmerSettings = TrimmerSettings()) -> int:
    """
    Find where a trailing headline list starts.

    Args:
        paragraphs: Stripped, non-empty paragraphs
        settings: Thresholds

    Returns:
        Index of the first paragraph to drop, or -1 when nothing should go
    """
    if len(paragraphs) < settings.min_paragraphs:
        return -1

    run = 0
    cutoff = -1
    for index in range(len(paragraphs) - 1, -1, -1):
        paragraph = paragraphs[index]

        if len(paragraph) > settings.long_paragraph_length:
            break

        if is_headline_like(paragraph, settings):
            run += 1
            if run >= settings.run_length:
                cutoff = index
        else:
            if cutoff != -1:
                break
            run = 0

    if cutoff <= 0 or len(paragraphs) - cutoff < settings.min_removed:
        return -1
    return cutoff


def trim_trailing_list(text: str, settings: TrimmerSettings = TrimmerSettings()) -> str:
    """
    Remove a trailing list of headline-like paragraphs.

    Args:
        text: Markdown text with paragraphs separated by blank lines
        settings: Thresholds

    Returns:
        The text without the trailing list, or unchanged when no list is found
    """
    paragraphs = [p.strip() for p in PARAGRAPH_BREAK.split(text) if p.strip()]
    cutoff = find_trailing_list_cutoff(paragraphs, settings)
    if cutoff == -1:
        return text
    return '\n\n'.join(paragraphs[:cutoff])
