"""
Boilerplate detection for Tolge.

Pattern-based predicates that flag text lines and page elements which are
not part of an article body: bylines, share prompts, copyright lines,
navigation and similar. The patterns are approximate by nature.
"""
import re
from typing import Iterable, Iterator, List, Optional

from bs4 import Tag

# Line-level noise, matched against the stripped text of one paragraph
BYLINE_PATTERNS = [
    r'^(by|written by|words by|text by|autor|author)\s*:?\s+[\w.\'-]+(\s+[\w.\'-]+){0,4}$',
    r'^(published|updated|posted|last (updated|modified))\s*(on|at|:)?\s*'
    r'((jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2}\b'
    r'|\d{1,2}\.?\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)'
    r'|\d{1,4}[./-]\d{1,2}[./-]\d{1,4}|\d{1,2}:\d{2}'
    r'|\d+\s+(seconds?|minutes?|mins?|hours?|days?|weeks?)\s+ago|today\b|yesterday\b)',
    r'^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4}',
    r'^\d{1,2}\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{4}',
    r'^\d{1,4}[./-]\d{1,2}[./-]\d{1,4}(\s+\d{1,2}:\d{2})?$',
    r'^\d+\s+min(ute)?s?\s+read$',
]

EDITORIAL_PATTERNS = [
    r'^editor\'?s?\s+note',
    r'^editorial note',
    r'^this (article|story|post) (was|is|has been) (originally |first )?(published|republished|reprinted|adapted)',
    r'^(republished|reprinted|adapted) (from|with permission)',
    r'^(provided|courtesy) (by|of)\s',
    r'^(edited|reviewed|fact[- ]checked) by\s',
    r'^(source|image|photo|credit|image credit|photo credit)s?\s*:',
]

LEGAL_PATTERNS = [
    r'©',
    r'\(c\)\s*\d{4}',
    r'^copyright\b',
    r'all rights reserved',
    r'^(terms of (use|service)|privacy policy|cookie (policy|settings))',
    r'this (site|website) uses cookies',
]

CALL_TO_ACTION_PATTERNS = [
    r'^(subscribe|sign up|register)\b',
    r'\bsubscribe (to|for) (our|the)\s+(\w+\s+)?newsletter',
    r'^(share|tweet|email|print)\s+(this|on|via)\b',
    r'^share\s*$',
    r'^follow us\b',
    r'^(click|tap) here\b',
    r'^(support|donate to) (our|us)\b',
    r'^get (our|the) (latest|daily|weekly)\b',
    r'^(don\'t|do not) miss\b',
    r'^advertisement$',
]

RELATED_PATTERNS = [
    r'^related(\s+(articles|stories|posts|content|reading|coverage))?\s*:?\s*$',
    r'^related(\s+\w+)?\s*:',
    r'^(read|see) (more|also|next)\s*:?',
    r'^more (from|on|stories|news)\b',
    r'^you (may|might) (also )?(like|enjoy|be interested)',
    r'^(recommended|trending|popular)( (for you|stories|now|articles))?\s*:?$',
    r'^(also|further) read(ing)?\s*:',
]

COMMENT_PATTERNS = [
    r'^\d+\s+comments?$',
    r'^(leave|post|add|write) a (comment|reply)',
    r'^join the (discussion|conversation)',
    r'^comments?\s*(\(\d+\))?:?$',
    r'^(log|sign) in to (comment|reply)',
    r'^show (all )?comments',
]

NOISE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for group in (
        BYLINE_PATTERNS,
        EDITORIAL_PATTERNS,
        LEGAL_PATTERNS,
        CALL_TO_ACTION_PATTERNS,
        RELATED_PATTERNS,
        COMMENT_PATTERNS,
    )
    for pattern in group
]

# Structural noise, matched against class and id attribute values
NOISE_ATTRIBUTE_PATTERN = re.compile(
    r'(^|[-_ ])('
    r'ads?|advert\w*|sponsor\w*|promo\w*|popup|modal|banner-ad|'
    r'newsletter\w*|subscri\w*|signup|'
    r'social\w*|share\w*|sharing|'
    r'comments?|comment-\w+|disqus|'
    r'related\w*|recommend\w*|more-stories|read-next|'
    r'editor-?note|editorial-note|'
    r'copyright|cookie\w*|consent|'
    r'author-bio|site-header|site-footer|breadcrumbs?'
    r')($|[-_ ])',
    re.IGNORECASE,
)

NOISE_TAGS = [
    'script', 'style', 'noscript', 'template', 'svg',
    'nav', 'header', 'footer', 'aside', 'iframe',
    'form', 'button', 'input', 'select', 'textarea',
]

CAPTION_ATTRIBUTE_PATTERN = re.compile(
    r'(caption|credit|photo-?byline|image-?source|wp-caption-text)', re.IGNORECASE
)

NAVIGATION_ATTRIBUTE_PATTERN = re.compile(
    r'(^|[-_ ])(nav\w*|menu\w*|share\w*|social\w*|breadcrumbs?|toolbar|pagination)($|[-_ ])',
    re.IGNORECASE,
)


def is_noise_text(text: str, patterns: Optional[Iterable] = None) -> bool:
    """
    Check whether a line of text is boilerplate.

    Args:
        text: Stripped paragraph text
        patterns: Compiled patterns to use instead of the default set

    Returns:
        True if any noise pattern matches
    """
    text = text.strip()
    return any(pattern.search(text) for pattern in (patterns or NOISE_PATTERNS))


def _attribute_values(element: Tag) -> List[str]:
    values = []
    classes = element.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    values.extend(classes)
    element_id = element.get('id')
    if element_id:
        values.append(element_id)
    return values


def has_noise_attributes(element: Tag) -> bool:
    """
    Check whether an element's class or id marks it as boilerplate.

    Args:
        element: Element to inspect

    Returns:
        True if a class or id matches the structural noise pattern
    """
    return any(NOISE_ATTRIBUTE_PATTERN.search(value) for value in _attribute_values(element))


def _ancestors(element: Tag, container: Optional[Tag] = None) -> Iterator[Tag]:
    """Parents of an element up to, but not including, the container or <body>."""
    for parent in element.parents:
        if parent is container or not isinstance(parent, Tag):
            break
        if parent.name in ('body', 'html', '[document]'):
            break
        yield parent


def is_caption(element: Tag, container: Optional[Tag] = None) -> bool:
    """
    Check whether an element is an image caption or photo credit.

    Args:
        element: Element to inspect
        container: Content container; wrappers outside it are not consulted

    Returns:
        True for figure captions and elements inside caption/credit blocks
    """
    for node in [element] + list(_ancestors(element, container)):
        if node.name in ('figure', 'figcaption'):
            return True
        if any(CAPTION_ATTRIBUTE_PATTERN.search(value) for value in _attribute_values(node)):
            return True
    return False


def in_navigation(element: Tag, container: Optional[Tag] = None) -> bool:
    """
    Check whether an element sits inside a navigation or sharing block
    within the container.
    """
    for parent in _ancestors(element, container):
        if parent.name in ('nav', 'menu'):
            return True
        if any(NAVIGATION_ATTRIBUTE_PATTERN.search(value) for value in _attribute_values(parent)):
            return True
    return False
