"""
Hyperlink handling for Tolge.

Anchors found in article HTML are carried through the text pipeline as
markdown links, [anchor](url). While an element is being flattened to text,
each anchor is swapped for a unique placeholder token so that the link ends
up at exactly the right position no matter how deeply it was nested.
"""
import re
from typing import Dict, List, Optional, Union
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

from bs4 import NavigableString, Tag

from tolge.core.article import ParsedLink

TRACKING_PARAMS = {
    'fbclid', 'gclid', 'dclid', 'msclkid', 'mc_cid', 'mc_eid',
    'igshid', '_ga', '_gl', 'ref', 'ref_src', 'ncid', 'cmpid',
}
TRACKING_PREFIXES = ('utm_',)

SKIPPED_SCHEMES = ('javascript:', 'mailto:', 'tel:', 'data:')

LINK_PREFIXES = ('http://', 'https://', 'www.')

PLACEHOLDER_TEMPLATE = "@@TOLGE_LINK_{index}@@"
PLACEHOLDER_PATTERN = re.compile(r"@@TOLGE_LINK_(\d+)@@")

Segment = Union[str, ParsedLink]


def strip_tracking_params(url: str) -> str:
    """
    Remove analytics query parameters from a URL.

    Args:
        url: Absolute URL

    Returns:
        The URL without tracking parameters, other parameters kept in order
    """
    parsed = urlparse(url)
    if not parsed.query:
        return url

    params = parse_qsl(parsed.query, keep_blank_values=True)
    kept = [
        (key, value) for key, value in params
        if key.lower() not in TRACKING_PARAMS and not key.lower().startswith(TRACKING_PREFIXES)
    ]
    if len(kept) == len(params):
        return url
    return urlunparse(parsed._replace(query=urlencode(kept)))


def resolve_href(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve an anchor href to an absolute, tracking-free URL.

    Args:
        href: Raw href attribute value
        base_url: URL the page was fetched from (or its <base href>)

    Returns:
        The absolute URL, or None for in-page anchors and script/mail links
    """
    if not href:
        return None

    href = href.strip()
    if not href or href.startswith('#') or href.lower().startswith(SKIPPED_SCHEMES):
        return None

    absolute = urljoin(base_url, href).replace(' ', '%20')
    if urlparse(absolute).scheme not in ('http', 'https'):
        return None

    return strip_tracking_params(absolute)


def _normalize_space(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def replace_anchors(element: Tag, base_url: str) -> Dict[str, ParsedLink]:
    """
    Replace every anchor inside an element with a placeholder token.

    The element is modified in place; callers pass a copy when the tree must
    stay intact. Anchors that do not lead anywhere useful are unwrapped so
    their text survives without a link.

    Args:
        element: Element whose anchors should be replaced
        base_url: Base URL for resolving relative hrefs

    Returns:
        Mapping of placeholder token to the link it stands for
    """
    links: Dict[str, ParsedLink] = {}

    for anchor in element.find_all('a'):
        # Anchors nested in an anchor were already absorbed by the outer one
        if anchor.find_parent('a') is not None:
            continue

        url = resolve_href(anchor.get('href'), base_url)
        anchor_text = _normalize_space(anchor.get_text()).replace('[', '').replace(']', '')

        if not url or not anchor_text:
            anchor.unwrap()
            continue

        token = PLACEHOLDER_TEMPLATE.format(index=len(links))
        links[token] = ParsedLink(anchor_text=anchor_text, url=url)
        anchor.replace_with(NavigableString(token))

    return links


def restore_links(text: str, links: Dict[str, ParsedLink]) -> str:
    """
    Substitute placeholder tokens with their markdown link form.

    Args:
        text: Flattened element text containing placeholder tokens
        links: Mapping produced by replace_anchors

    Returns:
        Text with [anchor](url) links in place of the tokens
    """
    def substitute(match):
        link = links.get(match.group(0))
        return link.to_markdown() if link else ''

    return PLACEHOLDER_PATTERN.sub(substitute, text)


def element_to_markdown(element: Tag, base_url: str) -> str:
    """
    Flatten an element to a single line of text with markdown links.

    Args:
        element: Element to flatten; it is modified in place
        base_url: Base URL for resolving relative hrefs

    Returns:
        Whitespace-normalized text
    """
    links = replace_anchors(element, base_url)
    text = _normalize_space(element.get_text())
    return restore_links(text, links)


def _find_link_end(text: str, start: int) -> int:
    """
    Find the index of the ')' closing a markdown link URL.

    Args:
        text: Text being scanned
        start: Index just after the opening '('

    Returns:
        Index of the closing parenthesis, or -1 if it is not closed
    """
    depth = 0
    for i in range(start, len(text)):
        char = text[i]
        if char == '(':
            depth += 1
        elif char == ')':
            if depth == 0:
                return i
            depth -= 1
        elif char.isspace():
            return -1
    return -1


def is_linkable(url: str) -> bool:
    return url.lower().startswith(LINK_PREFIXES)


def parse_markdown_links(text: str) -> List[Segment]:
    """
    Split text into plain runs and hyperlinks.

    Scans left to right for [text](url) tokens. Parentheses inside the URL
    are allowed as long as they are balanced. Tokens whose URL does not start
    with http://, https:// or www. stay in the output as literal text.

    Args:
        text: Paragraph text with embedded markdown links

    Returns:
        List of plain strings and ParsedLink objects in document order;
        adjacent plain runs are merged
    """
    segments: List[Segment] = []
    buffer = []
    pos = 0

    def flush():
        if buffer:
            segments.append(''.join(buffer))
            buffer.clear()

    while pos < len(text):
        open_bracket = text.find('[', pos)
        if open_bracket == -1:
            buffer.append(text[pos:])
            break

        close_bracket = text.find(']', open_bracket + 1)
        nested = text.find('[', open_bracket + 1)
        if close_bracket == -1:
            buffer.append(text[pos:])
            break

        if nested != -1 and nested < close_bracket:
            # Another '[' before the ']' - the real link can only start there
            buffer.append(text[pos:nested])
            pos = nested
            continue

        if close_bracket + 1 >= len(text) or text[close_bracket + 1] != '(':
            buffer.append(text[pos:close_bracket + 1])
            pos = close_bracket + 1
            continue

        url_end = _find_link_end(text, close_bracket + 2)
        anchor_text = text[open_bracket + 1:close_bracket]
        url = text[close_bracket + 2:url_end] if url_end != -1 else ''

        if url_end == -1 or not anchor_text or not is_linkable(url):
            buffer.append(text[pos:close_bracket + 1])
            pos = close_bracket + 1
            continue

        buffer.append(text[pos:open_bracket])
        flush()
        segments.append(ParsedLink(anchor_text=anchor_text, url=url))
        pos = url_end + 1

    flush()
    return [segment for segment in segments if segment != '']
