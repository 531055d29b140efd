# tests/conftest.py
"""
Shared fixtures: canned article pages and a fetcher that never touches the
network.
"""

import pytest

from tolge.core.errors import FetchError
from tolge.utils.http import PageFetcher

PARAGRAPH_ONE = (
    "Researchers at the university measured how quickly the glacier retreated "
    "over the last two decades. The results surprised them, since the melt rate "
    "nearly doubled after 2010."
)
PARAGRAPH_TWO = (
    "The team used satellite data collected every summer. They compared it with "
    "field measurements taken by local guides, and both sources told the same story."
)

HEADLINES = [
    "Mars rover finds signs of ancient river delta",
    "New battery chemistry doubles storage capacity",
    "Ocean heatwaves threaten coral reefs worldwide",
    "Quantum sensor maps brain activity in real time",
    "Bird migration shifts earlier as springs warm",
    "Ancient DNA reveals origins of domestic horses",
]


def article_page(title="Glaciers are melting faster", extra_body=""):
    """An article page with two real paragraphs followed by six teaser headlines."""
    items = "\n".join(f"<li>{headline}</li>" for headline in HEADLINES)
    return f"""<html>
<head><title>{title} | Example Science</title></head>
<body>
<header><nav><a href="/">Home</a> <a href="/news">News</a></nav></header>
<article>
<h1>{title}</h1>
<p>{PARAGRAPH_ONE}</p>
<p>{PARAGRAPH_TWO}</p>
{extra_body}
<ul>
{items}
</ul>
</article>
<footer>Copyright 2024 Example Science</footer>
</body>
</html>"""


class FakeFetcher(PageFetcher):
    """
    PageFetcher whose single request step is scripted.

    `responses` maps a URL to a list of (status, body) tuples or exceptions,
    handed out one per attempt; the last entry repeats.
    """

    def __init__(self, responses, **kwargs):
        kwargs.setdefault("retry_delay", 0)
        super().__init__(**kwargs)
        self.responses = responses
        self.calls = []
        self.closed = False

    async def _request(self, url):
        self.calls.append(url)
        script = self.responses.get(url)
        if script is None:
            raise FetchError(url, f"Failed to fetch {url}: HTTP 404", 404)
        attempt = min(self.calls.count(url) - 1, len(script) - 1)
        response = script[attempt]
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True
        await super().close()


@pytest.fixture
def good_page():
    return article_page()


@pytest.fixture
def fake_fetcher_factory():
    def factory(responses, **kwargs):
        return FakeFetcher(responses, **kwargs)
    return factory
