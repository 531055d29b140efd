# tests/test_extractor.py
"""
Tests for page fetching and article extraction. Every request is served by
``FakeFetcher`` from conftest, so nothing here touches the network.
"""

import asyncio

import aiohttp
import pytest
from bs4 import BeautifulSoup

from conftest import HEADLINES, PARAGRAPH_ONE, PARAGRAPH_TWO, article_page

from tolge.core.article import Article
from tolge.core.errors import ChallengePageError, ExtractionError, FetchError
from tolge.extract.extractor import (
    ArticleExtractor,
    ExtractionSettings,
    UrlError,
    extract_article,
    flatten_text,
)
from tolge.utils.http import is_challenge_page, never_challenge

URL = "https://science.example.com/2024/glaciers"
CHALLENGE = (503, "<html><title>Just a moment...</title><body>Checking your browser</body></html>")


# ----------------------------------------------------------------------
# extract_article
# ----------------------------------------------------------------------
def test_article_with_trailing_teasers():
    article = extract_article(article_page(), URL, settings=ExtractionSettings())

    assert article.title == "Glaciers are melting faster"
    assert article.content == f"{PARAGRAPH_ONE}\n\n{PARAGRAPH_TWO}"
    for headline in HEADLINES:
        assert headline not in article.content


def test_human_title_wins():
    article = extract_article(article_page(), URL, "Liustikud sulavad kiiremini", ExtractionSettings())
    assert article.title == "Liustikud sulavad kiiremini"
    assert article.estonian_title == "Liustikud sulavad kiiremini"


def test_links_and_boilerplate():
    extra = (
        "<p>By Jane Doe</p>"
        "<figure><img src='ice.jpg'><figcaption>The glacier photographed in 1990 by a survey team</figcaption></figure>"
        "<div class='share-buttons'><p>Share this story with your friends today</p></div>"
        "<p>The full dataset is <a href='/data/glaciers.csv?utm_source=site'>available online</a> "
        "for anyone who wants to check the numbers.</p>"
    )
    html = article_page(extra_body=extra)
    article = extract_article(html, URL, settings=ExtractionSettings())

    assert "[available online](https://science.example.com/data/glaciers.csv)" in article.content
    assert "Jane Doe" not in article.content
    assert "photographed" not in article.content
    assert "friends" not in article.content
    assert "Home" not in article.content


def test_fallback_to_flat_text():
    spans = "\n".join(
        f"<span>Sentence number {i} about the migration of arctic terns across the globe.</span>"
        for i in range(6)
    )
    html = f"<html><body><div class='content'>\n{spans}\n</div></body></html>"
    article = extract_article(html, URL, settings=ExtractionSettings())

    assert "Sentence number 0" in article.content
    assert "Sentence number 5" in article.content
    assert article.title == URL


def test_fallback_to_whole_document():
    story = " ".join([PARAGRAPH_ONE, PARAGRAPH_TWO])
    html = (
        "<html><body>"
        "<div class='post-content'><p>One.</p><p>Two.</p><p>Three.</p></div>"
        f"<section><p>{story}</p><p>{story}</p></section>"
        "</body></html>"
    )
    article = extract_article(html, URL, settings=ExtractionSettings())
    assert "glacier retreated" in article.content


def test_wrapper_classes_outside_the_article():
    html = (
        "<html><body><div class='page nav-collapsed'><article>"
        f"<p>{PARAGRAPH_ONE} See <a href='/data'>the data</a>.</p>"
        f"<p>{PARAGRAPH_TWO}</p>"
        f"<p>{PARAGRAPH_ONE}</p>"
        "</article></div></body></html>"
    )
    article = extract_article(html, URL, settings=ExtractionSettings())

    assert "[the data](https://science.example.com/data)" in article.content
    assert f"\n\n{PARAGRAPH_TWO}\n\n" in article.content


def test_flatten_text_splits_minified_blocks():
    div = BeautifulSoup(
        "<div><p>First paragraph text.</p><p>Second with <a href='/x'>a link</a> inside.</p></div>",
        "html.parser",
    ).div
    assert flatten_text(div, "https://example.com/news/story") == (
        "First paragraph text.\n\nSecond with [a link](https://example.com/x) inside."
    )
    assert flatten_text(div) == "First paragraph text.\n\nSecond with a link inside."


def test_insufficient_content():
    html = "<html><body><p>Too short to be an article.</p></body></html>"
    with pytest.raises(ExtractionError):
        extract_article(html, URL, settings=ExtractionSettings())


def test_content_is_truncated():
    article = extract_article(article_page(), URL, settings=ExtractionSettings(max_content_length=150))
    assert len(article.content) == 150


# ----------------------------------------------------------------------
# fetching
# ----------------------------------------------------------------------
def test_challenge_detection():
    assert is_challenge_page(*CHALLENGE)
    assert not is_challenge_page(200, CHALLENGE[1])
    assert not is_challenge_page(403, "<html>Forbidden</html>")


def test_challenge_retried_then_success(fake_fetcher_factory):
    fetcher = fake_fetcher_factory({URL: [CHALLENGE, CHALLENGE, (200, "<html>ok</html>")]})
    assert asyncio.run(fetcher.fetch(URL)) == "<html>ok</html>"
    assert len(fetcher.calls) == 3


def test_challenge_gives_up_after_max_attempts(fake_fetcher_factory):
    fetcher = fake_fetcher_factory({URL: [CHALLENGE, CHALLENGE, CHALLENGE, (200, "<html>ok</html>")]})
    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetcher.fetch(URL))
    assert isinstance(excinfo.value, ChallengePageError)
    assert len(fetcher.calls) == 3


def test_error_status_fails_immediately(fake_fetcher_factory):
    fetcher = fake_fetcher_factory({URL: [(404, "Not found"), (200, "<html>ok</html>")]})
    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetcher.fetch(URL))
    assert excinfo.value.status == 404
    assert len(fetcher.calls) == 1


def test_custom_detector_disables_retries(fake_fetcher_factory):
    fetcher = fake_fetcher_factory({URL: [CHALLENGE]}, challenge_detector=never_challenge)
    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetcher.fetch(URL))
    assert excinfo.value.status == 503
    assert len(fetcher.calls) == 1


def test_network_error_becomes_fetch_error(fake_fetcher_factory):
    fetcher = fake_fetcher_factory({URL: [aiohttp.ClientConnectionError("connection reset")]})
    with pytest.raises(FetchError, match="connection reset"):
        asyncio.run(fetcher.fetch(URL))


# ----------------------------------------------------------------------
# ArticleExtractor
# ----------------------------------------------------------------------
def test_extract_many_isolates_failures(fake_fetcher_factory):
    good_url = URL
    bad_url = "https://science.example.com/missing"
    short_url = "https://science.example.com/short"
    fetcher = fake_fetcher_factory({
        good_url: [(200, article_page())],
        bad_url: [(404, "Not found")],
        short_url: [(200, "<html><body><p>Nothing here.</p></body></html>")],
    })
    extractor = ArticleExtractor(fetcher=fetcher, settings=ExtractionSettings(), max_concurrent=2)

    articles, errors = asyncio.run(
        extractor.extract_many([bad_url, good_url, short_url], [None, "Eesti pealkiri", None])
    )

    assert len(articles) == 1
    assert isinstance(articles[0], Article)
    assert articles[0].title == "Eesti pealkiri"
    assert [error.url for error in errors] == [bad_url, short_url]
    assert all(isinstance(error, UrlError) for error in errors)
    assert "404" in errors[0].error
    assert fetcher.closed
