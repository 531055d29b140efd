# tests/test_service.py
"""
End-to-end tests for ``TranslationService`` with a scripted model and a
fetcher that serves canned pages.
"""

import asyncio

import pytest

from conftest import article_page

from tolge.core.errors import ExtractionError, SessionNotFoundError, ValidationError
from tolge.extract.extractor import ArticleExtractor, ExtractionSettings
from tolge.formatters.document import DOCX_CONTENT_TYPE, ArticleMeta
from tolge.service import (
    AnswerRequest,
    DownloadRequest,
    QuestionPending,
    ScrapeRequest,
    TranslateRequest,
    TranslationDone,
    TranslationService,
)
from tolge.translation.provider import MockProvider

GOOD_URL = "https://science.example.com/glaciers"
BAD_URL = "https://science.example.com/gone"


@pytest.fixture
def make_service(fake_fetcher_factory):
    def factory(replies=None, pages=None):
        fetcher = fake_fetcher_factory(pages or {
            GOOD_URL: [(200, article_page())],
            BAD_URL: [(404, "Not found")],
        })
        provider = MockProvider(replies)
        service = TranslationService(
            extractor=ArticleExtractor(fetcher=fetcher, settings=ExtractionSettings()),
            provider_factory=lambda api_key: provider,
        )
        return service, provider
    return factory


def test_scrape_requires_credential(make_service, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    service, _ = make_service()
    with pytest.raises(ValidationError):
        asyncio.run(service.scrape(ScrapeRequest(urls=[GOOD_URL])))


def test_scrape_requires_urls(make_service):
    service, _ = make_service()
    with pytest.raises(ValidationError):
        asyncio.run(service.scrape(ScrapeRequest(urls=["  "], api_key="key")))


def test_scrape_fails_when_nothing_extracted(make_service):
    service, _ = make_service()
    with pytest.raises(ExtractionError, match="gone"):
        asyncio.run(service.scrape(ScrapeRequest(urls=[BAD_URL], api_key="key")))
    assert len(service.store) == 0


def test_full_flow_with_clarification(make_service):
    service, provider = make_service([
        "Should measurements stay in metric units?",
        "TRANSLATION_COMPLETE\nLiustikud taganevad kiiremini.\n\nTeine lõik.",
    ])

    async def scenario():
        scraped = await service.handle(ScrapeRequest(
            urls=[BAD_URL, GOOD_URL],
            api_key="key",
            estonian_titles=[None, "Liustikud sulavad"],
            session_id="sess-1",
        ))
        assert scraped.session_id == "sess-1"
        assert [error.url for error in scraped.errors] == [BAD_URL]
        assert scraped.articles[0].title == "Liustikud sulavad"
        assert scraped.articles[0].content_preview.endswith("...")
        assert len(scraped.articles[0].content_preview) == 203

        pending = await service.handle(TranslateRequest(session_id="sess-1"))
        assert pending == QuestionPending(
            question="Should measurements stay in metric units?",
            session_id="sess-1",
        )
        assert "sess-1" in service.store

        done = await service.handle(AnswerRequest(session_id="sess-1", answer="Yes"))
        assert isinstance(done, TranslationDone)
        assert done.translations == ["Liustikud taganevad kiiremini.\n\nTeine lõik."]

        # the session is gone once the translation is complete
        assert "sess-1" not in service.store
        with pytest.raises(SessionNotFoundError):
            await service.handle(TranslateRequest(session_id="sess-1"))

        return scraped, done

    scraped, done = asyncio.run(scenario())
    assert len(provider.calls) == 2

    articles = [ArticleMeta(title=a.title, url=a.url) for a in scraped.articles]
    payload = asyncio.run(service.handle(DownloadRequest(translation=done.translation, articles=articles)))
    assert payload.content_type == DOCX_CONTENT_TYPE
    assert payload.data[:2] == b"PK"


def test_unknown_session(make_service):
    service, _ = make_service()
    with pytest.raises(SessionNotFoundError, match="nope"):
        asyncio.run(service.translate("nope"))


def test_empty_answer_is_rejected(make_service):
    service, _ = make_service()
    with pytest.raises(ValidationError):
        asyncio.run(service.answer("sess-1", "   "))


def test_download_validation(make_service):
    service, _ = make_service()
    articles = [ArticleMeta(title="T", url=GOOD_URL)]
    with pytest.raises(ValidationError):
        service.download("", articles)
    with pytest.raises(ValidationError):
        service.download("Tekst", articles, format="pdf")
    assert service.download("Tekst", articles, format="html").data.startswith(b"<!DOCTYPE html>")
