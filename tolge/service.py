"""
Request handling for Tolge.

Each operation has its own request type: scrape a batch of URLs into a new
session, start its translation, answer a clarification question, and
download the finished document.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from tolge.config import get_config, get_openai_api_key
from tolge.core.article import ArticleSummary, Session, TranslationConfig
from tolge.core.errors import ExtractionError, ValidationError
from tolge.core.session import InMemorySessionStore, SessionStore, new_session_id
from tolge.extract.extractor import ArticleExtractor, UrlError
from tolge.formatters.document import ArticleMeta, DocumentAssembler, DocumentPayload
from tolge.formatters.html import HtmlRenderer
from tolge.translation.orchestrator import Complete, TranslationOrchestrator
from tolge.translation.provider import ModelProvider, OpenAIProvider

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class ScrapeRequest:
    urls: List[str]
    api_key: Optional[str] = None
    estonian_titles: List[Optional[str]] = field(default_factory=list)
    session_id: Optional[str] = None
    system_prompt: Optional[str] = None
    custom_instructions: Optional[str] = None


@dataclass
class TranslateRequest:
    session_id: str


@dataclass
class AnswerRequest:
    session_id: str
    answer: str


@dataclass
class DownloadRequest:
    translation: str
    articles: List[ArticleMeta]
    format: str = "docx"


Request = Union[ScrapeRequest, TranslateRequest, AnswerRequest, DownloadRequest]


@dataclass
class ScrapeResponse:
    session_id: str
    articles: List[ArticleSummary]
    errors: List[UrlError] = field(default_factory=list)


@dataclass
class TranslationDone:
    translation: str
    translations: List[str] = field(default_factory=list)


@dataclass
class QuestionPending:
    question: str
    session_id: str


TranslateResponse = Union[TranslationDone, QuestionPending]
Response = Union[ScrapeResponse, TranslationDone, QuestionPending, DocumentPayload]

ProviderFactory = Callable[[str], ModelProvider]


def openai_provider_factory(api_key: str) -> ModelProvider:
    return OpenAIProvider(
        api_key=api_key,
        model=get_config('model.name', 'gpt-4o'),
        temperature=get_config('model.temperature', 0.3),
    )


class TranslationService:
    """
    Ties extraction, sessions, translation rounds and document assembly together.
    """
    def __init__(
        self,
        extractor: Optional[ArticleExtractor] = None,
        store: Optional[SessionStore] = None,
        provider_factory: ProviderFactory = openai_provider_factory,
        assembler: Optional[DocumentAssembler] = None,
        renderer: Optional[HtmlRenderer] = None,
    ):
        self._extractor = extractor
        self.store = store or InMemorySessionStore()
        self.provider_factory = provider_factory
        self.assembler = assembler or DocumentAssembler()
        self.renderer = renderer or HtmlRenderer()

    @property
    def extractor(self) -> ArticleExtractor:
        if self._extractor is None:
            self._extractor = ArticleExtractor()
        return self._extractor

    async def handle(self, request: Request) -> Response:
        """
        Dispatch a request to its handler.

        Args:
            request: One of the request types

        Returns:
            The matching response
        """
        if isinstance(request, ScrapeRequest):
            return await self.scrape(request)
        if isinstance(request, TranslateRequest):
            return await self.translate(request.session_id)
        if isinstance(request, AnswerRequest):
            return await self.answer(request.session_id, request.answer)
        if isinstance(request, DownloadRequest):
            return self.download(request.translation, request.articles, request.format)
        raise ValidationError(f"Unsupported request type: {type(request).__name__}")

    async def scrape(self, request: ScrapeRequest) -> ScrapeResponse:
        """
        Extract a batch of URLs and open a session for them.

        Raises:
            ValidationError: if the credential or the URL list is missing
            ExtractionError: if no URL could be extracted
        """
        api_key = request.api_key or get_openai_api_key()
        if not api_key:
            raise ValidationError("API key is required")

        urls = [url.strip() for url in request.urls if url and url.strip()]
        if not urls:
            raise ValidationError("At least one URL is required")

        articles, errors = await self.extractor.extract_many(urls, request.estonian_titles)
        if not articles:
            details = "; ".join(f"{e.url}: {e.error}" for e in errors)
            raise ExtractionError(f"Failed to scrape any articles ({details})")

        session = Session(
            id=request.session_id or new_session_id(),
            articles=articles,
            api_key=api_key,
            config=TranslationConfig(
                system_prompt=request.system_prompt or get_config('translation.system_prompt'),
                custom_instructions=request.custom_instructions,
            ),
        )
        await self.store.put(session)
        logger.info(f"Session {session.id}: {len(articles)} article(s), {len(errors)} failure(s)")

        return ScrapeResponse(
            session_id=session.id,
            articles=[article.summary() for article in articles],
            errors=errors,
        )

    async def _run(self, session_id: str, answer: Optional[str] = None) -> TranslateResponse:
        async with self.store.lock(session_id):
            session = await self.store.get(session_id)
            orchestrator = TranslationOrchestrator(self.provider_factory(session.api_key))
            result = await orchestrator.run_round(session, answer)

            if isinstance(result, Complete):
                await self.store.delete(session_id)
                return TranslationDone(translation=result.translation, translations=result.translations)

            await self.store.put(session)
            return QuestionPending(question=result.question, session_id=session_id)

    async def translate(self, session_id: str) -> TranslateResponse:
        """
        Start (or continue) the translation of a session.

        Raises:
            SessionNotFoundError: for unknown session ids
            ModelError: if the model call fails
        """
        return await self._run(session_id)

    async def answer(self, session_id: str, answer: str) -> TranslateResponse:
        """
        Send the user's answer to the model's question and run the next round.

        Raises:
            ValidationError: if the answer is empty or nothing was asked
            SessionNotFoundError: for unknown session ids
            ModelError: if the model call fails
        """
        if not answer or not answer.strip():
            raise ValidationError("Answer is required")
        return await self._run(session_id, answer.strip())

    def download(
        self,
        translation: str,
        articles: Sequence[ArticleMeta],
        format: str = "docx",
    ) -> DocumentPayload:
        """
        Build the finished document.

        Raises:
            ValidationError: for an empty translation or an unknown format
        """
        if not translation or not translation.strip():
            raise ValidationError("Translation text is required")
        if format == "docx":
            return self.assembler.assemble(articles, translation)
        if format == "html":
            return self.renderer.assemble(articles, translation)
        raise ValidationError(f"Unsupported document format: {format}")
