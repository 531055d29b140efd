"""
Data models for Tolge.
"""
from dataclasses import dataclass, field
from typing import List, Optional

USER = "user"
MODEL = "model"


@dataclass(frozen=True)
class ParsedLink:
    """
    A hyperlink recovered from HTML or from a markdown link token.
    """
    anchor_text: str
    url: str

    def to_markdown(self) -> str:
        return f"[{self.anchor_text}]({self.url})"


@dataclass(frozen=True)
class Article:
    """
    Represents an extracted article.

    `content` is markdown text: paragraphs separated by a blank line and
    hyperlinks embedded as [anchor](absoluteUrl).
    """
    url: str
    title: str
    content: str
    estonian_title: Optional[str] = None

    @property
    def display_title(self) -> str:
        """Human-supplied title when present, otherwise the page title."""
        return self.estonian_title or self.title

    def summary(self, preview_length: int = 200) -> "ArticleSummary":
        preview = self.content[:preview_length] + "..."
        return ArticleSummary(
            url=self.url,
            title=self.display_title,
            content_preview=preview,
            estonian_title=self.estonian_title,
        )


@dataclass(frozen=True)
class ArticleSummary:
    url: str
    title: str
    content_preview: str
    estonian_title: Optional[str] = None


@dataclass(frozen=True)
class ConversationTurn:
    role: str  # USER or MODEL
    text: str


@dataclass
class TranslationConfig:
    system_prompt: Optional[str] = None
    custom_instructions: Optional[str] = None


@dataclass
class Session:
    """
    Server-held state binding source articles to a model conversation.
    """
    id: str
    articles: List[Article]
    api_key: Optional[str] = None
    history: List[ConversationTurn] = field(default_factory=list)
    config: TranslationConfig = field(default_factory=TranslationConfig)

    @property
    def awaiting_answer(self) -> bool:
        """True when the last turn is a clarification question from the model."""
        return bool(self.history) and self.history[-1].role == MODEL
