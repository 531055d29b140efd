"""
Translation conversation handling for Tolge.

A translation session is a conversation with the model. Each round either
finishes the translation (the reply carries the completion marker) or ends
with a clarification question that the user must answer before the next
round.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from tolge.config import get_config
from tolge.core.article import MODEL, USER, ConversationTurn, Session
from tolge.core.errors import ModelError, ValidationError
from tolge.translation.prompts import COMPLETION_SENTINEL, build_initial_prompt
from tolge.translation.provider import ModelProvider

# Configure logging
logger = logging.getLogger(__name__)

SEGMENT_DELIMITER = re.compile(r'^[ \t]*-{3,}[ \t]*$', re.MULTILINE)


@dataclass(frozen=True)
class Complete:
    translation: str
    translations: List[str] = field(default_factory=list)

    complete = True


@dataclass(frozen=True)
class NeedsInput:
    question: str

    complete = False


RoundResult = Union[Complete, NeedsInput]


def parse_model_response(response: str) -> RoundResult:
    """
    Classify a model reply.

    Args:
        response: Raw reply text

    Returns:
        Complete with everything after the completion marker, or NeedsInput
        carrying the whole reply as the question
    """
    marker = response.find(COMPLETION_SENTINEL)
    if marker == -1:
        return NeedsInput(question=response)
    return Complete(translation=response[marker + len(COMPLETION_SENTINEL):].strip())


def split_translations(translation: str, count: int) -> List[str]:
    """
    Split a translation payload into per-article segments.

    Args:
        translation: Text after the completion marker
        count: Number of articles

    Returns:
        Exactly `count` stripped segments; missing ones are empty strings
    """
    segments = [segment.strip() for segment in SEGMENT_DELIMITER.split(translation)]
    while segments and not segments[0]:
        segments.pop(0)
    return [segments[i] if i < len(segments) else '' for i in range(count)]


class TranslationOrchestrator:
    """
    Runs translation rounds against a model provider.
    """
    def __init__(self, provider: ModelProvider, language: Optional[str] = None):
        self.provider = provider
        self.language = language or get_config('translation.target_language', 'Estonian')

    def build_request(self, session: Session, answer: Optional[str] = None) -> List[ConversationTurn]:
        """
        Build the turns to send for the next round.

        Args:
            session: Current session
            answer: The user's reply to the model's last question, if any

        Returns:
            The full conversation to send
        """
        if not session.history:
            if answer is not None:
                raise ValidationError("There is no question to answer yet; start the translation first")
            prompt = build_initial_prompt(
                session.articles,
                system_prompt=session.config.system_prompt,
                custom_instructions=session.config.custom_instructions,
                language=self.language,
            )
            return [ConversationTurn(role=USER, text=prompt)]

        turns = list(session.history)
        if answer is not None:
            turns.append(ConversationTurn(role=USER, text=answer))
        return turns

    async def run_round(self, session: Session, answer: Optional[str] = None) -> RoundResult:
        """
        Run one round of the conversation.

        The session history is only updated after the model replied, so a
        failed call leaves the session as it was.

        Args:
            session: Session to advance
            answer: The user's reply to a pending question

        Returns:
            Complete with the translation split per article, or NeedsInput

        Raises:
            ModelError: if the model call fails
            ValidationError: if the session is not in a state to run this round
        """
        if answer is None and session.awaiting_answer:
            raise ValidationError("The translator is waiting for an answer to its question")
        if answer is not None and not session.awaiting_answer:
            raise ValidationError("There is no question to answer")

        turns = self.build_request(session, answer)
        logger.info(f"Session {session.id}: sending round {len(turns) // 2 + 1} to the model")

        response = await self.provider.generate(turns)
        if not response or not response.strip():
            raise ModelError("Translation service returned an empty response")

        result = parse_model_response(response)
        session.history[:] = turns + [ConversationTurn(role=MODEL, text=response)]

        if isinstance(result, NeedsInput):
            logger.info(f"Session {session.id}: model asked for clarification")
            return result

        translations = split_translations(result.translation, len(session.articles))
        missing = [i + 1 for i, text in enumerate(translations) if not text]
        if missing:
            logger.warning(f"Session {session.id}: no translation for article(s) {missing}")
        logger.info(f"Session {session.id}: translation complete")
        return Complete(translation=result.translation, translations=translations)
