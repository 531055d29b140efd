"""
Text-generation providers for Tolge.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Union

import openai
from openai import AsyncOpenAI

from tolge.core.article import MODEL, ConversationTurn
from tolge.core.errors import ModelError

# Configure logging
logger = logging.getLogger(__name__)

ROLE_NAMES = {MODEL: "assistant"}


class ModelProvider(ABC):
    """Abstract base class for text-generation services."""

    @abstractmethod
    async def generate(self, turns: Sequence[ConversationTurn]) -> str:
        """
        Send a conversation and return the model's reply.

        Args:
            turns: Conversation so far, ending with a user turn

        Returns:
            The reply text

        Raises:
            ModelError: if the service fails or returns nothing
        """

    def get_usage_stats(self) -> Dict:
        return {}


class OpenAIProvider(ModelProvider):
    """OpenAI chat-completions implementation."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.3,
        base_url: Optional[str] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: Credential passed through from the caller
            model: Model name to use
            temperature: Sampling temperature
            base_url: Custom base URL (for compatible services)
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.temperature = temperature
        self.total_tokens = 0
        self.api_calls = 0

    @staticmethod
    def to_messages(turns: Sequence[ConversationTurn]) -> List[Dict[str, str]]:
        return [
            {"role": ROLE_NAMES.get(turn.role, turn.role), "content": turn.text}
            for turn in turns
        ]

    async def generate(self, turns: Sequence[ConversationTurn]) -> str:
        self.api_calls += 1
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self.to_messages(turns),
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            logger.error(f"Model request failed: {e}")
            raise ModelError(f"Translation service request failed: {e}") from e

        if response.usage:
            self.total_tokens += response.usage.total_tokens

        if not response.choices or not response.choices[0].message.content:
            raise ModelError("Translation service returned an empty response")

        return response.choices[0].message.content

    def get_usage_stats(self) -> Dict:
        return {
            "total_tokens": self.total_tokens,
            "api_calls": self.api_calls,
            "model": self.model,
        }


class MockProvider(ModelProvider):
    """
    Provider returning scripted replies, for tests and dry runs.

    Replies are handed out in order; the last one repeats once the script
    runs out.
    """

    def __init__(self, replies: Optional[Sequence[Union[str, Exception]]] = None):
        self.replies = list(replies or ["TRANSLATION_COMPLETE\nMock translation"])
        self.calls: List[List[ConversationTurn]] = []

    async def generate(self, turns: Sequence[ConversationTurn]) -> str:
        self.calls.append(list(turns))
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def get_usage_stats(self) -> Dict:
        return {"api_calls": len(self.calls), "model": "mock"}
