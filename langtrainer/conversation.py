"""
Conversation practice with OpenAI as the language partner
"""

import asyncio
import json
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum

import openai
from openai import AsyncOpenAI

from .config import get_settings
from .utils import log_execution_time

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Classified reasons a conversation turn failed"""

    NOT_CONFIGURED = "not_configured"
    QUOTA_EXCEEDED = "quota_exceeded"
    AUTHORIZATION = "authorization"
    SERVER_UNAVAILABLE = "server_unavailable"
    NETWORK = "network"
    CONTENT_BLOCKED = "content_blocked"
    UNKNOWN = "unknown"


FAILURE_MESSAGES = {
    FailureKind.NOT_CONFIGURED: "⚠️ Configuration error: no API key. Start the app with a valid key in the environment.",
    FailureKind.QUOTA_EXCEEDED: "⚠️ Request limit reached (quota exceeded). Please try again later.",
    FailureKind.AUTHORIZATION: "⚠️ Authorization error. Check that the API key is correct.",
    FailureKind.SERVER_UNAVAILABLE: "⚠️ The AI server is temporarily unavailable or overloaded. Try again in a moment.",
    FailureKind.NETWORK: "⚠️ Network error. Check your internet connection.",
    FailureKind.CONTENT_BLOCKED: "⚠️ The reply was blocked by safety filters.",
    FailureKind.UNKNOWN: "An unexpected connection error occurred.",
}


class ContentBlockedError(Exception):
    """The model refused or filtered its reply"""


class ConversationBusyError(RuntimeError):
    """A reply is already pending"""


@dataclass
class ChatTurn:
    """One message in the conversation history"""

    role: str  # "user" or "model"
    text: str
    is_error: bool = False


@dataclass
class AiResponse:
    """Reply from the conversation partner, or a classified failure"""

    text: str
    correction: str | None = None
    is_error: bool = False
    failure: FailureKind | None = None

    @classmethod
    def from_failure(cls, kind: FailureKind, correction: str | None = None) -> "AiResponse":
        return cls(text=FAILURE_MESSAGES[kind], correction=correction, is_error=True, failure=kind)


def classify_error(error: Exception) -> FailureKind:
    """Map an API error to a failure class"""
    if isinstance(error, ContentBlockedError):
        return FailureKind.CONTENT_BLOCKED
    if isinstance(error, openai.RateLimitError):
        return FailureKind.QUOTA_EXCEEDED
    if isinstance(error, openai.AuthenticationError | openai.PermissionDeniedError):
        return FailureKind.AUTHORIZATION
    if isinstance(error, openai.InternalServerError):
        return FailureKind.SERVER_UNAVAILABLE
    if isinstance(error, openai.APIConnectionError):
        return FailureKind.NETWORK

    text = str(error).lower()
    if "content_policy" in text or "content_filter" in text or "blocked" in text:
        return FailureKind.CONTENT_BLOCKED
    if "429" in text or "quota" in text or "resource exhausted" in text:
        return FailureKind.QUOTA_EXCEEDED
    if "401" in text or "403" in text or "api key" in text or "permission" in text:
        return FailureKind.AUTHORIZATION
    if "500" in text or "503" in text or "overloaded" in text or "internal" in text:
        return FailureKind.SERVER_UNAVAILABLE
    if "network" in text or "connection" in text:
        return FailureKind.NETWORK
    return FailureKind.UNKNOWN


def parse_model_reply(content: str) -> AiResponse:
    """Parse the model's JSON reply, falling back to the raw text"""
    cleaned = content.replace("```json", "").replace("```", "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Model reply is not JSON, using raw text")
        return AiResponse(text=content)

    if not isinstance(data, dict) or not isinstance(data.get("reply"), str):
        logger.warning("Model reply has no 'reply' field, using raw text")
        return AiResponse(text=content)

    correction = data.get("correction")
    if not isinstance(correction, str) or not correction.strip():
        correction = None
    return AiResponse(text=data["reply"], correction=correction)


class ConversationPartner:
    """Generates tutor replies for conversation exercises"""

    def __init__(self, api_key: str | None = None, client: AsyncOpenAI | None = None):
        settings = get_settings()
        key = api_key or settings.openai_api_key
        if client is not None:
            self.client = client
        elif key:
            self.client = AsyncOpenAI(api_key=key, timeout=settings.api_timeout)
        else:
            self.client = None
        self.model = settings.openai_model
        self.max_tokens = settings.openai_max_tokens
        self.temperature = settings.openai_temperature

    def _get_system_prompt(self, lesson_context: str) -> str:
        """Get system prompt for the tutor"""
        return f"""You are a helpful and patient English teacher for a Polish student.
Context of current lesson: {lesson_context}.

Your task:
1. Analyze the user's input for grammatical or vocabulary errors suitable for A1/A2 level.
2. If there is a mistake, provide a polite correction in Polish.
3. Continue the conversation naturally in simple English.

Respond in valid JSON format with these exact keys:
- "correction": optional correction in Polish, or null if the input is correct
- "reply": your reply in English"""

    def _build_messages(
        self, history: list[ChatTurn], user_message: str, lesson_context: str
    ) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": self._get_system_prompt(lesson_context)}]
        for turn in history:
            if turn.is_error:
                continue
            role = "assistant" if turn.role == "model" else "user"
            messages.append({"role": role, "content": turn.text})
        messages.append({"role": "user", "content": user_message})
        return messages

    @log_execution_time
    async def respond(
        self, history: list[ChatTurn], user_message: str, lesson_context: str
    ) -> AiResponse:
        """
        Generate the partner's next turn

        Args:
            history: Prior turns, without the new message
            user_message: The learner's new utterance
            lesson_context: Lesson title or topic

        Returns:
            AiResponse; failures are returned with is_error set, never raised
        """
        if self.client is None:
            logger.warning("OpenAI API key missing")
            return AiResponse.from_failure(FailureKind.NOT_CONFIGURED, correction="Missing API key.")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(history, user_message, lesson_context),
                max_completion_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )

            if not response.choices:
                raise ValueError("No response choices from OpenAI")

            choice = response.choices[0]
            if choice.finish_reason == "content_filter":
                raise ContentBlockedError("Reply blocked by content filter")

            content = choice.message.content
            if not content:
                raise ValueError("Empty response from model")

            return parse_model_reply(content)

        except Exception as e:
            kind = classify_error(e)
            logger.error(f"Conversation request failed ({kind.value}): {e}")
            return AiResponse.from_failure(kind)


class PendingReply:
    """Single slot for the one in-flight conversation request.

    Outcomes: not yet resolved (``result()`` is None), a reply, or a
    classified failure. There is no cancellation and no retry.
    """

    def __init__(self):
        self._task: asyncio.Task | None = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_resolved(self) -> bool:
        return self._task is not None and self._task.done()

    def start(self, request: Awaitable[AiResponse]) -> None:
        """Begin a request; must be called from a running event loop"""
        if self.is_pending:
            raise ConversationBusyError("A conversation reply is already pending")
        self._task = asyncio.ensure_future(request)

    async def wait(self) -> AiResponse:
        if self._task is None:
            raise ConversationBusyError("No conversation request was started")
        return await self._task

    def result(self) -> AiResponse | None:
        """Resolved reply, or None while pending or idle"""
        if not self.is_resolved:
            return None
        return self._task.result()

    def clear(self) -> None:
        """Forget a resolved request"""
        if self.is_pending:
            raise ConversationBusyError("Cannot clear a pending conversation reply")
        self._task = None
