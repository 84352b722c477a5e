"""AI completion service - streams tutor replies from OpenAI"""

import base64
import threading
from dataclasses import dataclass
from typing import Iterator, Optional

from openai import (
    APIConnectionError,
    APIStatusError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    OpenAI,
    PermissionDeniedError,
    RateLimitError,
)
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.exceptions import CompletionError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Default timeout for OpenAI API calls (seconds)
DEFAULT_TIMEOUT = 30.0
DEFAULT_MODEL = "gpt-4o-mini"
MAX_ATTACHMENT_TEXT = 30000


@dataclass(frozen=True)
class Attachment:
    """File already converted to inline data by the UI"""
    name: str
    mime_type: str
    data: bytes

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class CompletionService:
    """Opaque text-completion collaborator"""

    def complete(
        self,
        prompt_context: str,
        user_turn: str,
        attachment: Optional[Attachment] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[str]:
        """
        Stream reply text chunks.

        Raises:
            CompletionError: kind is one of rate_limited, service_unavailable,
                network_error, content_blocked, configuration_missing, cancelled
        """
        raise NotImplementedError


def _classify(error: Exception) -> str:
    if isinstance(error, RateLimitError):
        return CompletionError.RATE_LIMITED
    if isinstance(error, APIConnectionError):
        return CompletionError.NETWORK_ERROR
    if isinstance(error, (AuthenticationError, PermissionDeniedError)):
        return CompletionError.CONFIGURATION_MISSING
    if isinstance(error, BadRequestError):
        err_str = str(error).lower()
        if "content_filter" in err_str or "content_policy" in err_str or "safety" in err_str:
            return CompletionError.CONTENT_BLOCKED
    return CompletionError.SERVICE_UNAVAILABLE


class OpenAICompletionService(CompletionService):
    """
    Streaming chat completions.

    Features:
    - Retries (exponential backoff) while opening the stream on network or 5xx errors
    - SDK errors mapped to CompletionError kinds
    - Cancellation between chunks via a threading.Event
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
    ):
        self._api_key = (api_key or "").strip()
        self._model = model
        self._timeout = max(1.0, float(timeout))
        self._max_retries = max(1, int(max_retries))
        self._client = None
        if self._api_key:
            # SDK retries disabled; tenacity owns the retry policy
            self._client = OpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)
            logger.info("AI_COMPLETION", action="initialized", has_api_key=True, model=self._model)
        else:
            logger.warning(
                "AI_COMPLETION",
                action="initialized",
                has_api_key=False,
                error="OPENAI_API_KEY not found in environment",
            )

    def is_available(self) -> bool:
        """Return True if the service is configured and ready"""
        return self._client is not None

    def _build_messages(self, prompt_context: str, user_turn: str, attachment: Optional[Attachment]):
        text = user_turn or ""
        parts = []
        if attachment is not None:
            if attachment.mime_type.startswith("image/"):
                parts.append({"type": "image_url", "image_url": {"url": attachment.data_url()}})
                text = text or "Analyze this image."
            elif attachment.mime_type.startswith("text/"):
                body = attachment.data.decode("utf-8", errors="replace")[:MAX_ATTACHMENT_TEXT]
                text = f"{text or 'Analyze this document.'}\n\n[{attachment.name}]\n{body}"
            else:
                raise CompletionError(
                    CompletionError.CONTENT_BLOCKED,
                    f"Unsupported attachment type: {attachment.mime_type}",
                )
        parts.insert(0, {"type": "text", "text": text})
        return [
            {"role": "system", "content": prompt_context},
            {"role": "user", "content": parts},
        ]

    def _open_stream(self, messages):
        for attempt in Retrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type((APIConnectionError, InternalServerError)),
            reraise=True,
        ):
            with attempt:
                return self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    stream=True,
                )

    def complete(
        self,
        prompt_context: str,
        user_turn: str,
        attachment: Optional[Attachment] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[str]:
        if not self.is_available():
            raise CompletionError(CompletionError.CONFIGURATION_MISSING, "AI API key is missing")

        messages = self._build_messages(prompt_context, user_turn, attachment)
        if cancel is not None and cancel.is_set():
            raise CompletionError(CompletionError.CANCELLED)

        try:
            stream = self._open_stream(messages)
        except (APIConnectionError, APIStatusError) as e:
            kind = _classify(e)
            logger.warning("AI_COMPLETION", action="failed", reason=kind, error=str(e), error_type=type(e).__name__)
            raise CompletionError(kind, str(e)) from e

        try:
            for chunk in stream:
                if cancel is not None and cancel.is_set():
                    raise CompletionError(CompletionError.CANCELLED)
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.finish_reason == "content_filter":
                    raise CompletionError(CompletionError.CONTENT_BLOCKED, "Reply blocked by content filter")
                if choice.delta and choice.delta.content:
                    yield choice.delta.content
        except (APIConnectionError, APIStatusError) as e:
            kind = _classify(e)
            logger.warning("AI_COMPLETION", action="stream_failed", reason=kind, error=str(e))
            raise CompletionError(kind, str(e)) from e
        finally:
            stream.close()
