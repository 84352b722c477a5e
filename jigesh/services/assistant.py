"""Quota-guarded AI tutor requests"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..utils.exceptions import AccountNotFound, CompletionError, ProfileIncomplete
from ..utils.logger import get_logger
from .completion import Attachment, CompletionService
from .quota_tracker import QuotaTracker
from .session_manager import SessionManager

logger = get_logger(__name__)

TUTOR_PROMPT = """You are "JIGESHAI", an AI tutor helping students master Science and Mathematics.
Explain step by step, use LaTeX for all mathematical expressions ($...$ inline, $$...$$ for blocks),
and politely decline questions outside Physics, Chemistry, Biology and Mathematics."""


@dataclass(frozen=True)
class AssistantReply:
    text: str
    remaining: Union[int, str]


class StudyAssistant:
    """
    Runs one AI interaction for the session account.

    Order matters: reconcile the session, check the quota, call the model,
    and charge the quota only after the reply completed. Failed or cancelled
    calls never consume quota.
    """

    def __init__(
        self,
        sessions: SessionManager,
        quota: QuotaTracker,
        completion: CompletionService,
    ):
        self.sessions = sessions
        self.quota = quota
        self.completion = completion

    def ask(
        self,
        user_turn: str,
        prompt_context: str = TUTOR_PROMPT,
        attachment: Optional[Attachment] = None,
        cancel: Optional[threading.Event] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> AssistantReply:
        if not (user_turn or "").strip() and attachment is None:
            raise ValueError("Question text or attachment is required")

        account = self.sessions.reconcile()
        if account is None:
            raise AccountNotFound("No active session")
        if not account.profile_complete:
            raise ProfileIncomplete("Complete your profile before using the AI tutor")

        self.quota.ensure_allowed(account)

        chunks = []
        try:
            for chunk in self.completion.complete(prompt_context, user_turn, attachment, cancel):
                if cancel is not None and cancel.is_set():
                    raise CompletionError(CompletionError.CANCELLED)
                chunks.append(chunk)
                if on_chunk is not None:
                    on_chunk(chunk)
            if cancel is not None and cancel.is_set():
                raise CompletionError(CompletionError.CANCELLED)
        except CompletionError as e:
            logger.warning("AI_REQUEST_FAILED", account_id=account.id, kind=e.kind)
            raise

        updated = self.quota.record_usage(account)
        status = self.quota.check_limit(updated)
        logger.info("AI_REQUEST_COMPLETED", account_id=account.id, remaining=status.remaining)
        return AssistantReply(text="".join(chunks), remaining=status.remaining)
