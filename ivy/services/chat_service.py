from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from ivy.core.exceptions import ChatBusyError, ChatError, ChatSessionNotFoundError
from ivy.core.policies import ChatPolicy
from ivy.core.schemas import ChatMessage, MessageAuthor
from ivy.services.ai_service import PlantAIService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatTurn:
    reply: ChatMessage
    failed: bool = False


class ChatSession:
    """
    One conversation with Ivy.

    ``transcript`` is what the user sees (greeting and apologies included);
    ``history`` holds only completed exchanges and is what the model receives.
    """

    def __init__(
        self,
        ai: PlantAIService,
        policy: ChatPolicy,
        session_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.ai = ai
        self.policy = policy
        self.transcript: list[ChatMessage] = [ChatMessage(author=MessageAuthor.BOT, text=policy.greeting)]
        self.history: list[ChatMessage] = []
        self._clock = clock
        self.last_active = clock()
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def touch(self) -> None:
        self.last_active = self._clock()

    def send(self, text: str) -> ChatTurn:
        if not text.strip():
            raise ValueError("Message is empty")
        if not self._in_flight.acquire(blocking=False):
            raise ChatBusyError(f"Chat session {self.id} already has a request in flight")

        try:
            self.touch()
            user_message = ChatMessage(author=MessageAuthor.USER, text=text)
            self.transcript.append(user_message)
            try:
                reply = self.ai.converse(list(self.history), text)
            except ChatError as e:
                logger.warning("Chat session %s failed: %s", self.id, e)
                apology = ChatMessage(author=MessageAuthor.BOT, text=self.policy.apology)
                self.transcript.append(apology)
                return ChatTurn(reply=apology, failed=True)

            bot_message = ChatMessage(author=MessageAuthor.BOT, text=reply)
            self.history.extend([user_message, bot_message])
            self.transcript.append(bot_message)
            return ChatTurn(reply=bot_message)
        finally:
            self.touch()
            self._in_flight.release()


class ChatSessionRegistry:
    """
    Live chat sessions by id.

    Sessions idle longer than ``policy.idle_timeout_s`` are dropped; when
    ``policy.max_sessions`` is reached the least recently active idle session
    is evicted to make room.
    """

    def __init__(self, ai: PlantAIService, policy: ChatPolicy, clock: Callable[[], float] = time.monotonic):
        self.ai = ai
        self.policy = policy
        self._clock = clock
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._prune()
            return len(self._sessions)

    def _expired(self, session: ChatSession, now: float) -> bool:
        return not session.busy and now - session.last_active > self.policy.idle_timeout_s

    def _prune(self) -> None:
        now = self._clock()
        for sid in [sid for sid, s in self._sessions.items() if self._expired(s, now)]:
            del self._sessions[sid]
            logger.debug("Chat session %s expired", sid)

    def create(self) -> ChatSession:
        session = ChatSession(ai=self.ai, policy=self.policy, clock=self._clock)
        with self._lock:
            self._prune()
            idle = [s for s in self._sessions.values() if not s.busy]
            while len(self._sessions) >= self.policy.max_sessions and idle:
                oldest = min(idle, key=lambda s: s.last_active)
                idle.remove(oldest)
                del self._sessions[oldest.id]
                logger.info("Chat session %s evicted (limit %s)", oldest.id, self.policy.max_sessions)
            self._sessions[session.id] = session
        logger.debug("Chat session %s created", session.id)
        return session

    def get(self, session_id: str) -> ChatSession:
        with self._lock:
            self._prune()
            session = self._sessions.get(session_id)
        if session is None:
            raise ChatSessionNotFoundError(f"No chat session {session_id}")
        return session

    def dispose(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise ChatSessionNotFoundError(f"No chat session {session_id}")
        logger.debug("Chat session %s disposed", session_id)
