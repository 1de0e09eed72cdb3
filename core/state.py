
# ═══════════════════════════════════════════════════════════════════════════════
# SESSION CONTEXT STATE
# ═══════════════════════════════════════════════════════════════════════════════
import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from app.config import SESSION_CLEANUP_INTERVAL_SECONDS, SESSION_HISTORY_LIMIT, SESSION_TIMEOUT_SECONDS
from infra.logger import LogContext, log_sweep, logger_session
from tools.schemas import ConversationTurn, RoutingContext


@dataclass
class _SessionEntry:
    context: RoutingContext
    last_updated_at: float


class SessionContextStore:
    """
    Per-session rolling conversation state.

    Keeps the last few turns and the last routed handler for each session id
    so follow-ups like "start one now" can be disambiguated.

    Example:
        >>> store = SessionContextStore()
        >>> store.update("abc", {"current_handler": "PomodoroHandler"},
        ...              turn=ConversationTurn(role="user", content="start a timer"))
        >>> store.get("abc").current_handler
        'PomodoroHandler'

    Sessions idle longer than `timeout` are dropped, lazily on get() or by
    the periodic sweep.
    """

    def __init__(
        self,
        timeout: float = SESSION_TIMEOUT_SECONDS,
        cleanup_interval: float = SESSION_CLEANUP_INTERVAL_SECONDS,
        history_limit: int = SESSION_HISTORY_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize empty store"""
        self._sessions: Dict[str, _SessionEntry] = {}
        self._timeout = timeout
        self._cleanup_interval = cleanup_interval
        self._history_limit = history_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def update(
        self,
        session_id: str,
        context: Union[RoutingContext, Dict[str, Any], None] = None,
        turn: Optional[ConversationTurn] = None,
    ):
        """
        Merge context fields into a session, creating it if needed.

        Args:
            session_id: Opaque session identifier
            context: Fields to overwrite (only explicitly set fields apply)
            turn: Conversation turn appended to the rolling history
        """
        with self._lock:
            entry = self._sessions.get(session_id)
            base = entry.context if entry is not None else RoutingContext()
            updated = base.merged(context)

            history = list(updated.conversation_history)
            if turn is not None:
                history.append(turn)
            updated.conversation_history = history[-self._history_limit:]

            self._sessions[session_id] = _SessionEntry(
                context=updated,
                last_updated_at=self._clock(),
            )
            total = len(self._sessions)

        logger_session.debug(
            f"SESSION_UPDATE | session={LogContext.format_text(session_id, 8)} | "
            f"turns={len(updated.conversation_history)} | "
            f"handler={updated.current_handler} | total={total}"
        )

    def get(self, session_id: str) -> Optional[RoutingContext]:
        """
        Return a copy of the session context, or None if absent or expired.
        Expired sessions are deleted.
        """
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None

            if self._clock() - entry.last_updated_at > self._timeout:
                del self._sessions[session_id]
                logger_session.debug(
                    f"SESSION_EXPIRED | session={LogContext.format_text(session_id, 8)}"
                )
                return None

            return entry.context.model_copy(deep=True)

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def sweep_expired(self) -> int:
        """Delete every idle session; returns how many were removed"""
        with self._lock:
            now = self._clock()
            expired = [
                session_id for session_id, entry in self._sessions.items()
                if now - entry.last_updated_at > self._timeout
            ]
            for session_id in expired:
                del self._sessions[session_id]
            remaining = len(self._sessions)

        log_sweep(logger_session, len(expired), remaining)
        return len(expired)

    def start(self):
        """Start the periodic sweep on the running event loop"""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self):
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.sweep_expired()
