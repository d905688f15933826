from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from pydantic import ValidationError

from .errors import SessionNotFoundError
from .models import ChatMessage, Session, SessionSummary

logger = logging.getLogger("shopassist.sessions")


class SessionStore:
    """Session storage for chat history and carts, keyed by session id."""

    def __init__(self, path: Optional[Path] = None, max_sessions: Optional[int] = None) -> None:
        """Purpose: Initialize the session store and hydrate from disk if available.
        Inputs/Outputs: Inputs are an optional snapshot path and max_sessions cap; no return.
        Side Effects / State: Loads sessions into memory when the snapshot exists.
        Dependencies: Calls _load; relies on the Session model for validation.
        Failure Modes: Corrupt snapshots are logged and leave an empty store.
        If Removed: Chat and cart routes have nowhere to keep session state.
        Testing Notes: Verify load on startup populates sessions and respects max_sessions.
        """
        self._path = path
        self._max_sessions = max_sessions
        self._sessions: Dict[str, Session] = {}
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}
        self._load()

    def _load(self) -> None:
        """Purpose: Load persisted sessions from disk into memory.
        Inputs/Outputs: Reads from self._path; no return value.
        Side Effects / State: Populates _sessions.
        Dependencies: Uses json.loads and Session.model_validate.
        Failure Modes: Missing file, undecodable or non-JSON content, an unexpected
            top-level shape, or invalid records leave the affected sessions out.
        Testing Notes: Corrupt JSON should not crash; valid JSON should hydrate sessions.
        """
        if not self._path or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("session snapshot %s is not valid JSON; starting empty", self._path)
            return
        sessions = data.get("sessions") if isinstance(data, dict) else None
        if not isinstance(sessions, dict):
            logger.warning("session snapshot %s has no sessions mapping; starting empty", self._path)
            return
        for session_id, raw in sessions.items():
            try:
                self._sessions[session_id] = Session.model_validate(raw)
            except ValidationError:
                logger.warning("session %s in snapshot is invalid; skipped", session_id)
        if self._prune_sessions():
            self._persist()

    def _persist(self) -> None:
        """Purpose: Persist in-memory sessions to disk.
        Inputs/Outputs: Writes to self._path; no return value.
        Side Effects / State: Rewrites the JSON snapshot file.
        Failure Modes: IO errors raise exceptions (not caught here).
        Testing Notes: Ensure the file is rewritten after each mutation.
        """
        if not self._path:
            return
        payload = {
            "sessions": {
                session_id: session.model_dump(mode="json")
                for session_id, session in self._sessions.items()
            }
        }
        self._path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """Serialize read-modify-write cycles on one session id; unknown ids raise SessionNotFoundError."""
        with self._guard:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            session_lock = self._locks.setdefault(session_id, threading.RLock())
        with session_lock:
            yield

    def create(self, user_id: str) -> Session:
        """Purpose: Create an empty session for a user.
        Inputs/Outputs: Input is user_id; output is a copy of the new Session.
        Side Effects / State: Stores the session, prunes, and persists.
        Failure Modes: Persist can raise IO errors.
        Testing Notes: New sessions have empty messages/cart and created_at == updated_at.
        """
        session = Session(user_id=user_id)
        session.updated_at = session.created_at
        with self._guard:
            self._sessions[session.id] = session
            self._prune_sessions()
            self._persist()
        logger.info("session=%s created user=%s", session.id, user_id)
        return session.model_copy(deep=True)

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Session:
        """Return a detached copy of the session; callers write changes back with save()."""
        with self._guard:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session.model_copy(deep=True)

    def save(self, session: Session) -> None:
        """Purpose: Write a session back into the store.
        Inputs/Outputs: Input is a Session; no return value.
        Side Effects / State: Replaces the stored copy and persists to disk.
        Failure Modes: Raises SessionNotFoundError if the session was pruned meanwhile.
        Testing Notes: Mutate a copy from get(), save it, and verify get() reflects it.
        """
        with self._guard:
            if session.id not in self._sessions:
                raise SessionNotFoundError(session.id)
            self._sessions[session.id] = session.model_copy(deep=True)
            self._persist()

    def append_messages(self, session_id: str, *messages: ChatMessage) -> Session:
        """Append messages in order, advance updated_at, and return the saved session."""
        with self.lock(session_id):
            session = self.get(session_id)
            session.messages.extend(messages)
            session.touch()
            self.save(session)
            return session

    def clear_messages(self, session_id: str) -> Session:
        with self.lock(session_id):
            session = self.get(session_id)
            session.messages = []
            session.touch()
            self.save(session)
            return session

    def list_sessions(self, user_id: Optional[str] = None) -> List[SessionSummary]:
        """Purpose: Return session summaries sorted by most recent activity.
        Inputs/Outputs: Optional user_id filter; returns SessionSummary instances.
        Side Effects / State: None.
        Failure Modes: None; returns an empty list if no sessions match.
        Testing Notes: Ensure ordering by updated_at descending.
        """
        with self._guard:
            sessions = [
                session
                for session in self._sessions.values()
                if user_id is None or session.user_id == user_id
            ]
        summaries = [_summarize(session) for session in sessions]
        return sorted(summaries, key=lambda s: s.updated_at, reverse=True)

    def _prune_sessions(self) -> bool:
        """Purpose: Enforce max_sessions by dropping least recently updated sessions.
        Inputs/Outputs: No inputs; returns True if any sessions were removed.
        Side Effects / State: Mutates _sessions and drops the pruned sessions' locks.
        Failure Modes: None; no-op when max_sessions is unset or not exceeded.
        Testing Notes: Set a low max_sessions and verify pruning order.
        """
        if not self._max_sessions or self._max_sessions <= 0:
            return False
        if len(self._sessions) <= self._max_sessions:
            return False

        ordered = sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)
        keep_ids = {session.id for session in ordered[: self._max_sessions]}
        removed = [session_id for session_id in list(self._sessions.keys()) if session_id not in keep_ids]
        for session_id in removed:
            self._sessions.pop(session_id, None)
            self._locks.pop(session_id, None)
        logger.info("pruned %d session(s) above cap %d", len(removed), self._max_sessions)
        return bool(removed)


def _summarize(session: Session) -> SessionSummary:
    # Title comes from the first user message, like a chat sidebar.
    title = "New Chat"
    for message in session.messages:
        if message.type == "user" and message.content.strip():
            title = message.content.strip().splitlines()[0][:48]
            break
    return SessionSummary(
        session_id=session.id,
        user_id=session.user_id,
        title=title,
        message_count=len(session.messages),
        updated_at=session.updated_at,
    )
