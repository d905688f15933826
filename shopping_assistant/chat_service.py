"""Chat orchestration for a single user message.

Step contracts:
    receive:
        Loads the session (rejecting unknown ids before any mutation) and builds the
        user ChatMessage. State becomes "received".
    think:
        Simulated typing pause for UI pacing; skipped when the delay is disabled.
    classify:
        Runs the intent router against the message and the session cart to build
        exactly one bot ChatMessage. State becomes "classified".
    respond:
        Appends user and bot messages together, touches the session, and saves it.
        State becomes "responded".
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .intent_router import IntentRouter
from .models import ChatExchange, ChatMessage, Session
from .pipeline import Step, StepRunner
from .session_store import SessionStore

logger = logging.getLogger("shopassist.chat")


@dataclass
class MessageContext:
    """Mutable context passed through each message step."""
    session_id: str
    text: str
    state: str = "pending"
    session: Optional[Session] = None
    intent: str = ""
    user_message: Optional[ChatMessage] = None
    bot_response: Optional[ChatMessage] = None


class ChatOrchestrator:
    def __init__(
        self,
        store: SessionStore,
        router: IntentRouter,
        delay_min: float = 1.0,
        delay_max: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Purpose: Wire the session store and router into the message pipeline.
        Inputs/Outputs: Inputs are the store, router, thinking delay bounds in seconds,
            and a sleep function; no return value.
        Side Effects / State: Builds a StepRunner with ordered steps.
        Failure Modes: None at init.
        If Removed: The chat route cannot process messages.
        Testing Notes: Pass delay_max=0 (or a fake sleep) for deterministic tests.
        """
        self._store = store
        self._router = router
        self._delay_min = delay_min
        self._delay_max = delay_max
        self._sleep = sleep
        self._runner: StepRunner[MessageContext] = StepRunner(
            steps=[
                Step("receive", self._step_receive),
                Step("think", self._step_think, skip_if=lambda _ctx: self._delay_max <= 0),
                Step("classify", self._step_classify),
                Step("respond", self._step_respond),
            ]
        )

    def handle_message(self, session_id: str, text: str) -> ChatExchange:
        """Purpose: Run the full receive/classify/respond cycle for one message.
        Inputs/Outputs: Inputs are session id and message text; output is the pair of
            user and bot messages.
        Side Effects / State: Appends both messages to the stored session.
        Dependencies: Uses SessionStore.lock so one session has one writer at a time.
        Failure Modes: SessionNotFoundError propagates before any mutation.
        Testing Notes: Two calls on one session leave four messages in order.
        """
        context = MessageContext(session_id=session_id, text=text)
        with self._store.lock(session_id):
            self._runner.run(context)
        logger.info("session=%s intent=%s state=%s", session_id, context.intent, context.state)
        return ChatExchange(user_message=context.user_message, bot_response=context.bot_response)

    def _step_receive(self, context: MessageContext) -> None:
        # Lookup first: an unknown session fails with nothing written.
        context.session = self._store.get(context.session_id)
        context.user_message = ChatMessage(content=context.text, type="user")
        context.state = "received"

    def _step_think(self, context: MessageContext) -> None:
        delay = random.uniform(self._delay_min, self._delay_max)
        self._sleep(max(delay, 0.0))

    def _step_classify(self, context: MessageContext) -> None:
        context.intent, context.bot_response = self._router.route(context.text, context.session.cart)
        context.state = "classified"

    def _step_respond(self, context: MessageContext) -> None:
        session = context.session
        session.messages.extend([context.user_message, context.bot_response])
        session.touch()
        self._store.save(session)
        context.state = "responded"
