import pytest

from shopping_assistant.cart import CartManager
from shopping_assistant.chat_service import ChatOrchestrator
from shopping_assistant import intent_router
from shopping_assistant.errors import SessionNotFoundError
from shopping_assistant.intent_router import IntentRouter
from shopping_assistant.pipeline import Step, StepRunner


@pytest.fixture
def orchestrator(store, catalog):
    return ChatOrchestrator(store, IntentRouter(catalog), delay_max=0)


def test_handle_message_returns_pair(orchestrator, store):
    session = store.create("u1")
    exchange = orchestrator.handle_message(session.id, "help")
    assert exchange.user_message.type == "user"
    assert exchange.user_message.content == "help"
    assert exchange.bot_response.type == "bot"
    assert exchange.bot_response.timestamp >= exchange.user_message.timestamp


def test_two_messages_give_four_in_order(orchestrator, store):
    session = store.create("u1")
    orchestrator.handle_message(session.id, "I need a laptop")
    orchestrator.handle_message(session.id, "help")

    messages = store.get(session.id).messages
    assert [m.type for m in messages] == ["user", "bot", "user", "bot"]
    assert [m.content for m in messages[::2]] == ["I need a laptop", "help"]
    timestamps = [m.timestamp for m in messages]
    assert timestamps == sorted(timestamps)
    stored = store.get(session.id)
    assert stored.updated_at >= timestamps[-1]


def test_unknown_session_rejected_without_mutation(orchestrator, store):
    store.create("u1")
    with pytest.raises(SessionNotFoundError):
        orchestrator.handle_message("missing", "hello")
    assert all(summary.message_count == 0 for summary in store.list_sessions())


def test_cart_intent_reads_session_cart(orchestrator, store, catalog):
    session = store.create("u1")
    working = store.get(session.id)
    CartManager(catalog).add(working, "1", 2)
    store.save(working)

    exchange = orchestrator.handle_message(session.id, "what's in my cart?")
    assert exchange.bot_response.content.startswith("You have 2 item(s) in your cart with a total of $4798.00.")


def test_thinking_delay_uses_sleep(store, catalog):
    waits = []
    orchestrator = ChatOrchestrator(
        store, IntentRouter(catalog), delay_min=1.0, delay_max=3.0, sleep=waits.append
    )
    session = store.create("u1")
    orchestrator.handle_message(session.id, "hi")
    assert len(waits) == 1
    assert 1.0 <= waits[0] <= 3.0


def test_thinking_delay_skipped_when_disabled(store, catalog):
    waits = []
    orchestrator = ChatOrchestrator(store, IntentRouter(catalog), delay_max=0, sleep=waits.append)
    session = store.create("u1")
    orchestrator.handle_message(session.id, "hi")
    assert waits == []


def test_step_runner_order_and_skip():
    calls = []
    runner = StepRunner(
        steps=[
            Step("a", lambda ctx: calls.append("a")),
            Step("b", lambda ctx: calls.append("b"), skip_if=lambda ctx: True),
            Step("c", lambda ctx: calls.append("c")),
        ]
    )
    runner.run(object())
    assert calls == ["a", "c"]
    assert runner.step_names == ["a", "b", "c"]


def test_unknown_session_leaves_no_lock_behind(orchestrator, store):
    for _ in range(3):
        with pytest.raises(SessionNotFoundError):
            orchestrator.handle_message("missing", "hello")
    assert store._locks == {}


def test_message_is_classified_once(store, catalog, monkeypatch):
    calls = []
    original = intent_router.classify

    def counting_classify(text):
        calls.append(text)
        return original(text)

    monkeypatch.setattr(intent_router, "classify", counting_classify)
    orchestrator = ChatOrchestrator(store, IntentRouter(catalog), delay_max=0)
    session = store.create("u1")
    orchestrator.handle_message(session.id, "I need a laptop")
    assert calls == ["I need a laptop"]
