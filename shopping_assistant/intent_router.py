"""Rule-based intent routing for the shopping assistant.

Role:
    Classifies raw chat text into exactly one intent by first-match keyword priority
    and renders the canned bot reply for it, querying the catalog where the intent
    needs products.

Priority (first hit wins, no fallthrough):
    SEARCH > LAPTOPS > SMARTPHONES > BOOKS > CART > HELP > FALLBACK
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .cart import item_count, total_price
from .catalog import Catalog
from .models import CartItem, ChatAction, ChatMessage, Product
from .utils import contains_any, format_price

logger = logging.getLogger("shopassist.router")

INTENT_SEARCH = "SEARCH"
INTENT_LAPTOPS = "LAPTOPS"
INTENT_SMARTPHONES = "SMARTPHONES"
INTENT_BOOKS = "BOOKS"
INTENT_CART = "CART"
INTENT_HELP = "HELP"
INTENT_FALLBACK = "FALLBACK"

INTENT_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    (INTENT_SEARCH, ("search", "find", "looking for")),
    (INTENT_LAPTOPS, ("laptop", "computer")),
    (INTENT_SMARTPHONES, ("phone", "smartphone")),
    (INTENT_BOOKS, ("book",)),
    (INTENT_CART, ("cart", "basket")),
    (INTENT_HELP, ("help", "what can you do")),
]

SEARCH_RESULT_LIMIT = 6
CATEGORY_RESULT_LIMIT = 4


@dataclass(frozen=True)
class CategoryIntent:
    """Catalog slice and reply text for a category recommendation intent."""
    category: str
    subcategory: Optional[str]
    reply: str


# Books has no subcategory pin so every book in the catalog is eligible.
CATEGORY_INTENTS: Dict[str, CategoryIntent] = {
    INTENT_LAPTOPS: CategoryIntent("Electronics", "Laptops", "Here are our top laptop recommendations:"),
    INTENT_SMARTPHONES: CategoryIntent("Electronics", "Smartphones", "Check out these amazing smartphones:"),
    INTENT_BOOKS: CategoryIntent("Books", None, "Here are some popular books you might enjoy:"),
}

SEARCH_REPLY = "I found {count} products that match your search. Here are some great options:"
EMPTY_CART_REPLY = "Your cart is currently empty. Would you like me to help you find some products?"
CART_SUMMARY_REPLY = (
    "You have {count} item(s) in your cart with a total of {total}. "
    "Would you like to proceed to checkout?"
)
HELP_REPLY = (
    "I can help you with:\n\n"
    "• 🔍 **Product Search** - Find specific items or browse categories\n"
    "• 📱 **Product Details** - Get detailed information about any product\n"
    "• 🛒 **Shopping Cart** - Add items, view cart, and checkout\n"
    "• 💡 **Recommendations** - Get personalized product suggestions\n"
    "• 📞 **Support** - Answer questions about orders, shipping, and returns\n\n"
    "Just ask me anything! For example: 'Show me laptops under $1000' or 'I need a good smartphone'"
)
FALLBACK_SUGGESTIONS = [
    "Show me laptops under $1000",
    "I need a new smartphone",
    "Find me some programming books",
    "What are your best sellers?",
]


def build_fallback_reply(suggestions: Sequence[str]) -> str:
    """Render the fallback reply with suggestions as a bulleted list."""
    bullets = "\n".join(f"• {suggestion}" for suggestion in suggestions)
    return (
        "I'd be happy to help you! Here are some things you can try:\n\n"
        f"{bullets}\n\n"
        "Or just tell me what you're looking for!"
    )


FALLBACK_REPLY = build_fallback_reply(FALLBACK_SUGGESTIONS)


def classify(text: str) -> str:
    """Purpose: Map raw chat text to exactly one intent label.
    Inputs/Outputs: Input is the raw message; output is an INTENT_* label.
    Side Effects / State: None; pure function.
    Dependencies: Uses INTENT_RULES order and contains_any.
    Failure Modes: None; unmatched text returns INTENT_FALLBACK.
    If Removed: The router cannot choose a reply template.
    Testing Notes: "help with a laptop" must classify as LAPTOPS, not HELP.
    """
    # Evaluate keyword groups in priority order; the first hit wins.
    lowered = (text or "").lower()
    for intent, keywords in INTENT_RULES:
        if contains_any(lowered, keywords):
            return intent
    return INTENT_FALLBACK


class IntentRouter:
    """Produces one bot ChatMessage for a user message."""

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog
        self._handlers: Dict[str, Callable[[str, Sequence[CartItem]], ChatMessage]] = {
            INTENT_SEARCH: self._reply_search,
            INTENT_CART: self._reply_cart,
            INTENT_HELP: self._reply_help,
            INTENT_FALLBACK: self._reply_fallback,
        }

    def respond(self, text: str, cart: Sequence[CartItem] = ()) -> ChatMessage:
        """Purpose: Classify a message and build the matching bot reply.
        Inputs/Outputs: Inputs are message text and the session's cart; output is a
            bot ChatMessage with a fresh id and generation-time timestamp.
        Side Effects / State: None; catalog and cart are only read.
        Dependencies: Uses classify and the per-intent reply builders.
        Failure Modes: None; every input yields exactly one message.
        If Removed: Chat messages get no assistant reply.
        Testing Notes: Check text, attached products, and actions per intent.
        """
        _intent, message = self.route(text, cart)
        return message

    def route(self, text: str, cart: Sequence[CartItem] = ()) -> Tuple[str, ChatMessage]:
        """Classify once and return the intent label together with the bot reply."""
        intent = classify(text)
        logger.debug("intent=%s text=%r", intent, text)
        if intent in CATEGORY_INTENTS:
            return intent, self._reply_category(intent)
        return intent, self._handlers[intent](text, cart)

    def _reply_search(self, text: str, cart: Sequence[CartItem]) -> ChatMessage:
        # The whole message is the query; only a bounded slice is attached.
        matches = self._catalog.search(query=text)
        return _bot_message(
            SEARCH_REPLY.format(count=len(matches)),
            products=matches[:SEARCH_RESULT_LIMIT],
            actions=[
                ChatAction(type="search", label="Refine Search", data={"query": text}),
                ChatAction(type="filter", label="Apply Filters"),
            ],
        )

    def _reply_category(self, intent: str) -> ChatMessage:
        target = CATEGORY_INTENTS[intent]
        products = self._catalog.by_category(target.category, target.subcategory)
        return _bot_message(target.reply, products=products[:CATEGORY_RESULT_LIMIT])

    def _reply_cart(self, text: str, cart: Sequence[CartItem]) -> ChatMessage:
        if not cart:
            return _bot_message(EMPTY_CART_REPLY)
        content = CART_SUMMARY_REPLY.format(
            count=item_count(cart),
            total=format_price(total_price(cart)),
        )
        return _bot_message(content, actions=[ChatAction(type="checkout", label="Proceed to Checkout")])

    def _reply_help(self, text: str, cart: Sequence[CartItem]) -> ChatMessage:
        return _bot_message(HELP_REPLY)

    def _reply_fallback(self, text: str, cart: Sequence[CartItem]) -> ChatMessage:
        return _bot_message(FALLBACK_REPLY)


def _bot_message(
    content: str,
    products: Optional[List[Product]] = None,
    actions: Optional[List[ChatAction]] = None,
) -> ChatMessage:
    return ChatMessage(
        content=content,
        type="bot",
        products=list(products or []),
        actions=list(actions or []),
    )
