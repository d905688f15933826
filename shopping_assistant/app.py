from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .cart import CartManager, cart_view
from .catalog import CatalogLoader
from .chat_service import ChatOrchestrator
from .config import load_settings
from .errors import NotFoundError, ProductNotFoundError
from .intent_router import IntentRouter
from .models import (
    ApiResponse,
    CartAddRequest,
    CartRemoveRequest,
    CartUpdateRequest,
    ChatRequest,
    CreateSessionRequest,
    LoginRequest,
    RegisterRequest,
)
from .session_store import SessionStore
from .user_store import UserStore

BASE_DIR = Path(__file__).resolve().parent

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

settings = load_settings()

log_level = getattr(logging, settings.log_level, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("shopassist").setLevel(log_level)
logger = logging.getLogger("shopassist.api")

app = FastAPI(title="Shopping Assistant Chat API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

catalog, _ = CatalogLoader(settings.catalog_path).load()
session_store = SessionStore(settings.sessions_path, max_sessions=settings.max_sessions)
user_store = UserStore()
cart_manager = CartManager(catalog)
router = IntentRouter(catalog)
orchestrator = ChatOrchestrator(
    session_store,
    router,
    delay_min=settings.response_delay_min,
    delay_max=settings.response_delay_max,
)


@app.exception_handler(NotFoundError)
def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    """Purpose: Report unresolved sessions/products/cart lines as a failed envelope.
    Inputs/Outputs: Inputs are the request and the raised NotFoundError; output is a
        404 JSONResponse.
    Side Effects / State: Logs the miss.
    Failure Modes: None.
    Testing Notes: Request an unknown session and verify success is false.
    """
    logger.info("%s %s -> %s (%s)", request.method, request.url.path, exc, exc.identifier)
    payload = ApiResponse(success=False, error=str(exc))
    return JSONResponse(status_code=404, content=payload.model_dump(mode="json"))


@app.post("/api/auth/login", response_model=ApiResponse)
def login(request: LoginRequest) -> ApiResponse:
    """Purpose: Log a user in without any credential check.
    Inputs/Outputs: Input is LoginRequest; output wraps {"user": User}.
    Side Effects / State: None.
    Dependencies: Uses UserStore.login.
    Failure Modes: None; login always succeeds.
    Testing Notes: Name is the local part of the email for unregistered users.
    """
    user = user_store.login(request.email)
    return ApiResponse(data={"user": user})


@app.post("/api/auth/register", response_model=ApiResponse)
def register(request: RegisterRequest) -> ApiResponse:
    user = user_store.register(request.name, request.email)
    return ApiResponse(data={"user": user})


@app.get("/api/products/search", response_model=ApiResponse)
def search_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> ApiResponse:
    """Purpose: Search the catalog by text, category, and price range.
    Inputs/Outputs: Optional query parameters; output wraps the product list.
    Side Effects / State: None.
    Dependencies: Uses Catalog.search.
    Failure Modes: Non-numeric price parameters are rejected by FastAPI with 422.
    Testing Notes: Search "LAPTOP" and "laptop" and compare.
    """
    products = catalog.search(query=q, category=category, min_price=min_price, max_price=max_price)
    return ApiResponse(data=products)


# Declared before /api/products/{product_id} so "categories" is not read as an id.
@app.get("/api/products/categories", response_model=ApiResponse)
def list_categories() -> ApiResponse:
    return ApiResponse(data=catalog.distinct_categories())


@app.get("/api/products/{product_id}", response_model=ApiResponse)
def get_product(product_id: str) -> ApiResponse:
    product = catalog.find_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return ApiResponse(data=product)


@app.post("/api/chat/session", response_model=ApiResponse)
def create_session(request: CreateSessionRequest) -> ApiResponse:
    return ApiResponse(data=session_store.create(request.user_id))


@app.get("/api/chat/sessions", response_model=ApiResponse)
def list_sessions(user_id: Optional[str] = None) -> ApiResponse:
    """Purpose: Return session summaries, most recent first.
    Inputs/Outputs: Optional user_id filter; output wraps SessionSummary list.
    Side Effects / State: None.
    Dependencies: Uses SessionStore.list_sessions.
    Failure Modes: None; returns an empty list if no sessions.
    Testing Notes: Create multiple sessions and verify sorting.
    """
    return ApiResponse(data=session_store.list_sessions(user_id))


@app.get("/api/chat/session/{session_id}", response_model=ApiResponse)
def get_session(session_id: str) -> ApiResponse:
    return ApiResponse(data=session_store.get(session_id))


@app.delete("/api/chat/session/{session_id}/messages", response_model=ApiResponse)
def clear_messages(session_id: str) -> ApiResponse:
    return ApiResponse(data=session_store.clear_messages(session_id))


@app.post("/api/chat/message", response_model=ApiResponse)
def chat(request: ChatRequest) -> ApiResponse:
    """Purpose: Handle a chat message and return the user/bot message pair.
    Inputs/Outputs: Input is ChatRequest; output wraps ChatExchange.
    Side Effects / State: Appends both messages to the session.
    Dependencies: Uses ChatOrchestrator.
    Failure Modes: Unknown sessions return 404 before anything is stored.
    If Removed: Core chat functionality is unavailable.
    Testing Notes: Send two messages and verify the session holds four.
    """
    exchange = orchestrator.handle_message(request.session_id, request.message)
    return ApiResponse(data=exchange)


@app.post("/api/cart/add", response_model=ApiResponse)
def add_to_cart(request: CartAddRequest) -> ApiResponse:
    """Purpose: Add a product to a session cart.
    Inputs/Outputs: Input is CartAddRequest; output wraps the CartView.
    Side Effects / State: Mutates and saves the session cart.
    Dependencies: Uses SessionStore and CartManager under the session lock.
    Failure Modes: Unknown session or product returns 404 with the cart unchanged.
    Testing Notes: Add an unknown product id and verify the cart is still empty.
    """
    with session_store.lock(request.session_id):
        session = session_store.get(request.session_id)
        cart_manager.add(session, request.product_id, request.quantity)
        session_store.save(session)
    return ApiResponse(data=cart_view(session.cart))


@app.put("/api/cart/update", response_model=ApiResponse)
def update_cart_item(request: CartUpdateRequest) -> ApiResponse:
    with session_store.lock(request.session_id):
        session = session_store.get(request.session_id)
        cart_manager.update(session, request.product_id, request.quantity)
        session_store.save(session)
    return ApiResponse(data=cart_view(session.cart))


@app.delete("/api/cart/remove", response_model=ApiResponse)
def remove_from_cart(request: CartRemoveRequest) -> ApiResponse:
    with session_store.lock(request.session_id):
        session = session_store.get(request.session_id)
        if cart_manager.remove(session, request.product_id):
            session_store.save(session)
    return ApiResponse(data=cart_view(session.cart))


@app.get("/api/cart/{session_id}", response_model=ApiResponse)
def get_cart(session_id: str) -> ApiResponse:
    session = session_store.get(session_id)
    return ApiResponse(data=cart_view(session.cart))
