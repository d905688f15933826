from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .utils import new_id, utc_now


class Product(BaseModel):
    """Catalog record; immutable once the catalog is loaded."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    category: str
    subcategory: str = ""
    brand: str = ""
    image_url: str = ""
    images: List[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    in_stock: bool = True
    stock_count: int = Field(default=0, ge=0)
    specifications: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    discount: Optional[float] = Field(default=None, ge=0, le=100)

    @model_validator(mode="after")
    def check_original_price(self) -> "Product":
        if self.original_price is not None and self.original_price < self.price:
            raise ValueError("original_price must not be below price")
        return self


class CartItem(BaseModel):
    """A product line in a session cart."""
    product: Product
    quantity: int = Field(..., ge=1)


class ChatAction(BaseModel):
    """Suggested follow-up attached to a bot message."""
    type: Literal["view_product", "add_to_cart", "filter", "search", "checkout"]
    label: str
    data: Optional[Dict[str, Any]] = None


class ChatMessage(BaseModel):
    """Single chat turn from the user or the assistant."""
    id: str = Field(default_factory=new_id)
    content: str
    type: Literal["user", "bot"]
    timestamp: datetime = Field(default_factory=utc_now)
    products: List[Product] = Field(default_factory=list)
    actions: List[ChatAction] = Field(default_factory=list)


class Session(BaseModel):
    """Per-user container of chat history and cart state."""
    id: str = Field(default_factory=new_id)
    user_id: str
    messages: List[ChatMessage] = Field(default_factory=list)
    cart: List[CartItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def touch(self) -> None:
        """Purpose: Advance updated_at to now without ever moving it backwards.
        Inputs/Outputs: No inputs; no return value.
        Side Effects / State: Mutates updated_at.
        Failure Modes: None; a clock step backwards keeps the previous value.
        Testing Notes: Call twice and verify updated_at is non-decreasing.
        """
        self.updated_at = max(self.updated_at, utc_now())


class SessionSummary(BaseModel):
    """Lightweight session summary for listing."""
    session_id: str
    user_id: str
    title: str
    message_count: int
    updated_at: datetime


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str
    name: str
    avatar: Optional[str] = None


class CartView(BaseModel):
    """Cart contents with derived totals."""
    items: List[CartItem]
    item_count: int
    total_price: float


class ChatExchange(BaseModel):
    """Result of processing one user message."""
    user_message: ChatMessage
    bot_response: ChatMessage


class ApiResponse(BaseModel):
    """Envelope returned by every API route."""
    success: bool = True
    data: Optional[Any] = None
    error: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str = ""


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str = ""


class CreateSessionRequest(BaseModel):
    user_id: str


class ChatRequest(BaseModel):
    """Request payload for the chat API."""
    session_id: str
    message: str


class CartAddRequest(BaseModel):
    session_id: str
    product_id: str
    quantity: int = Field(default=1, ge=1)


class CartUpdateRequest(BaseModel):
    session_id: str
    product_id: str
    quantity: int


class CartRemoveRequest(BaseModel):
    session_id: str
    product_id: str
