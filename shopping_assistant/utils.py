from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable


def new_id() -> str:
    """Return a fresh opaque identifier for users, sessions, and messages."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def contains_any(text: str, terms: Iterable[str]) -> bool:
    """Purpose: Check whether any keyword occurs as a substring of text.
    Inputs/Outputs: Input is lowercased text and keyword terms; output is a bool.
    Side Effects / State: None; pure function.
    Dependencies: Used by intent classification.
    Failure Modes: Empty terms always return False.
    Testing Notes: "smartphone" contains "phone"; substring hits are intended.
    """
    return any(term in text for term in terms)


def format_price(amount: float) -> str:
    """Format a currency amount with a dollar sign and two decimals."""
    return f"${amount:.2f}"
