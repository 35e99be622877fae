"""
Shared helpers for the finance engine: ids, timestamps, rounding, formatting and the API client.
"""
import math
import os
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("FINANCE_API_BASE_URL", "http://localhost:8000")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ID_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Return a short unique id: base36 milliseconds plus a random suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"{_to_base36(int(time.time() * 1000))}-{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def format_inr(amount: float) -> str:
    """Format an amount as whole rupees with Indian digit grouping, e.g. ₹1,23,456."""
    rounded = round_half_up(abs(amount))
    sign = "-" if amount < 0 and rounded else ""
    digits = str(rounded)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"


def create_api_client(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 30.0,
) -> httpx.AsyncClient:
    """
    Create the HTTP client used to reach the finance API.

    Args:
        base_url: API root; defaults to FINANCE_API_BASE_URL
        transport: Optional transport override (tests use httpx.MockTransport)
        timeout: Request timeout in seconds
    """
    return httpx.AsyncClient(
        base_url=base_url or API_BASE_URL,
        transport=transport,
        timeout=timeout,
    )
