"""
Human-facing identifiers: client codes and document numbers.
"""

import re
import secrets
from datetime import datetime, timezone

_ALNUM = re.compile(r"[^A-Z0-9]")


def client_code_prefix(company_name: str) -> str:
    letters = _ALNUM.sub("", (company_name or "").upper())
    return (letters[:3] or "CLI").ljust(3, "X")


def make_client_code(company_name: str, sequence: int) -> str:
    """`ACM0007` for the seventh company whose name starts with "Acm"."""
    return f"{client_code_prefix(company_name)}{sequence:04d}"


def document_number(prefix: str, now: datetime | None = None) -> str:
    """`CI-20250314-7F3A` style numbers for orders, requests and shipments."""
    now = now or datetime.now(timezone.utc)
    return f"{prefix}-{now:%Y%m%d}-{secrets.token_hex(2).upper()}"


ORDER_PREFIX = "ORD"
CHECK_IN_PREFIX = "CI"
CHECK_OUT_PREFIX = "CO"
SHIPMENT_PREFIX = "SHP"
DELIVERY_PREFIX = "DLV"
