"""Form validation and payload building.

Validation is loose: required fields, positive amounts and the
closed vocabularies. Everything else is left to the backend's constraints.
Every check raises ``ValueError`` with a message meant for a toast.
"""
import io
import math
from datetime import date

from PIL import Image, UnidentifiedImageError

from database import (
    APPROVAL_STATUSES, EXPENSE_CATEGORIES, FUNDING_TYPES,
    PAYMENT_METHODS, PROGRAM_STATUSES,
)

REQUIRED_MSG = "Please fill in all required fields"

AVATAR_FORMATS = {
    "PNG": ("png", "image/png"),
    "JPEG": ("jpg", "image/jpeg"),
    "GIF": ("gif", "image/gif"),
    "WEBP": ("webp", "image/webp"),
}
AVATAR_MAX_BYTES = 2 * 1024 * 1024


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(raw, allow_zero: bool = False) -> float:
    if _blank(raw):
        raise ValueError(REQUIRED_MSG)
    try:
        amount = float(str(raw).replace(",", "").replace("$", "").strip())
    except ValueError:
        raise ValueError(f"Invalid amount: {raw}")
    if not math.isfinite(amount):
        raise ValueError(f"Invalid amount: {raw}")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError("Amount must be greater than zero" if not allow_zero else "Amount cannot be negative")
    return round(amount, 2)


def _iso(d) -> str | None:
    if d is None or d == "":
        return None
    if isinstance(d, date):
        return d.strftime("%Y-%m-%d")
    return str(d)


def program_payload(name, budget, description="", start_date=None, end_date=None, status="active") -> dict:
    if _blank(name) or _blank(budget):
        raise ValueError(REQUIRED_MSG)
    amount = parse_amount(budget, allow_zero=True)
    if status not in PROGRAM_STATUSES:
        raise ValueError(f"Unknown status: {status}")
    if start_date and end_date and _iso(end_date) < _iso(start_date):
        raise ValueError("End date cannot be before start date")
    return {
        "name": name.strip(),
        "description": description.strip() if not _blank(description) else None,
        "budget": amount,
        "start_date": _iso(start_date),
        "end_date": _iso(end_date),
        "status": status,
    }


def expense_payload(amount, description, payee, category="Equipment", payment_method="Credit Card",
                    program_id=None, status="pending") -> dict:
    if _blank(amount) or _blank(description) or _blank(payee):
        raise ValueError(REQUIRED_MSG)
    value = parse_amount(amount)
    if category not in EXPENSE_CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    if payment_method not in PAYMENT_METHODS:
        raise ValueError(f"Unknown payment method: {payment_method}")
    if status not in APPROVAL_STATUSES:
        raise ValueError(f"Unknown status: {status}")
    return {
        "amount": value,
        "description": description.strip(),
        "payee": payee.strip(),
        "category": category,
        "payment_method": payment_method,
        "program_id": program_id or None,
        "status": status,
    }


def funding_payload(source, amount, funding_type="Grant", contact_name="", contact_email="",
                    program_id=None) -> dict:
    if _blank(source) or _blank(amount):
        raise ValueError(REQUIRED_MSG)
    value = parse_amount(amount)
    if funding_type not in FUNDING_TYPES:
        raise ValueError(f"Unknown funding type: {funding_type}")
    email = contact_email.strip() if not _blank(contact_email) else None
    if email and "@" not in email:
        raise ValueError(f"Invalid contact email: {email}")
    return {
        "source": source.strip(),
        "amount": value,
        "type": funding_type,
        "contact_name": contact_name.strip() if not _blank(contact_name) else None,
        "contact_email": email,
        # "none" is the select box sentinel for an unattributed row
        "program_id": program_id if program_id and program_id != "none" else None,
    }


def profile_payload(display_name, dark: bool) -> dict:
    return {
        "display_name": (display_name or "").strip(),
        "theme_preference": "dark" if dark else "light",
    }


def avatar_format(data: bytes) -> tuple[str, str]:
    """Return ``(extension, content_type)`` for an uploaded avatar image."""
    if not data:
        raise ValueError("🖼️ Empty file.")
    if len(data) > AVATAR_MAX_BYTES:
        raise ValueError("🖼️ Image too large (2 MB max).")
    try:
        image = Image.open(io.BytesIO(data))
        image.verify()
    except (UnidentifiedImageError, OSError):
        raise ValueError("🖼️ Unreadable image.")
    fmt = AVATAR_FORMATS.get(image.format or "")
    if fmt is None:
        raise ValueError(f"🖼️ Unsupported image format: {image.format}")
    return fmt
