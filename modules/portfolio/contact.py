# modules/portfolio/contact.py
"""Contact form -> WhatsApp deep link. Nothing is stored or sent server-side."""

import re
from typing import Dict, Optional, Tuple
from urllib.parse import quote

CONTACT_FIELDS = (
    ("name", "Name"),
    ("email", "Email"),
    ("subject", "Subject"),
    ("message", "Message"),
)

MESSAGE_TEMPLATE = (
    "Hello, my name is {name} ({email}).\n\n"
    "Subject: {subject}\n\n"
    "{message}"
)


def validate_contact(form) -> Tuple[Dict[str, str], Dict[str, str]]:
    values, errors = {}, {}
    for name, label in CONTACT_FIELDS:
        raw = (form or {}).get(name)
        value = raw.strip() if isinstance(raw, str) else ""
        if not value:
            errors[name] = f"{label} is required"
        values[name] = value
    return values, errors


def normalize_phone(phone: Optional[str]) -> str:
    """'+62 812-3456-7890' -> '+6281234567890'"""
    raw = (phone or "").strip()
    digits = re.sub(r"\D", "", raw)
    if not digits:
        return ""
    return f"+{digits}" if raw.startswith("+") else digits


def format_message(values: Dict[str, str]) -> str:
    return MESSAGE_TEMPLATE.format(**values)


def build_whatsapp_link(phone: Optional[str], values: Dict[str, str]) -> Optional[str]:
    """None when no usable phone number is configured."""
    number = normalize_phone(phone).lstrip("+")
    if not number:
        return None
    return f"https://wa.me/{number}?text={quote(format_message(values), safe='')}"
