from __future__ import annotations

import re
from urllib.parse import quote

from portfolio.domain.errors import ValidationError

WHATSAPP_BASE_URL = "https://wa.me/"

# characters encodeURIComponent leaves alone, on top of quote()'s defaults
_URI_COMPONENT_SAFE = "!*'()"


class ContactService:
    """Builds pre-filled WhatsApp deep links for the contact and pricing sections."""

    @staticmethod
    def normalize_number(number: str | None) -> str:
        return re.sub(r"[^0-9]", "", number or "")

    @staticmethod
    def compose_contact_message(name: str, email: str, body: str) -> str:
        return f"Halo, nama saya {name}.\n\nEmail: {email}\n\nPesan:\n{body}"

    @staticmethod
    def compose_order_message(package_name: str) -> str:
        return (
            f"Halo, saya tertarik untuk memesan paket {package_name} untuk pembuatan website. "
            "Bisa tolong jelaskan lebih lanjut?"
        )

    @staticmethod
    def build_whatsapp_link(number: str | None, message: str | None = None) -> str:
        digits = ContactService.normalize_number(number)
        if not digits:
            raise ValidationError("No WhatsApp number configured")
        url = f"{WHATSAPP_BASE_URL}{digits}"
        if message is not None:
            url += "?text=" + quote(message, safe=_URI_COMPONENT_SAFE)
        return url
