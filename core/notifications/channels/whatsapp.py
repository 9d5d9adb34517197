"""WhatsApp Cloud API delivery channel (template messages)."""

import logging
import os
import re

import httpx

from core.config import get_default_country_code, get_external_call_timeout

logger = logging.getLogger(__name__)

WHATSAPP_API_URL = "https://graph.facebook.com"
WHATSAPP_LANGUAGE_CODE = "en"

NON_DIGITS = re.compile(r"\D")


def is_whatsapp_configured() -> bool:
    return bool(
        os.environ.get("WHATSAPP_PHONE_NUMBER_ID")
        and os.environ.get("WHATSAPP_ACCESS_TOKEN")
    )


def format_phone(phone: str | int | None, country_code: str | None = None) -> str | None:
    """
    Normalize a phone number to the country-coded digits WhatsApp expects.

    "98765 43210" -> "919876543210" (10-digit local numbers get the default
    country code), "098765 43210" -> "919876543210" (trunk 0 replaced).

    Returns:
        Digit string, or None if it isn't 10-15 digits after normalizing
    """
    if phone is None:
        return None
    digits = NON_DIGITS.sub("", str(phone))
    country_code = country_code or get_default_country_code()

    if len(digits) == 10:
        digits = country_code + digits
    elif digits.startswith("0"):
        digits = country_code + digits[1:]

    if not 10 <= len(digits) <= 15:
        return None
    return digits


async def send_whatsapp_template(
    to_phone: str,
    template_name: str,
    params: list[str],
) -> bool:
    """
    Send a pre-approved WhatsApp template message.

    Args:
        to_phone: Normalized phone number (see format_phone)
        template_name: Approved template name
        params: Ordered body parameters

    Returns:
        True if the API accepted the message
    """
    phone_number_id = os.environ.get("WHATSAPP_PHONE_NUMBER_ID")
    access_token = os.environ.get("WHATSAPP_ACCESS_TOKEN")
    if not phone_number_id or not access_token:
        logger.warning("WhatsApp not configured, skipping message")
        return False

    api_version = os.environ.get("WHATSAPP_API_VERSION", "17.0")
    payload = {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to_phone,
        "type": "template",
        "template": {
            "name": template_name,
            "language": {"code": WHATSAPP_LANGUAGE_CODE},
            "components": [
                {
                    "type": "body",
                    # Cloud API rejects empty text parameters
                    "parameters": [
                        {"type": "text", "text": param or "-"} for param in params
                    ],
                }
            ],
        },
    }

    async with httpx.AsyncClient(timeout=get_external_call_timeout()) as client:
        response = await client.post(
            f"{WHATSAPP_API_URL}/v{api_version}/{phone_number_id}/messages",
            headers={"Authorization": f"Bearer {access_token}"},
            json=payload,
        )

    if response.status_code == 429:
        response.raise_for_status()
    if not response.is_success:
        logger.error(
            f"WhatsApp template {template_name} to {to_phone} failed: "
            f"HTTP {response.status_code} {response.text}"
        )
        return False
    return True
