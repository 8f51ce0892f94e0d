from __future__ import annotations

import re
from decimal import Decimal
from urllib.parse import quote

from ..core.constants import DEFAULT_CURRENCY_LABEL

WA_ME_BASE = "https://wa.me"


def digits_only(number: str) -> str:
    return re.sub(r"\D", "", str(number), flags=re.ASCII)


def format_amount(amount: Decimal) -> str:
    """12000.00 -> '12000', 99.50 -> '99.50'."""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal(1)))
    return f"{amount:.2f}"


def build_reminder_message(name: str, balance: Decimal, *, currency: str = DEFAULT_CURRENCY_LABEL) -> str:
    return (
        f"Dear Parent, this is a reminder that {name} has pending fees of {currency}{format_amount(balance)}. "
        "Please arrange to clear the dues at your earliest convenience. Thank you."
    )


def build_whatsapp_link(phone: str, message: str) -> str:
    return f"{WA_ME_BASE}/{digits_only(phone)}?text={quote(message, safe='')}"
