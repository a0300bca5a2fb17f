"""
OptiFuel — Simulated M-PESA Gateway
===================================
Stands in for a Daraja STK push. No credentials, no network: the outcome
depends only on the shape of the phone number, after a fixed delay.
"""

import asyncio
import re
from typing import Any, Dict

# =============================================================================
# CONFIGURATION
# =============================================================================
MPESA_CONFIG = {
    "country_prefix": "254",
    "phone_length": 12,
    "simulated_delay_s": 5.0,
    "premium_price": 999,
    "currency": "KES",
}

PHONE_PATTERN = re.compile(r"254[0-9]{9}")
PIN_PATTERN = re.compile(r"[0-9]{4}")


def is_valid_phone_number(phone_number: str) -> bool:
    """Country code 254 followed by exactly nine digits, nothing else."""
    return bool(PHONE_PATTERN.fullmatch(phone_number or ""))


def is_valid_pin(pin: str) -> bool:
    return bool(PIN_PATTERN.fullmatch(pin or ""))


async def initiate_mpesa_payment(phone_number: str, amount: float) -> Dict[str, Any]:
    """
    Simulate sending an STK push for `amount` to `phone_number`.

    Returns:
        {"success": bool, "message": str}
    """
    print(f"💳 Initiating M-PESA payment for {phone_number} with amount {amount}")
    await asyncio.sleep(MPESA_CONFIG["simulated_delay_s"])

    if (phone_number.startswith(MPESA_CONFIG["country_prefix"])
            and len(phone_number) == MPESA_CONFIG["phone_length"]):
        return {"success": True, "message": "STK push sent successfully."}
    return {"success": False, "message": "Invalid phone number for sandbox."}


__all__ = [
    "MPESA_CONFIG",
    "PHONE_PATTERN",
    "is_valid_phone_number",
    "is_valid_pin",
    "initiate_mpesa_payment",
]
