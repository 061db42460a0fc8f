"""Card number generation and display masking"""

import secrets

CARD_NUMBER_LENGTH = 16
MASK_PREFIX = "****-****-****-"


def generate_card_number() -> str:
    """Generate a random 16-digit card number (zero padded)"""
    return f"{secrets.randbelow(10 ** CARD_NUMBER_LENGTH):0{CARD_NUMBER_LENGTH}d}"


def mask_card_number(card_number: str) -> str:
    """
    Mask a card number for display.

    Only exact 16-digit numbers are masked; anything else is returned
    unchanged.

    Example:
        "1234567812345678" → "****-****-****-5678"
    """
    if len(card_number) == CARD_NUMBER_LENGTH and card_number.isdigit():
        return MASK_PREFIX + card_number[-4:]
    return card_number
