"""Unit tests for card number generation and masking"""

from debit_gateway.domain.card_numbers import generate_card_number, mask_card_number


def test_mask_sixteen_digit_number():
    assert mask_card_number("1234567812345678") == "****-****-****-5678"


def test_mask_short_number_passes_through():
    """Numbers that are not 16 digits are returned unmasked"""
    assert mask_card_number("12345678") == "12345678"


def test_mask_non_numeric_passes_through():
    assert mask_card_number("1234-5678-1234-5") == "1234-5678-1234-5"


def test_generate_card_number_is_sixteen_digits():
    for _ in range(50):
        number = generate_card_number()
        assert len(number) == 16
        assert number.isdigit()


def test_generated_number_masks_to_last_four():
    number = generate_card_number()
    masked = mask_card_number(number)
    assert masked.startswith("****-****-****-")
    assert masked.endswith(number[-4:])
