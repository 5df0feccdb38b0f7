"""Testes dos normalizadores determinísticos do checkout."""

from __future__ import annotations

import pytest

from vnova_voice.domain.checkout import normalizers


class TestCardNumber:
    def test_sixteen_digits_grouped_in_blocks_of_four(self) -> None:
        check = normalizers.normalize_card_number("4242424242424242")

        assert check.ok
        assert check.value == "4242 4242 4242 4242"

    def test_spoken_with_separators(self) -> None:
        check = normalizers.normalize_card_number("4242-4242 4242.4242")

        assert check.value == "4242 4242 4242 4242"

    def test_twelve_digits_rejected_with_reprompt(self) -> None:
        check = normalizers.normalize_card_number("424242424242")

        assert not check.ok
        assert check.reprompt == "I need the full card number. Please say all 16 digits."


class TestExpiry:
    @pytest.mark.parametrize(
        ("spoken", "expected"),
        [
            ("9 2026", "09/26"),
            ("expires 12/27", "12/27"),
            ("0926", "09/26"),
            ("month 3 year 29", "03/29"),
        ],
    )
    def test_reformats_two_numbers(self, spoken: str, expected: str) -> None:
        assert normalizers.normalize_expiry(spoken).value == expected

    def test_single_number_rejected(self) -> None:
        check = normalizers.normalize_expiry("september")

        assert not check.ok
        assert check.reprompt

    def test_invalid_month_rejected(self) -> None:
        assert not normalizers.normalize_expiry("13 2026").ok


class TestPhoneAndCvv:
    def test_phone_strips_non_digits(self) -> None:
        assert normalizers.normalize_phone("(555) 123-4567").value == "5551234567"

    def test_short_phone_reprompts(self) -> None:
        check = normalizers.normalize_phone("555 1234")

        assert check.reprompt == "I didn't catch that. Please say your phone number again."

    @pytest.mark.parametrize("spoken", ["123", "1234", "it's 9 8 7"])
    def test_cvv_accepts_three_or_four_digits(self, spoken: str) -> None:
        assert normalizers.normalize_cvv(spoken).ok

    def test_cvv_rejects_two_digits(self) -> None:
        check = normalizers.normalize_cvv("12")

        assert check.reprompt == "The CVV should be 3 or 4 digits. Please try again."


class TestEmail:
    def test_spoken_email(self) -> None:
        assert normalizers.normalize_email("John at Example dot com").value == "john@example.com"

    def test_typed_email_kept(self) -> None:
        assert normalizers.normalize_email("jane.doe@mail.co").value == "jane.doe@mail.co"

    def test_invalid_email_reprompts(self) -> None:
        check = normalizers.normalize_email("john example")

        assert not check.ok
        assert check.reprompt


class TestText:
    def test_blank_text_reprompts_with_label(self) -> None:
        check = normalizers.normalize_text("   ", "address")

        assert check.reprompt == "I couldn't understand your address. Could you please repeat it?"

    def test_collapses_whitespace(self) -> None:
        assert normalizers.normalize_text(" 12   Main  St ", "address").value == "12 Main St"
