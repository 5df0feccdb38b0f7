"""Validação e normalização determinística dos campos do checkout.

Funções puras: texto → FieldCheck. Nunca lançam exceção.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_NON_DIGIT = re.compile(r"[^0-9]")
_NUMBER = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PHONE_DIGITS = 10
MIN_CARD_DIGITS = 13
MIN_CVV_DIGITS = 3
MAX_CVV_DIGITS = 4


@dataclass(frozen=True, slots=True)
class FieldCheck:
    """Resultado da validação: value normalizado ou reprompt para repetir."""

    value: str | None = None
    reprompt: str | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def digits_only(text: str) -> str:
    """Remove tudo que não for dígito."""
    return _NON_DIGIT.sub("", text)


def collapse_spaces(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def title_words(text: str) -> str:
    """Capitaliza cada palavra ("john smith" → "John Smith")."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def normalize_text(value: str, label: str) -> FieldCheck:
    """Campos livres (nome, endereço, nome no cartão): só exige conteúdo."""
    cleaned = collapse_spaces(value)
    if not cleaned:
        return FieldCheck(reprompt=f"I couldn't understand your {label}. Could you please repeat it?")
    return FieldCheck(value=cleaned)


def normalize_email(value: str) -> FieldCheck:
    """Aceita e-mail digitado ou falado ("john at mail dot com")."""
    candidate = value.strip()
    if "@" not in candidate:
        candidate = re.sub(r"\s+at\s+", "@", candidate, flags=re.IGNORECASE)
    candidate = re.sub(r"\s+dot\s+", ".", candidate, flags=re.IGNORECASE)
    candidate = _WHITESPACE.sub("", candidate).lower().rstrip(".")
    if not _EMAIL.match(candidate):
        return FieldCheck(reprompt="I couldn't catch a valid email. Please say it again, like john at example dot com.")
    return FieldCheck(value=candidate)


def normalize_phone(value: str) -> FieldCheck:
    digits = digits_only(value)
    if len(digits) < MIN_PHONE_DIGITS:
        return FieldCheck(reprompt="I didn't catch that. Please say your phone number again.")
    return FieldCheck(value=digits)


def group_card_number(digits: str) -> str:
    """Reexibe o número em blocos de 4 ("4242 4242 4242 4242")."""
    return " ".join(digits[i : i + 4] for i in range(0, len(digits), 4))


def normalize_card_number(value: str) -> FieldCheck:
    digits = digits_only(value)
    if len(digits) < MIN_CARD_DIGITS:
        return FieldCheck(reprompt="I need the full card number. Please say all 16 digits.")
    return FieldCheck(value=group_card_number(digits))


def normalize_expiry(value: str) -> FieldCheck:
    """Localiza dois números embutidos e reformata como MM/YY.

    "9 2026" → "09/26"; "12/27" → "12/27".
    """
    numbers = _NUMBER.findall(value)
    if len(numbers) == 1 and len(numbers[0]) == 4:
        # "0926" falado junto
        numbers = [numbers[0][:2], numbers[0][2:]]
    if len(numbers) < 2:
        return FieldCheck(reprompt="I need the month and year of the expiry date, like 09 26.")
    month, year = numbers[0], numbers[1]
    if not 1 <= int(month) <= 12:
        return FieldCheck(reprompt="That month doesn't look right. Please say the expiry month and year again.")
    if len(year) == 4:
        year = year[2:]
    return FieldCheck(value=f"{int(month):02d}/{year.zfill(2)[-2:]}")


def normalize_cvv(value: str) -> FieldCheck:
    digits = digits_only(value)
    if not MIN_CVV_DIGITS <= len(digits) <= MAX_CVV_DIGITS:
        return FieldCheck(reprompt="The CVV should be 3 or 4 digits. Please try again.")
    return FieldCheck(value=digits)
