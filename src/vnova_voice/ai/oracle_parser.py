"""Recuperação de JSON em respostas livres do oráculo.

O oráculo não garante schema: a resposta pode vir cercada de markdown
(```json ... ```) ou comentário. Falha de parse significa "sem resultado
estruturado", nunca erro fatal.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from vnova_voice.observability.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_OPENERS = {"{": "}", "[": "]"}


def _balanced_end(text: str, start: int) -> int | None:
    """Índice do fechamento que equilibra text[start], respeitando strings."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in ("}", "]"):
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return index
    return None


def find_json_fragment(text: str) -> str | None:
    """Retorna o primeiro objeto/array JSON balanceado e parseável do texto."""
    for start, char in enumerate(text):
        if char not in _OPENERS:
            continue
        end = _balanced_end(text, start)
        if end is None:
            continue
        candidate = text[start : end + 1]
        try:
            json.loads(candidate)
        except ValueError:
            continue
        return candidate
    return None


def parse_json_payload(text: str | None) -> Any | None:
    """Extrai e decodifica o JSON da resposta; None se não houver."""
    if not text:
        return None
    fragment = find_json_fragment(text)
    if fragment is None:
        logger.debug("oracle_json_not_found", extra={"response_length": len(text)})
        return None
    return json.loads(fragment)


def parse_model(text: str | None, model: type[ModelT]) -> ModelT | None:
    """Valida o JSON extraído contra um contrato Pydantic."""
    payload = parse_json_payload(text)
    if not isinstance(payload, dict):
        return None
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "oracle_contract_mismatch",
            extra={"contract": model.__name__, "errors": exc.error_count()},
        )
        return None
