"""Testes da recuperação de JSON em respostas livres do oráculo."""

from __future__ import annotations

from vnova_voice.ai.contracts import NavigationPayload, ProductActionPayload
from vnova_voice.ai.oracle_parser import find_json_fragment, parse_json_payload, parse_model
from vnova_voice.domain.enums import ProductAction


class TestFindJsonFragment:
    def test_markdown_fenced_object(self) -> None:
        text = 'Sure!\n```json\n{"route": "/cart"}\n```'

        assert find_json_fragment(text) == '{"route": "/cart"}'

    def test_braces_inside_strings_are_ignored(self) -> None:
        text = 'result: {"note": "use } carefully", "ok": true} trailing'

        assert parse_json_payload(text) == {"note": "use } carefully", "ok": True}

    def test_array_payload(self) -> None:
        assert parse_json_payload("keys: [\"maxPrice\", \"size\"]") == ["maxPrice", "size"]

    def test_skips_unparsable_candidate(self) -> None:
        text = "{not json} then {\"a\": 1}"

        assert parse_json_payload(text) == {"a": 1}

    def test_no_json_returns_none(self) -> None:
        assert parse_json_payload("navigation") is None
        assert parse_json_payload("") is None
        assert parse_json_payload(None) is None


class TestParseModel:
    def test_validates_against_contract(self) -> None:
        payload = parse_model('{"route": null, "category": "Yoga", "productId": null}', NavigationPayload)

        assert payload is not None
        assert payload.category == "Yoga"

    def test_action_alias_coercion(self) -> None:
        payload = parse_model('{"action": "add_to_cart", "size": "M"}', ProductActionPayload)

        assert payload is not None
        assert payload.action == ProductAction.ADD_TO_CART

    def test_contract_mismatch_returns_none(self) -> None:
        assert parse_model('{"action": "dance"}', ProductActionPayload) is None

    def test_non_object_returns_none(self) -> None:
        assert parse_model("[1, 2]", NavigationPayload) is None
