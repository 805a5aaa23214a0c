from __future__ import annotations

import json

import pytest

from idsync.domain.model import AttributeSet
from idsync.domain.payload import KNOWN_KEYS, parse_payload, validate_payload


def test_parse_json_object_maps_aliases_and_keeps_residual_keys() -> None:
    result = parse_payload('{"name":"Jane Doe","email":"jane@x.com","dept":"Eng"}')

    assert result == AttributeSet(
        name="Jane Doe", email="jane@x.com", additional_data={"dept": "Eng"}
    )


@pytest.mark.parametrize(
    "document",
    [
        {"displayName": "A", "emailAddress": "a@b.co", "mobile": "555", "userId": "u1"},
        {"fullName": "A", "phoneNumber": "1", "identifier": "x", "team": "ops", "level": 3},
        {"name": "A", "id": 7, "nested": {"k": [1, 2]}, "flag": False},
    ],
)
def test_additional_data_holds_exactly_the_unaliased_keys(document: dict[str, object]) -> None:
    result = parse_payload(json.dumps(document))

    expected = {key: value for key, value in document.items() if key not in KNOWN_KEYS}
    assert result.additional_data == (expected or None)


def test_additional_data_is_absent_when_every_key_is_aliased() -> None:
    result = parse_payload('{"name":"Jane","email":"jane@x.com","id":"abc"}')

    assert result.additional_data is None
    assert "additionalData" not in result.to_dict()


def test_alias_precedence_takes_first_truthy_value() -> None:
    result = parse_payload('{"name":"","displayName":"Display","fullName":"Full"}')

    assert result.name == "Display"


def test_numeric_identifier_is_rendered_as_text() -> None:
    assert parse_payload('{"id": 42, "name": "N"}').identifier == "42"


def test_non_scalar_alias_values_are_not_mapped() -> None:
    result = parse_payload('{"name": {"first": "Jane"}, "email": "jane@x.com"}')

    assert result.name is None
    assert result.email == "jane@x.com"


def test_identity_prefix_with_name_and_email() -> None:
    result = parse_payload("identity:Jane Doe <jane@example.com>")

    assert result == AttributeSet(name="Jane Doe", email="jane@example.com")


def test_user_prefix_with_bare_email() -> None:
    assert parse_payload("user:  john@example.com ") == AttributeSet(email="john@example.com")


def test_plain_email() -> None:
    assert parse_payload("john.doe@example.com") == AttributeSet(email="john.doe@example.com")


def test_blank_display_name_is_dropped() -> None:
    assert parse_payload("   <jane@example.com>") == AttributeSet(email="jane@example.com")


def test_unrecognised_string_becomes_identifier() -> None:
    assert parse_payload("ABC-123-XYZ") == AttributeSet(identifier="ABC-123-XYZ")


def test_json_array_falls_back_to_string_heuristics() -> None:
    assert parse_payload('["a@b.co"]') == AttributeSet(email='["a@b.co"]')


def test_nan_literal_is_not_treated_as_json() -> None:
    assert parse_payload('{"name": NaN}') == AttributeSet(identifier='{"name": NaN}')


def test_parse_never_raises_on_deeply_nested_input() -> None:
    raw = "[" * 100_000

    assert parse_payload(raw) == AttributeSet(identifier=raw)


@pytest.mark.parametrize(
    ("raw", "error"),
    [
        ("", "Payload is empty"),
        ("    ", "Payload is empty"),
        ("short", "Payload appears to be too short"),
        ("just some text", "Payload does not contain valid identity data"),
        ('{"email":"a@b.co"}', "Payload does not contain valid identity data"),
    ],
)
def test_validate_rejects(raw: str, error: str) -> None:
    check = validate_payload(raw)

    assert check.is_valid is False
    assert check.error == error


@pytest.mark.parametrize(
    "raw",
    [
        "john@example.com",
        "identity:jane",
        "prefix user:abc",
        '{"identifier":"abc-123"}',
        '{"name":"Jane Doe"}',
    ],
)
def test_validate_accepts(raw: str) -> None:
    check = validate_payload(raw)

    assert check.is_valid is True
    assert check.error is None
