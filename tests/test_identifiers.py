"""Tests for parse_identifier: QR payloads, links and bare codes."""

import pytest

from cardlink.domain import InvalidIdentifier, ShareCodeRef, UsernameRef, parse_identifier


@pytest.mark.parametrize(
    "text",
    [
        "a1b2c3d4",
        "A1B2C3D4",
        "/contact/a1b2c3d4",
        "https://app.example/contact/A1b2C3d4",
        "/public/a1b2c3d4",
        "https://app.example/public/a1b2c3d4",
        "https://app.example/public/a1b2c3d4?utm=qr#top",
        "  a1b2c3d4\n",
    ],
)
def test_hex_code_is_share_code_under_any_wrapping(text):
    assert parse_identifier(text) == ShareCodeRef(value="a1b2c3d4")


def test_public_path_non_hex_token_is_username():
    ref = parse_identifier("https://app.example/public/jane.doe?ref=qr")
    assert ref == UsernameRef(value="jane.doe")


def test_username_keeps_case():
    ref = parse_identifier("/public/JaneDoe")
    assert isinstance(ref, UsernameRef)
    assert ref.value == "JaneDoe"


def test_public_token_stops_at_slash():
    assert parse_identifier("https://app.example/public/jane/extra") == UsernameRef(value="jane")


def test_contact_path_takes_first_eight_hex():
    assert parse_identifier("https://app.example/contact/deadbeef99") == ShareCodeRef(value="deadbeef")


def test_code_embedded_in_noise_is_found():
    assert parse_identifier("CODE:[0f1e2d3c]") == ShareCodeRef(value="0f1e2d3c")


def test_kind_discriminator():
    assert parse_identifier("a1b2c3d4").kind == "share_code"
    assert parse_identifier("/public/jane").kind == "username"
    assert parse_identifier("nothing here").kind == "invalid"


@pytest.mark.parametrize("text", ["", "   ", None, "hello world", "abc123", "/public/"])
def test_unrecognized_text_is_invalid(text):
    assert isinstance(parse_identifier(text), InvalidIdentifier)


def test_deterministic():
    text = "https://app.example/public/Jane_Doe"
    assert parse_identifier(text) == parse_identifier(text)


def test_path_markers_are_case_sensitive():
    assert isinstance(parse_identifier("/Public/Bobby"), InvalidIdentifier)
    assert isinstance(parse_identifier("/CONTACT/xyz"), InvalidIdentifier)
    assert isinstance(parse_identifier("HTTPS://app.example/Public/Bobby"), InvalidIdentifier)
