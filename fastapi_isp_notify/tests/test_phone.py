import pytest

from app.core.phone import mask_phone, normalize_phone, strip_suffix, to_address


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("081234567890", "6281234567890"),
        ("+62 812-3456-7890", "6281234567890"),
        ("6281234567890", "6281234567890"),
        ("81234567890", "6281234567890"),
        ("(0812) 3456 7890", "6281234567890"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", "+-"])
def test_normalize_phone_rejects_inputs_without_digits(raw):
    assert normalize_phone(raw) is None


def test_to_address_appends_suffix():
    assert to_address("0812 3456 7890", "@s.whatsapp.net") == "6281234567890@s.whatsapp.net"
    assert to_address("0812 3456 7890") == "6281234567890"
    assert to_address("n/a", "@s.whatsapp.net") is None


def test_strip_suffix():
    assert strip_suffix("6281234567890@s.whatsapp.net") == "6281234567890"
    assert strip_suffix("6281234567890") == "6281234567890"


def test_mask_phone():
    assert mask_phone("6281234567890@s.whatsapp.net") == "6281****7890"
    assert mask_phone("123") == "****"
    assert mask_phone(None) is None
