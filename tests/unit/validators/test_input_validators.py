from __future__ import annotations

from rfpdesk.utils.validators import extract_email_address, normalize_email, optional_text, sanitize_text


def test_extract_email_address_reads_angle_brackets():
    assert extract_email_address("Jane Doe <Sales@Acme.example.com>") == "sales@acme.example.com"


def test_extract_email_address_falls_back_to_raw_value():
    assert extract_email_address("  sales@acme.example.com ") == "sales@acme.example.com"


def test_normalize_email_lowercases():
    assert normalize_email(" Buyer@Example.COM ") == "buyer@example.com"


def test_optional_text_blank_is_none():
    assert optional_text("   ") is None
    assert optional_text(None) is None


def test_sanitize_text_truncates():
    assert sanitize_text("  abcdef  ", max_len=3) == "abc"
