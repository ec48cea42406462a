"""Tests for search query canonicalization."""

import pytest

from sourcing.exceptions import InvalidQueryError, SourcingError
from sourcing.utils.query import normalize_query


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Phone Holder", "phone holder"),
        ("  phone holder  ", "phone holder"),
        ("phone\t\n  holder", "phone holder"),
        ("PHONE HOLDER", "phone holder"),
        ("Straße", "strasse"),
        ("ｐｈｏｎｅ", "phone"),  # full-width folds under NFKC
        ("m3 bolt, 20mm!", "m3 bolt, 20mm!"),
    ],
)
def test_normalize_query(raw, expected):
    assert normalize_query(raw) == expected


def test_equivalent_spellings_share_a_key():
    assert normalize_query("Phone holder") == normalize_query("  phone   HOLDER")


@pytest.mark.parametrize("raw", [None, "", "   ", "\n\t"])
def test_blank_query_rejected(raw):
    with pytest.raises(InvalidQueryError) as exc_info:
        normalize_query(raw)
    assert str(exc_info.value) == "Query parameter required"


def test_overlong_query_rejected():
    with pytest.raises(InvalidQueryError) as exc_info:
        normalize_query("a" * 11, max_length=10)
    assert "max 10" in str(exc_info.value)


def test_length_checked_after_collapsing_whitespace():
    assert normalize_query("a     b", max_length=3) == "a b"


def test_invalid_query_is_a_value_error():
    assert issubclass(InvalidQueryError, ValueError)
    assert issubclass(InvalidQueryError, SourcingError)
