"""Tests for URL helpers and listing identity."""

from sourcing.normalizers import listing_id
from sourcing.utils.url import absolutize_url, canonicalize_url

THINGIVERSE = "https://www.thingiverse.com"


def test_absolutize_relative_href():
    assert absolutize_url("/thing:123", THINGIVERSE) == "https://www.thingiverse.com/thing:123"


def test_absolutize_protocol_relative():
    assert absolutize_url("//cdn.thingiverse.com/a.jpg", THINGIVERSE) == "https://cdn.thingiverse.com/a.jpg"


def test_absolutize_keeps_absolute_url():
    url = "https://cdn.thingiverse.com/a.jpg"
    assert absolutize_url(url, THINGIVERSE) == url


def test_absolutize_blank():
    assert absolutize_url("  ", THINGIVERSE) == ""
    assert absolutize_url(None, THINGIVERSE) == ""


def test_canonicalize_strips_tracking_and_fragment():
    url = "http://www.thingiverse.com/thing:123/?utm_source=x&ref=home#comments"
    assert canonicalize_url(url, THINGIVERSE) == "https://www.thingiverse.com/thing:123"


def test_canonicalize_sorts_remaining_params():
    url = "https://makerworld.com/en/models/1?b=2&a=1"
    assert canonicalize_url(url, "https://makerworld.com") == "https://makerworld.com/en/models/1?a=1&b=2"


def test_canonicalize_collapses_slashes_and_default_port():
    url = "https://www.printables.com:443//model//12-clip/"
    assert canonicalize_url(url, "https://www.printables.com") == "https://www.printables.com/model/12-clip"


def test_canonicalize_relative_href():
    assert canonicalize_url("/thing:9", THINGIVERSE) == "https://www.thingiverse.com/thing:9"


def test_listing_id_ignores_presentation_differences():
    a = listing_id("thingiverse", "/thing:123")
    b = listing_id("thingiverse", "https://www.thingiverse.com/thing:123/?utm_medium=card")
    assert a == b == "thingiverse_https://www.thingiverse.com/thing:123"


def test_listing_id_is_scoped_by_source():
    assert listing_id("printables", "/model/1") != listing_id("makerworld", "/model/1")


def test_absolutize_keeps_colon_in_path():
    assert absolutize_url("/thing:4567/files", THINGIVERSE) == "https://www.thingiverse.com/thing:4567/files"


def test_absolutize_bare_relative_path():
    assert absolutize_url("model/1", "https://www.printables.com") == "https://www.printables.com/model/1"
