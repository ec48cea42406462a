"""Tests for shaping adapter output into listings."""

import logging

import pytest

from sourcing.models import RawListing
from sourcing.normalizers import normalize_listings


def test_maps_fields_and_absolutizes_urls():
    raw = [
        RawListing(
            title="  Phone Holder ",
            source_url="/model/12345-phone-holder",
            thumbnail_url="/media/thumb.jpg",
            author=" maker ",
            likes=320,
            downloads=4500,
        )
    ]

    [listing] = normalize_listings("printables", raw)

    assert listing.id == "printables_https://www.printables.com/model/12345-phone-holder"
    assert listing.title == "Phone Holder"
    assert listing.source_url == "https://www.printables.com/model/12345-phone-holder"
    assert listing.thumbnail_url == "https://www.printables.com/media/thumb.jpg"
    assert listing.author == "maker"
    assert listing.source == "printables"
    assert (listing.likes, listing.downloads) == (320, 4500)


def test_missing_counts_and_author_default():
    raw = [RawListing(title="Clip", source_url="/thing:1", author="   ")]

    [listing] = normalize_listings("thingiverse", raw)

    assert listing.author is None
    assert listing.thumbnail_url is None
    assert listing.likes == 0
    assert listing.downloads == 0


def test_skips_records_without_title_or_url():
    raw = [
        RawListing(title="", source_url="/thing:1"),
        RawListing(title="Kept", source_url="/thing:2"),
        RawListing(title="No url", source_url="   "),
    ]

    listings = normalize_listings("thingiverse", raw)

    assert [l.title for l in listings] == ["Kept"]


def test_dedupes_by_id_keeping_first():
    raw = [
        RawListing(title="First", source_url="/thing:1"),
        RawListing(title="Second", source_url="https://www.thingiverse.com/thing:1?utm_source=x"),
        RawListing(title="Third", source_url="/thing:2"),
    ]

    listings = normalize_listings("thingiverse", raw)

    assert [l.title for l in listings] == ["First", "Third"]


def test_caps_at_limit_in_adapter_order():
    raw = [RawListing(title=f"Model {i}", source_url=f"/models/{i}") for i in range(15)]

    listings = normalize_listings("makerworld", raw, limit=10)

    assert len(listings) == 10
    assert [l.title for l in listings][:3] == ["Model 0", "Model 1", "Model 2"]


def test_unknown_source_rejected():
    with pytest.raises(ValueError):
        normalize_listings("cults3d", [])


def test_dropped_records_logged_for_any_iterable(caplog):
    raw = (
        RawListing(title=title, source_url=url)
        for title, url in [("A", "/thing:1"), ("", "/thing:2"), ("A again", "/thing:1"), ("B", "/thing:3")]
    )

    with caplog.at_level(logging.DEBUG, logger="sourcing.normalizers"):
        listings = normalize_listings("thingiverse", raw, limit=1)

    assert [l.title for l in listings] == ["A"]
    assert "dropped 3 raw listings" in caplog.text
