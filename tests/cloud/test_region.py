"""Tests for mapping zones to regions."""

import pytest

from image_import.cloud import get_region
from image_import.exceptions import InputException


@pytest.mark.parametrize(
    ("zone", "region"),
    [
        ("dal10", "us-south"),
        ("dal12", "us-south"),
        ("us-south", "us-south"),
        ("wdc06", "us-east"),
        ("us-east", "us-east"),
        ("lon04", "lon"),
        ("eu-de-1", "eu-de"),
        ("fra04", "eu-de"),
        ("tok04", "tok"),
        ("osa21", "osa"),
        ("syd05", "syd"),
        ("sao01", "sao"),
        ("tor01", "tor"),
        ("mon01", "mon"),
        ("mad02", "mad"),
        (" DAL13 ", "us-south"),
    ],
)
def test_get_region(zone: str, region: str) -> None:
    """Test resolving the region of a zone."""
    assert get_region(zone) == region


def test_get_region_unknown() -> None:
    """Test an unknown zone is rejected."""
    with pytest.raises(InputException, match="Region not found for zone 'mars01'"):
        get_region("mars01")
