"""Mapping of cloud workspace zones to their regions."""

from image_import.exceptions import InputException

__all__ = ["get_region"]


# Zone prefixes ordered so that more specific prefixes are matched first.
ZONE_REGIONS: tuple[tuple[str, str], ...] = (
    ("us-south", "us-south"),
    ("us-east", "us-east"),
    ("dal", "us-south"),
    ("wdc", "us-east"),
    ("sao", "sao"),
    ("tor", "tor"),
    ("mon", "mon"),
    ("eu-de", "eu-de"),
    ("fra", "eu-de"),
    ("lon", "lon"),
    ("mad", "mad"),
    ("syd", "syd"),
    ("tok", "tok"),
    ("osa", "osa"),
    ("che", "che"),
)


def get_region(zone: str) -> str:
    """Return the region hosting the specified zone (e.g. `dal12` -> `us-south`)."""
    normalized = zone.strip().lower()
    for prefix, region in ZONE_REGIONS:
        if normalized.startswith(prefix):
            return region
    raise InputException(f"Region not found for zone '{zone}'")
