"""Country to regional communication style lookup."""

from typing import Literal

Region = Literal["uk", "usa", "mena", "eu", "dach"]

DEFAULT_REGION: Region = "usa"
TONE_KEY_PREFIX = "regional_tone_"

COUNTRY_TO_REGION: dict[str, Region] = {
    "UK": "uk",
    "USA": "usa",
    # MENA
    "UAE": "mena",
    "Saudi Arabia": "mena",
    "Qatar": "mena",
    # DACH
    "Germany": "dach",
    "Austria": "dach",
    "Switzerland": "dach",
    # EU
    "Belgium": "eu",
    "Cyprus": "eu",
    "Denmark": "eu",
    "Estonia": "eu",
    "Finland": "eu",
    "France": "eu",
    "Hungary": "eu",
    "Ireland": "eu",
    "Italy": "eu",
    "Latvia": "eu",
    "Lithuania": "eu",
    "Luxembourg": "eu",
    "Malta": "eu",
    "Netherlands": "eu",
    "Poland": "eu",
    "Serbia": "eu",
    "Sweden": "eu",
    # Closest analogs outside the five buckets
    "Australia": "uk",
    "Canada": "usa",
    "Georgia": "eu",
    "Kazakhstan": "eu",
    "Singapore": "usa",
    "South Africa": "uk",
    "South Korea": "usa",
}

REGION_DISPLAY_NAMES: dict[Region, str] = {
    "uk": "UK",
    "usa": "USA",
    "mena": "MENA",
    "eu": "EU",
    "dach": "DACH",
}

_LOOKUP: dict[str, Region] = {name.lower(): region for name, region in COUNTRY_TO_REGION.items()}

TONE_KEYS: tuple[str, ...] = tuple(f"{TONE_KEY_PREFIX}{region}" for region in REGION_DISPLAY_NAMES)


def get_region(country: str | None) -> Region:
    """Region bucket for ``country``; anything unrecognised maps to usa."""
    if not country:
        return DEFAULT_REGION
    return _LOOKUP.get(country.strip().lower(), DEFAULT_REGION)


def country_to_tone_key(country: str | None) -> str:
    """Settings key of the tone guidelines for ``country``."""
    return f"{TONE_KEY_PREFIX}{get_region(country)}"


def get_region_display_name(country: str | None) -> str:
    return REGION_DISPLAY_NAMES[get_region(country)]


def tone_key_display_name(tone_key: str) -> str:
    """Display name for a tone key, ``Custom`` when it is not one of the regional keys."""
    region = tone_key.removeprefix(TONE_KEY_PREFIX)
    return REGION_DISPLAY_NAMES.get(region, "Custom")  # type: ignore[call-overload]
