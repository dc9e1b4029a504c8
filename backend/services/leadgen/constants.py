"""Closed enumerations used by classification and case matching."""

UNKNOWN_COUNTRY = "Unknown"
OTHER_INDUSTRY = "Other"

COUNTRIES: tuple[str, ...] = (
    "Australia",
    "Austria",
    "Belgium",
    "Canada",
    "Cyprus",
    "Denmark",
    "Estonia",
    "Finland",
    "France",
    "Georgia",
    "Germany",
    "Hungary",
    "Ireland",
    "Italy",
    "Kazakhstan",
    "Latvia",
    "Lithuania",
    "Luxembourg",
    "Malta",
    "Netherlands",
    "Poland",
    "Qatar",
    "Saudi Arabia",
    "Serbia",
    "Singapore",
    "South Africa",
    "South Korea",
    "Sweden",
    "Switzerland",
    "UAE",
    "UK",
    "USA",
    UNKNOWN_COUNTRY,
)

INDUSTRIES: tuple[str, ...] = (
    "Aerospace & Defense",
    "Automotive",
    "Aviation",
    "Construction",
    "Enterprise",
    "FinTech",
    "Financial Services",
    "Healthcare",
    "Insurance",
    "Legal",
    "Logistics",
    "Manufacturing",
    "Media & Entertainment",
    "Oil & Gas",
    "Real Estate",
    "Retail",
    "Telecom",
    "Travel & Hospitality",
    "eCommerce",
    "eLearning",
    "iGaming",
    OTHER_INDUSTRY,
)

# ISO 3166-1 alpha-2 codes for location-aware web search
COUNTRY_TO_ISO: dict[str, str] = {
    "Australia": "AU",
    "Austria": "AT",
    "Belgium": "BE",
    "Canada": "CA",
    "Cyprus": "CY",
    "Denmark": "DK",
    "Estonia": "EE",
    "Finland": "FI",
    "France": "FR",
    "Georgia": "GE",
    "Germany": "DE",
    "Hungary": "HU",
    "Ireland": "IE",
    "Italy": "IT",
    "Kazakhstan": "KZ",
    "Latvia": "LV",
    "Lithuania": "LT",
    "Luxembourg": "LU",
    "Malta": "MT",
    "Netherlands": "NL",
    "Poland": "PL",
    "Qatar": "QA",
    "Saudi Arabia": "SA",
    "Serbia": "RS",
    "Singapore": "SG",
    "South Africa": "ZA",
    "South Korea": "KR",
    "Sweden": "SE",
    "Switzerland": "CH",
    "UAE": "AE",
    "UK": "GB",
    "USA": "US",
}
DEFAULT_ISO_CODE = "US"

# Related terms used to widen an industry filter that matched too few cases
INDUSTRY_GROUPS: dict[str, tuple[str, ...]] = {
    "aerospace & defense": ("aerospace", "defense", "military", "aviation"),
    "automotive": ("auto", "vehicle", "car", "motor"),
    "aviation": ("airline", "aircraft", "aerospace", "flight"),
    "construction": ("building", "infrastructure", "engineering"),
    "enterprise": ("business", "corporate", "b2b", "saas"),
    "fintech": ("financial technology", "payment", "banking tech", "financial services"),
    "financial services": ("finance", "banking", "fintech", "investment"),
    "healthcare": ("health", "medical", "pharma", "biotech", "hospital"),
    "insurance": ("insurtech", "financial services", "risk"),
    "legal": ("law", "legaltech", "compliance"),
    "logistics": ("supply chain", "transportation", "shipping", "freight"),
    "manufacturing": ("industrial", "production", "factory"),
    "media & entertainment": ("media", "entertainment", "broadcasting", "streaming"),
    "oil & gas": ("energy", "petroleum", "utilities"),
    "real estate": ("property", "proptech", "housing"),
    "retail": ("consumer", "shopping", "ecommerce"),
    "telecom": ("telecommunications", "mobile", "network"),
    "travel & hospitality": ("travel", "hotel", "tourism", "hospitality"),
    "ecommerce": ("retail", "online shopping", "marketplace"),
    "elearning": ("education", "edtech", "learning", "training"),
    "igaming": ("gaming", "gambling", "betting", "casino"),
}


def canonical_choice(value: str | None, choices: tuple[str, ...], fallback: str) -> str:
    """Return the member of ``choices`` equal to ``value`` ignoring case, else ``fallback``."""
    if value:
        lowered = value.strip().lower()
        for choice in choices:
            if choice.lower() == lowered:
                return choice
    return fallback
