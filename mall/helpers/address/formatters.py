from typing import Any, Dict, Optional

from mall.schemas.address.address import AddressSuggestion, ShippingAddress

US_STATE_CODES = {
    "Alabama": "AL", "Alaska": "AK", "Arizona": "AZ", "Arkansas": "AR",
    "California": "CA", "Colorado": "CO", "Connecticut": "CT", "Delaware": "DE",
    "Florida": "FL", "Georgia": "GA", "Hawaii": "HI", "Idaho": "ID",
    "Illinois": "IL", "Indiana": "IN", "Iowa": "IA", "Kansas": "KS",
    "Kentucky": "KY", "Louisiana": "LA", "Maine": "ME", "Maryland": "MD",
    "Massachusetts": "MA", "Michigan": "MI", "Minnesota": "MN", "Mississippi": "MS",
    "Missouri": "MO", "Montana": "MT", "Nebraska": "NE", "Nevada": "NV",
    "New Hampshire": "NH", "New Jersey": "NJ", "New Mexico": "NM", "New York": "NY",
    "North Carolina": "NC", "North Dakota": "ND", "Ohio": "OH", "Oklahoma": "OK",
    "Oregon": "OR", "Pennsylvania": "PA", "Rhode Island": "RI", "South Carolina": "SC",
    "South Dakota": "SD", "Tennessee": "TN", "Texas": "TX", "Utah": "UT",
    "Vermont": "VT", "Virginia": "VA", "Washington": "WA", "West Virginia": "WV",
    "Wisconsin": "WI", "Wyoming": "WY",
}

COUNTRY_CODES = {
    "United States": "US",
    "USA": "US",
    "Canada": "CA",
    "Mexico": "MX",
}


def build_full_address(address: ShippingAddress) -> str:
    parts = [
        address.street_address,
        f"Apt {address.apt_number}" if address.apt_number else None,
        address.city,
        address.state_province,
        address.zip_code,
        address.country,
    ]
    return ", ".join(part for part in parts if part)


def normalize_state_code(state: str) -> str:
    if not state:
        return ""
    if len(state) == 2:
        return state.upper()
    return US_STATE_CODES.get(state, state[:2].upper())


def normalize_country_code(country: str) -> str:
    if not country:
        return ""
    return COUNTRY_CODES.get(country, country[:2].upper())


def suggestion_from_properties(
    properties: Dict[str, Any],
    fallback: Optional[ShippingAddress] = None,
    default_country_code: str = "",
) -> AddressSuggestion:
    """Maps Geoapify feature properties, filling gaps from what the customer typed."""
    city = properties.get("city") or (fallback.city if fallback else "")
    state = properties.get("state") or (fallback.state_province if fallback else "")
    country = properties.get("country") or (fallback.country if fallback else "")
    country_code = (properties.get("country_code") or "").upper()
    if not country_code:
        country_code = normalize_country_code(fallback.country) if fallback else default_country_code

    return AddressSuggestion(
        formatted_address=properties.get("formatted") or (build_full_address(fallback) if fallback else ""),
        street_number=properties.get("housenumber") or "",
        street=properties.get("street") or "",
        city=city,
        state=state,
        state_code=normalize_state_code(state),
        postal_code=properties.get("postcode") or (fallback.zip_code if fallback else ""),
        country=country,
        country_code=country_code,
    )
