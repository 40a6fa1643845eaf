from typing import Any, Dict, Optional

BUILDING_RESULT_TYPES = {"building", "house"}

ACCEPTED_RESULT_TYPES = {
    "building",
    "house",
    "address",
    "postcode",
    "street",
    "locality",
    "city",
}

# Used when the provider omits every confidence field
DEFAULT_CONFIDENCE = 0.8


def extract_confidence(properties: Dict[str, Any]) -> float:
    """Confidence of a Geoapify feature, preferring building-level precision for buildings."""
    rank = properties.get("rank") or {}
    result_type = (properties.get("result_type") or "").lower()

    if result_type in BUILDING_RESULT_TYPES and rank.get("confidence_building_level") is not None:
        return float(rank["confidence_building_level"])
    if rank.get("confidence") is not None:
        return float(rank["confidence"])
    return DEFAULT_CONFIDENCE


def is_confident_match(confidence: float, result_type: Optional[str]) -> bool:
    result_type = (result_type or "").lower()
    is_building = result_type in BUILDING_RESULT_TYPES

    return (
        confidence > 0.5
        or (is_building and confidence > 0.3)
        or (result_type in ACCEPTED_RESULT_TYPES and confidence > 0.4)
    )


def describe_match(confidence: float, result_type: Optional[str]) -> str:
    result_type = (result_type or "").lower()
    if result_type == "street" and confidence < 0.7:
        return "Street found. Address may need verification."
    if confidence < 0.7:
        return "Address partially verified. Please review the details."
    return "Address validated successfully"


def describe_rejection(confidence: float, result_type: Optional[str]) -> str:
    return (
        f"Address validation failed. Confidence: {confidence * 100:.0f}%, "
        f"Type: {result_type or 'unknown'}. Please check the address details."
    )
