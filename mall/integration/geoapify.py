import logging
from typing import List, Optional

import httpx

from mall.configuration.settings import Configuration
from mall.helpers.address.confidence import (
    describe_match,
    describe_rejection,
    extract_confidence,
    is_confident_match,
)
from mall.helpers.address.formatters import build_full_address, suggestion_from_properties
from mall.schemas.address.address import AddressSuggestion, AddressValidationResult, ShippingAddress

configuration = Configuration()

GEOAPIFY_BASE_URL = "https://api.geoapify.com/v1"


class GeoapifyAddressService:
    """Address autocomplete and validation backed by the Geoapify geocoding API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = GEOAPIFY_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        key = configuration.geoapify_api_key if api_key is None else api_key
        self.api_key = (key or "").strip()
        self.base_url = base_url
        self.transport = transport
        self.timeout = timeout

        if not self.api_key:
            logging.warning("ADDRESS >>> GEOAPIFY_API_KEY not set, address validation disabled")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=self.timeout)

    async def autocomplete(self, query: str, country_code: str = "US") -> List[AddressSuggestion]:
        if not self.api_key or not query.strip():
            return []

        params = {
            "text": query,
            "apiKey": self.api_key,
            "limit": "5",
            "format": "geojson",
            "filter": f"countrycode:{country_code.lower()}",
        }

        try:
            async with self._client() as client:
                response = await client.get("/geocode/autocomplete", params=params)
        except httpx.HTTPError as e:
            logging.error(f"ADDRESS >>> Autocomplete request failed -> {e}")
            return []

        if response.status_code != 200:
            logging.error(f"ADDRESS >>> Autocomplete error -> {response.status_code}")
            return []

        try:
            features = response.json().get("features") or []
        except (ValueError, AttributeError) as e:
            logging.error(f"ADDRESS >>> Autocomplete returned an unreadable body -> {e}")
            return []

        return [
            suggestion_from_properties(feature.get("properties") or {}, default_country_code=country_code)
            for feature in features
        ]

    async def validate_address(self, address: ShippingAddress) -> AddressValidationResult:
        if not self.api_key:
            return AddressValidationResult(
                valid=False,
                skipped=True,
                message="Address validation is not available. Please configure the API key to enable validation.",
            )

        full_address = build_full_address(address)
        params = {
            "text": full_address,
            "apiKey": self.api_key,
            "limit": "1",
            "format": "geojson",
        }

        try:
            async with self._client() as client:
                response = await client.get("/geocode/search", params=params)
        except httpx.HTTPError as e:
            logging.error(f"ADDRESS >>> Geocode request failed -> {e}")
            return AddressValidationResult(valid=False, message="Address validation failed. Please try again.")

        if response.status_code != 200:
            if response.status_code in (401, 403):
                logging.error("ADDRESS >>> Geoapify rejected the API key or the quota is exhausted")
            else:
                logging.error(f"ADDRESS >>> Geocode error -> {response.status_code}")
            return AddressValidationResult(valid=False, message="Unable to validate address at this time")

        try:
            features = response.json().get("features") or []
        except (ValueError, AttributeError) as e:
            logging.error(f"ADDRESS >>> Geocode returned an unreadable body -> {e}")
            return AddressValidationResult(valid=False, message="Address validation failed. Please try again.")

        if not features or not features[0].get("properties"):
            return AddressValidationResult(
                valid=False,
                message="Address could not be found. Please check the address details.",
            )

        properties = features[0]["properties"]
        result_type = (properties.get("result_type") or "").lower()
        confidence = extract_confidence(properties)

        logging.info(
            f"ADDRESS >>> Geocode result -> type={result_type} confidence={confidence} "
            f"match={(properties.get('rank') or {}).get('match_type')}"
        )

        if not is_confident_match(confidence, result_type):
            return AddressValidationResult(
                valid=False,
                confidence=confidence,
                result_type=result_type,
                message=describe_rejection(confidence, result_type),
            )

        return AddressValidationResult(
            valid=True,
            confidence=confidence,
            result_type=result_type,
            message=describe_match(confidence, result_type),
            normalized_address=suggestion_from_properties(properties, fallback=address),
        )


geoapify_address_service = GeoapifyAddressService()
