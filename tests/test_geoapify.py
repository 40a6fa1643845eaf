import asyncio

import httpx

from mall.integration.geoapify import GeoapifyAddressService
from mall.schemas.address.address import ShippingAddress

ADDRESS = ShippingAddress(
    street_address="1600 Amphitheatre Pkwy",
    city="Mountain View",
    state_province="California",
    zip_code="94043",
    country="United States",
)


def feature(result_type="building", confidence=0.95, **extra):
    properties = {
        "result_type": result_type,
        "rank": {"confidence": confidence, "match_type": "full_match"},
        "formatted": "1600 Amphitheatre Pkwy, Mountain View, CA 94043, United States of America",
        "housenumber": "1600",
        "street": "Amphitheatre Parkway",
        "city": "Mountain View",
        "state": "California",
        "postcode": "94043",
        "country": "United States",
        "country_code": "us",
    }
    properties.update(extra)
    return {"type": "Feature", "properties": properties}


def service_for(handler, api_key="test-key"):
    return GeoapifyAddressService(api_key=api_key, transport=httpx.MockTransport(handler))


def test_missing_key_skips_validation_without_network_call():
    calls = []
    service = service_for(lambda request: calls.append(request), api_key="")

    result = asyncio.run(service.validate_address(ADDRESS))

    assert result.valid is False
    assert result.skipped is True
    assert calls == []


def test_confident_building_match_is_valid():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"features": [feature()]})

    result = asyncio.run(service_for(handler).validate_address(ADDRESS))

    assert result.valid is True
    assert result.message == "Address validated successfully"
    assert result.normalized_address.state_code == "CA"
    assert result.normalized_address.country_code == "US"
    assert seen[0].url.path == "/v1/geocode/search"
    assert seen[0].url.params["limit"] == "1"
    assert seen[0].url.params["format"] == "geojson"


def test_low_confidence_street_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"features": [feature(result_type="street", confidence=0.35)]})

    result = asyncio.run(service_for(handler).validate_address(ADDRESS))

    assert result.valid is False
    assert result.confidence == 0.35
    assert result.result_type == "street"


def test_provider_error_is_reported():
    result = asyncio.run(service_for(lambda request: httpx.Response(500, json={})).validate_address(ADDRESS))

    assert result.valid is False
    assert result.message == "Unable to validate address at this time"


def test_no_features_means_not_found():
    result = asyncio.run(
        service_for(lambda request: httpx.Response(200, json={"features": []})).validate_address(ADDRESS)
    )

    assert result.valid is False
    assert result.message.startswith("Address could not be found")


def test_transport_error_is_caught():
    def handler(request):
        raise httpx.ConnectTimeout("timed out")

    result = asyncio.run(service_for(handler).validate_address(ADDRESS))

    assert result.valid is False
    assert result.skipped is False


def test_autocomplete_returns_suggestions():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"features": [feature(), feature(housenumber="1601")]})

    suggestions = asyncio.run(service_for(handler).autocomplete("1600 Amphi"))

    assert [suggestion.street_number for suggestion in suggestions] == ["1600", "1601"]
    assert seen[0].url.path == "/v1/geocode/autocomplete"
    assert seen[0].url.params["limit"] == "5"
    assert seen[0].url.params["filter"] == "countrycode:us"


def test_autocomplete_without_key_or_on_error_is_empty():
    assert asyncio.run(service_for(lambda request: httpx.Response(200, json={}), api_key="").autocomplete("x st")) == []
    assert asyncio.run(service_for(lambda request: httpx.Response(503, json={})).autocomplete("main st")) == []


def test_unreadable_body_is_reported():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>", headers={"Content-Type": "text/html"})

    result = asyncio.run(service_for(handler).validate_address(ADDRESS))

    assert result.valid is False
    assert result.message == "Address validation failed. Please try again."


def test_autocomplete_unreadable_body_returns_no_suggestions():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>", headers={"Content-Type": "text/html"})

    assert asyncio.run(service_for(handler).autocomplete("1600 Amph")) == []
