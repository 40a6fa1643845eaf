from typing import List

from fastapi import APIRouter, Depends, Query

from mall.integration.geoapify import GeoapifyAddressService, geoapify_address_service
from mall.schemas.address.address import AddressSuggestion, AddressValidationResult, ShippingAddress
from mall.schemas.common import ApiResponse


def get_address_service() -> GeoapifyAddressService:
    return geoapify_address_service


class ShippingAddressRouter(APIRouter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_api_route(
            "/api/shipping-addresses/validate",
            self.validate_address,
            methods=["POST"],
            response_model=ApiResponse[AddressValidationResult],
            response_model_by_alias=True,
        )
        self.add_api_route(
            "/api/shipping-addresses/autocomplete",
            self.autocomplete,
            methods=["GET"],
            response_model=ApiResponse[List[AddressSuggestion]],
            response_model_by_alias=True,
        )

    async def validate_address(
        self,
        address: ShippingAddress,
        service: GeoapifyAddressService = Depends(get_address_service),
    ):
        result = await service.validate_address(address)
        return ApiResponse[AddressValidationResult](data=result, message=result.message)

    async def autocomplete(
        self,
        query: str = Query(..., min_length=3),
        country_code: str = Query("US", alias="countryCode", min_length=2, max_length=2),
        service: GeoapifyAddressService = Depends(get_address_service),
    ):
        suggestions = await service.autocomplete(query, country_code=country_code)
        return ApiResponse[List[AddressSuggestion]](data=suggestions, count=len(suggestions))
