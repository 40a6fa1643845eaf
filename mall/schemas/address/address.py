from typing import Optional

from mall.schemas.common import CamelModel

class ShippingAddress(CamelModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    street_address: str = ""
    apt_number: Optional[str] = None
    city: str = ""
    state_province: str = ""
    zip_code: str = ""
    country: str = ""

    def is_complete(self) -> bool:
        return all(
            value and value.strip()
            for value in (self.street_address, self.city, self.state_province, self.zip_code, self.country)
        )

class AddressSuggestion(CamelModel):
    formatted_address: str = ""
    street_number: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    state_code: str = ""
    postal_code: str = ""
    country: str = ""
    country_code: str = ""

class AddressValidationResult(CamelModel):
    valid: bool
    message: str
    normalized_address: Optional[AddressSuggestion] = None
    confidence: Optional[float] = None
    result_type: Optional[str] = None
    # True when no provider key is configured and nothing was checked
    skipped: bool = False
