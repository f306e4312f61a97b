from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from gomatcha.cart.models import CartLineItem
from gomatcha.core.schemas import CamelModel


class CustomerInfo(CamelModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    phone_country_code: Optional[str] = None

    @property
    def full_name(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        return " ".join(part.strip() for part in (self.first_name, self.last_name) if part and part.strip())


class ShippingInfo(CamelModel):
    country: str = Field(default="BG", min_length=2, max_length=2)
    country_name: Optional[str] = None
    method: str
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    # Bureau ou casier easybox
    office_id: Optional[str] = None
    office_name: Optional[str] = None
    office_address: Optional[str] = None
    office_city: Optional[str] = None
    office_country_code: Optional[str] = None


class CheckoutRequest(CamelModel):
    items: List[CartLineItem] = Field(default_factory=list)
    customer: CustomerInfo
    shipping: ShippingInfo
    payment_method: Literal["card", "cod"]
    notes: Optional[str] = Field(default=None, max_length=1000)


class CheckoutResponse(CamelModel):
    order_id: str
    order_number: Optional[int] = None
    status: str
    payment_method: str
    redirect_url: Optional[str] = None
    currency: str
    total_amount: Decimal
    shipping_price: Decimal
    total_with_shipping: Decimal
