from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from gomatcha.core.schemas import CamelModel


class FulfillmentProduct(BaseModel):
    sku: str
    name: str
    variant: Optional[str] = None
    quantity: int
    weight: float
    price: float
    currency: str


class FulfillmentRequest(BaseModel):
    """Envoi transporteur construit à partir d'une commande ; jamais persisté."""
    order_id: str
    external_id: str
    receiver_name: str
    receiver_phone: str
    receiver_email: str
    receiver_country: str
    receiver_city: str = ""
    receiver_address: str = ""
    receiver_postcode: str = ""
    courier_name: str
    service: str
    office_id: Optional[str] = None
    products: List[FulfillmentProduct]
    cod_amount: float = 0.0
    currency: str
    comment: str = ""
    shipping_price: float = 0.0
    total_amount: float

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class CarrierOrderResult(BaseModel):
    tracking_number: Optional[str] = None
    fulfillment_order_id: Optional[str] = None


class FulfillmentResult(CamelModel):
    success: bool
    tracking_number: Optional[str] = None
    fulfillment_order_id: Optional[str] = None
    error: Optional[str] = None
    # Vrai si une nouvelle tentative peut réussir
    retryable: bool = Field(default=False, exclude=True)


class FulfillmentTriggerRequest(CamelModel):
    order_id: Optional[str] = None


class Office(BaseModel):
    id: str
    name: str = ""
    place: str = ""
    post_code: str = ""
    address: str = ""
    country: str = ""
    is_machine: bool = False


class OfficesResponse(BaseModel):
    success: bool
    offices: List[Office] = Field(default_factory=list)
    error: Optional[str] = None


class SamedayBoxesResponse(BaseModel):
    success: bool
    boxes: List[Office] = Field(default_factory=list)
    cities: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class FulfillmentTestResponse(CamelModel):
    test: bool = True
    credentials_configured: bool
    app_id_set: bool
    app_secret_set: bool
    result: FulfillmentResult
