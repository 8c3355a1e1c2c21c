"""
D7 Storefront Schemas

Pydantic schemas for the checkout and payment verification endpoints. Line
items mirror the Stripe ``price_data`` shape the frontend already sends, so a
validated item is passed to Stripe unchanged.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from d1_artifacts.identifiers import is_valid_cart_item_id


class ProductMetadata(BaseModel):
    """Product metadata carried through Stripe and read back by the webhook"""

    model_config = ConfigDict(extra="allow")

    cartItemId: str = Field(..., description="Order line item identifier")

    @field_validator("cartItemId")
    @classmethod
    def validate_cart_item_id(cls, v):
        if not is_valid_cart_item_id(v):
            raise ValueError("cartItemId must match cart-<timestamp>-<hex>")
        return v


class ProductData(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, max_length=250)
    metadata: ProductMetadata


class PriceData(BaseModel):
    model_config = ConfigDict(extra="allow")

    currency: str = Field(..., min_length=1)
    unit_amount: StrictInt = Field(..., gt=0, description="Price in minor units")
    product_data: ProductData


class LineItem(BaseModel):
    """One line item of a checkout request"""

    model_config = ConfigDict(extra="allow")

    price_data: PriceData
    quantity: StrictInt = Field(..., gt=0)

    @property
    def cart_item_id(self) -> str:
        return self.price_data.product_data.metadata.cartItemId


class CheckoutSessionRequest(BaseModel):
    """Body of POST /api/create-checkout-session"""

    line_items: List[LineItem] = Field(..., min_length=1, max_length=100)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "line_items": [
                    {
                        "price_data": {
                            "currency": "eur",
                            "unit_amount": 2990,
                            "product_data": {
                                "name": "Personalized poster 50x70",
                                "metadata": {"cartItemId": "cart-1714060000000-3fa9c2"},
                            },
                        },
                        "quantity": 1,
                    }
                ]
            }
        }
    )

    def to_stripe_line_items(self) -> List[Dict[str, Any]]:
        return [item.model_dump(exclude_none=True) for item in self.line_items]


class CheckoutSessionResponse(BaseModel):
    url: str = Field(..., description="Hosted checkout URL")


class PaymentVerificationResponse(BaseModel):
    isPaid: bool
    session: Optional[Dict[str, Any]] = None
    payment_status: Optional[str] = None
    error: Optional[str] = None


class WebhookAcknowledgement(BaseModel):
    received: bool = True
