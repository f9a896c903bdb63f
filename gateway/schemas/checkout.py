from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gateway.schemas.product import RecordId


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutItem(CamelModel):
    product_id: RecordId = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, strict=True)


class CheckoutRequest(CamelModel):
    items: List[CheckoutItem] = Field(..., min_length=1)


class StockCheckResult(CamelModel):
    product_id: str
    product_name: str
    requested_quantity: int
    available_stock: int
    is_available: bool


class CheckoutVerdict(CamelModel):
    success: bool
    message: str
    stock_check: List[StockCheckResult]
    total_items: int
    can_proceed: bool
