from pydantic import AliasChoices, BaseModel, BeforeValidator, Field
from typing import Annotated, Any, Optional


def _coerce_id(v: Any) -> Any:
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


def _none_to_empty(v: Any) -> Any:
    return "" if v is None else v


def _null_to_zero(v: Any) -> Any:
    if v is None or v == "":
        return 0
    return v


# Directus ids may be integers or uuids; the gateway always treats them as strings.
RecordId = Annotated[str, BeforeValidator(_coerce_id)]
DisplayName = Annotated[str, BeforeValidator(_none_to_empty)]
Price = Annotated[float, BeforeValidator(_null_to_zero)]
StockCount = Annotated[int, BeforeValidator(_null_to_zero), Field(ge=0)]


class Product(BaseModel):
    id: RecordId
    name: DisplayName
    slug: Optional[str] = None
    price: Price = 0.0
    description: Optional[str] = None
    stock_quantity: StockCount = 0
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"extra": "ignore"}


class StockRecord(BaseModel):
    """Authoritative on-hand quantity for one product at fetch time."""

    id: RecordId
    name: DisplayName = ""
    available_stock: StockCount = Field(
        default=0,
        validation_alias=AliasChoices("stock_quantity", "available_stock"),
    )

    model_config = {"extra": "ignore", "populate_by_name": True}
