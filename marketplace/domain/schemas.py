# marketplace/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    # zakres ilosci sprawdza serwis (InvalidQuantity -> 400)
    quantity: int = Field(..., description="Ilosc produktu (co najmniej 1)")


class MergeCartIn(BaseModel):
    """Pozycje z anonimowego koszyka (local storage) do polaczenia z koszykiem usera."""

    # pusta lista -> EmptyMergeRequest z serwisu
    items: List[CartItemIn]


class UpdateCartItemIn(BaseModel):
    """0 usuwa pozycje."""

    quantity: int


class CartProductOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    image_url: str | None = None
    stock: int
    original_price: Decimal
    discounted_price: Decimal | None = None


class CartItemOut(BaseModel):
    """Schema dla produktu w koszyku (response)."""

    id: int
    product_id: int
    quantity: int
    product: CartProductOut
    unit_price: Decimal
    item_total: Decimal
    # tylko przy polityce deferred
    exceeds_stock: bool | None = None
    available_stock: int | None = None


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    id: int
    user_id: int
    items: List[CartItemOut]
    subtotal: Decimal
    total_items: int
    stock_policy: str
    has_stock_issues: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartCountOut(BaseModel):
    count: int


class PlaceOrderIn(BaseModel):
    """Schema dla zlozenia zamowienia."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(..., description="Ilosc (co najmniej 1)")
    whatsapp_number: str = Field(..., min_length=1)
    call_number: str = Field(..., min_length=1)
    hall: str | None = None
    message: str | None = None


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    buyer_id: int
    seller_id: int
    status: str
    currency: str
    total_amount: Decimal
    whatsapp_number: str
    call_number: str
    hall: str | None = None
    buyer_message: str | None = None
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
