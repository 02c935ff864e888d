# marketplace/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query

from marketplace.api.dependencies import get_order_service
from marketplace.domain.schemas import PlaceOrderIn, OrderOut
from marketplace.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderOut, status_code=201)
def place_order(
    payload: PlaceOrderIn,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """
    Sklada zamowienie na produkt i zdejmuje go ze stanu.
    Wysyla powiadomienie asynchronicznie.
    """
    return svc.place_order(user_id, payload)


@router.get("/", response_model=List[OrderOut])
def list_buyer_orders(
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """Zamowienia, w ktorych uzytkownik jest kupujacym."""
    return svc.list_buyer_orders(user_id)


@router.get("/seller", response_model=List[OrderOut])
def list_seller_orders(
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """Zamowienia, w ktorych uzytkownik jest sprzedawca."""
    return svc.list_seller_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegoly zamowienia (tylko kupujacy albo sprzedawca).
    """
    return svc.get_order(user_id, order_id)
