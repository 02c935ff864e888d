#marketplace/api/routers/carts.py
from fastapi import APIRouter, Depends, Query

from marketplace.api.dependencies import get_cart_service
from marketplace.domain.schemas import (
    CartCountOut,
    CartItemIn,
    CartOut,
    MergeCartIn,
    UpdateCartItemIn,
)
from marketplace.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/", response_model=CartOut | None)
def get_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    # brak koszyka -> null, nie 404
    return svc.get_cart(user_id)


@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    return {"count": svc.get_cart_item_count(user_id)}


@router.post("/", response_model=CartOut)
def add_to_cart(
    payload: CartItemIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_to_cart(user_id, payload.product_id, payload.quantity)


@router.post("/merge", response_model=CartOut)
def merge_cart(
    payload: MergeCartIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    """Wolane po zalogowaniu, laczy koszyk z local storage z koszykiem uzytkownika."""
    return svc.merge_cart(user_id, payload.items)


@router.patch("/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: UpdateCartItemIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_cart_item(user_id, item_id, payload.quantity)


@router.delete("/{item_id}", response_model=CartOut)
def remove_cart_item(
    item_id: int,
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_cart_item(user_id, item_id)


@router.delete("/", response_model=CartOut)
def clear_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear_cart(user_id)
