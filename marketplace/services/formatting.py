# marketplace/services/formatting.py
"""Widoki koszyka i zamowienia (dict przeksztalcany w jsona), bez efektow ubocznych."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

from marketplace.data.models import CartModel, OrderModel, ProductModel
from marketplace.services.stock_policy import StockPolicy

TWO_PLACES = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def effective_price(product: ProductModel) -> Decimal:
    # cena promocyjna jesli jest ustawiona, inaczej cena bazowa
    price = product.discounted_price if product.discounted_price is not None else product.original_price
    return Decimal(str(price))


def format_product(product: ProductModel) -> Dict[str, Any]:
    return {
        "id": product.id,
        "title": product.title,
        "description": product.description,
        "image_url": product.image_url,
        "stock": product.stock,
        "original_price": product.original_price,
        "discounted_price": product.discounted_price,
    }


def format_cart(cart: CartModel, policy: StockPolicy) -> Dict[str, Any]:
    items = []
    for item in cart.items:
        unit_price = effective_price(item.product)
        view = {
            "id": item.id,
            "product_id": item.product_id,
            "quantity": item.quantity,
            "product": format_product(item.product),
            "unit_price": unit_price,
            "item_total": to_money(unit_price * item.quantity),
        }
        view.update(policy.stock_status(item.product, item.quantity))
        items.append(view)

    subtotal = sum((i["item_total"] for i in items), Decimal("0.00"))

    result = {
        "id": cart.id,
        "user_id": cart.user_id,
        "items": items,
        "subtotal": to_money(subtotal),
        "total_items": sum(i["quantity"] for i in items),
        "stock_policy": policy.name,
        "created_at": cart.created_at,
        "updated_at": cart.updated_at,
    }
    if policy.reports_stock_status:
        result["has_stock_issues"] = any(i["exceeds_stock"] for i in items)
    return result


def format_order(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "buyer_id": order.buyer_id,
        "seller_id": order.seller_id,
        "status": order.status,
        "currency": order.currency,
        "total_amount": to_money(order.total_amount),
        "whatsapp_number": order.whatsapp_number,
        "call_number": order.call_number,
        "hall": order.hall,
        "buyer_message": order.buyer_message,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "product_name": i.product_name,
                "quantity": i.quantity,
                "unit_price": to_money(i.unit_price),
                "line_total": to_money(Decimal(str(i.unit_price)) * i.quantity),
            }
            for i in order.items
        ],
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }
