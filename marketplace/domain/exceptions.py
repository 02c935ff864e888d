# marketplace/domain/exceptions.py
"""
Bledy domeny koszyka i zamowien.

Kazda klasa ma stabilny ``code``; warstwa HTTP mapuje kategorie
(validation / not_found / authorization / conflict / transient) na status.
"""
from typing import Any, Dict, Iterable


class MarketplaceError(Exception):
    category = "error"
    code = "error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.details}


# kategorie

class ValidationError(MarketplaceError, ValueError):
    category = "validation"
    code = "validation_error"


class NotFoundError(MarketplaceError, LookupError):
    category = "not_found"
    code = "not_found"


class AuthorizationError(MarketplaceError, PermissionError):
    category = "authorization"
    code = "forbidden"


class ConflictError(MarketplaceError):
    category = "conflict"
    code = "conflict"


class TransientStoreError(MarketplaceError):
    category = "transient"
    code = "store_unavailable"


# validation

class InvalidQuantity(ValidationError):
    code = "invalid_quantity"

    def __init__(self, quantity: Any, minimum: int = 1):
        super().__init__(
            f"Quantity must be at least {minimum}, got {quantity}",
            quantity=quantity,
            minimum=minimum,
        )


class EmptyMergeRequest(ValidationError):
    code = "empty_merge_request"

    def __init__(self):
        super().__init__("At least one item is required to merge")


# not found

class ProductNotFound(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(
            f"Product with ID {product_id} not found or inactive",
            product_id=product_id,
        )


class ProductsNotFound(NotFoundError):
    code = "products_not_found"

    def __init__(self, missing_ids: Iterable[int]):
        missing = sorted(missing_ids)
        super().__init__(
            f"Products not found: {', '.join(str(i) for i in missing)}",
            missing_ids=missing,
        )


class CartNotFound(NotFoundError):
    code = "cart_not_found"

    def __init__(self, user_id: int):
        super().__init__("Cart not found", user_id=user_id)


class CartItemNotFound(NotFoundError):
    code = "cart_item_not_found"

    def __init__(self, item_id: int):
        super().__init__("Cart item not found", item_id=item_id)


class OrderNotFound(NotFoundError):
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__("Order not found", order_id=order_id)


# authorization

class SelfPurchaseForbidden(AuthorizationError):
    code = "self_purchase_forbidden"

    def __init__(self, product_id: int):
        super().__init__(
            "You cannot order your own product", product_id=product_id
        )


class OrderAccessDenied(AuthorizationError):
    code = "order_access_denied"

    def __init__(self, order_id: int):
        super().__init__(
            "You do not have access to this order", order_id=order_id
        )


# conflict

class InsufficientStock(ConflictError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}",
            product_id=product_id,
            requested=requested,
            available=available,
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class ProductSoldOut(ConflictError):
    code = "product_sold_out"

    def __init__(self, product_id: int):
        super().__init__("Product is sold out", product_id=product_id)


class SerializationConflict(ConflictError):
    """Transakcja przegrala wyscig z inna (retry calej jednostki pracy)."""

    code = "serialization_conflict"


class ConflictRetryExhausted(ConflictError):
    code = "conflict_retry_exhausted"

    def __init__(self, attempts: int):
        super().__init__(
            f"Concurrent modification, gave up after {attempts} attempts",
            attempts=attempts,
        )
