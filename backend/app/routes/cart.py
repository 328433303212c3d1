"""Partner supply-marketplace cart routes.

Every response uses the ``{success, data?, error?, message?}`` envelope,
including authentication failures.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict, Field

from localpro.cart import CartServiceError

from ..auth import AuthContext, get_optional_user, security
from ..config import Settings, get_settings
from ..database import Carts
from ..logging_config import get_logger
from ..rate_limit import limiter
from ..responses import envelope_error

logger = get_logger("localpro.routes.cart")
router = APIRouter(prefix="/api/marketplace/cart", tags=["marketplace"])


class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str | None = Field(None, alias="productId")
    quantity: int = 1


class QuantityUpdate(BaseModel):
    quantity: int


async def cart_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext | None:
    """Resolve the caller, treating a bad token like a missing one."""
    try:
        return await get_optional_user(credentials, settings, request)
    except HTTPException:
        return None


CartUser = Annotated[AuthContext | None, Depends(cart_user)]


def _unauthenticated():
    return envelope_error(status.HTTP_401_UNAUTHORIZED, "Authentication required")


def _service_error(e: CartServiceError):
    return envelope_error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))


@router.get("")
async def get_cart(auth: CartUser, carts: Carts):
    """The caller's cart with its totals."""
    if auth is None:
        return _unauthenticated()
    try:
        cart = carts.get_cart(auth.user_id)
        totals = carts.calculate_cart_totals(auth.user_id)
    except CartServiceError as e:
        return _service_error(e)
    return {"success": True, "data": {"cart": cart.to_dict(), "totals": totals.to_dict()}}


@router.post("")
@limiter.limit("60/minute")
async def add_to_cart(request: Request, body: AddToCartRequest, auth: CartUser, carts: Carts):
    if auth is None:
        return _unauthenticated()
    if not body.product_id or not body.product_id.strip():
        return envelope_error(status.HTTP_400_BAD_REQUEST, "Product ID is required")
    if body.quantity < 1:
        return envelope_error(status.HTTP_400_BAD_REQUEST, "Quantity must be at least 1")
    logger.info(f"POST /api/marketplace/cart | user={auth.user_id} | product={body.product_id}")
    try:
        carts.add_to_cart(auth.user_id, body.product_id, body.quantity)
    except CartServiceError as e:
        return _service_error(e)
    return {"success": True, "message": "Item added to cart successfully"}


@router.delete("")
async def clear_cart(auth: CartUser, carts: Carts):
    if auth is None:
        return _unauthenticated()
    try:
        carts.clear_cart(auth.user_id)
    except CartServiceError as e:
        return _service_error(e)
    return {"success": True, "message": "Cart cleared successfully"}


@router.get("/validate")
async def validate_cart(auth: CartUser, carts: Carts):
    """Check the cart against current stock before checkout."""
    if auth is None:
        return _unauthenticated()
    try:
        validation = carts.validate_cart(auth.user_id)
    except CartServiceError as e:
        return _service_error(e)
    return {"success": True, "data": validation.to_dict()}


@router.patch("/items/{item_id}")
async def update_cart_item(item_id: str, body: QuantityUpdate, auth: CartUser, carts: Carts):
    """Set a line's quantity; zero or less removes it."""
    if auth is None:
        return _unauthenticated()
    try:
        carts.update_cart_item_quantity(auth.user_id, item_id, body.quantity)
    except CartServiceError as e:
        return _service_error(e)
    return {"success": True, "message": "Cart updated successfully"}


@router.delete("/items/{item_id}")
async def remove_cart_item(item_id: str, auth: CartUser, carts: Carts):
    if auth is None:
        return _unauthenticated()
    try:
        carts.remove_from_cart(auth.user_id, item_id)
    except CartServiceError as e:
        return _service_error(e)
    return {"success": True, "message": "Item removed from cart"}
