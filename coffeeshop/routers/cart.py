"""
Cart Routes

All routes act on the authenticated user's cart. Item-level routes resolve
the line within that cart first, so another user's line id answers 404.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.database import get_db
from coffeeshop.models import User
from coffeeshop.routers.deps import get_current_user
from coffeeshop.schemas import (
    CartItemCreate,
    CartItemCreated,
    CartItemResponse,
    CartItemUpdate,
    MessageResponse,
)
from coffeeshop.services import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=list[CartItemResponse], summary="Get Cart")
async def get_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await CartService(db).get_cart(user.id)


@router.post(
    "",
    response_model=CartItemCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Add To Cart",
)
async def add_to_cart(
    body: CartItemCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartItemCreated:
    item_id = await CartService(db).add_to_cart(
        user.id, body.product_id, body.quantity, body.size
    )
    return CartItemCreated(id=item_id)


# Declared before /{item_id} so "clear" is not taken as an item id
@router.delete("/clear/all", response_model=MessageResponse, summary="Clear Cart")
async def clear_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await CartService(db).clear_cart(user.id)
    return MessageResponse(message="Cart cleared")


@router.put("/{item_id}", response_model=MessageResponse, summary="Update Cart Item")
async def update_cart_item(
    item_id: str,
    body: CartItemUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    service = CartService(db)
    await service.get_owned_item(item_id, user.id)
    await service.update_item(item_id, body.quantity)
    return MessageResponse(message="Cart updated")


@router.delete("/{item_id}", response_model=MessageResponse, summary="Remove Cart Item")
async def remove_cart_item(
    item_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    service = CartService(db)
    await service.get_owned_item(item_id, user.id)
    await service.remove_item(item_id)
    return MessageResponse(message="Cart item removed")
