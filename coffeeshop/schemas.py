"""
Pydantic Schemas for Request/Response Validation

Request bodies reject missing required fields (rendered as 400 by the
validation handler). Enum-like order fields (status, payment method) are
accepted as free strings and translated with silent defaults.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from coffeeshop.core.enums import DeliveryMethod


# =============================================================================
# AUTH
# =============================================================================

class RegisterRequest(BaseModel):
    first_name: str = Field(
        ..., min_length=1, max_length=100, examples=["An"],
        validation_alias=AliasChoices("first_name", "firstName"),
    )
    last_name: str = Field(
        ..., min_length=1, max_length=100, examples=["Nguyen"],
        validation_alias=AliasChoices("last_name", "lastName"),
    )
    email: EmailStr = Field(..., examples=["an.nguyen@mail.com"])
    password: str = Field(..., min_length=1, max_length=128)
    phone: Optional[str] = Field(None, max_length=20, examples=["0901234567"])
    address: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class OtpRequest(BaseModel):
    email: EmailStr


class OtpVerifyRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=6, examples=["482913"])


class ResetPasswordRequest(OtpVerifyRequest):
    new_password: str = Field(
        ..., min_length=1, max_length=128,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


class ProfileUpdate(BaseModel):
    first_name: str = Field(
        ..., min_length=1, max_length=100,
        validation_alias=AliasChoices("first_name", "firstName"),
    )
    last_name: str = Field(
        ..., min_length=1, max_length=100,
        validation_alias=AliasChoices("last_name", "lastName"),
    )
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None


class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# CATALOG
# =============================================================================

class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None


class ProductSizeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    size: str
    price_modifier: float


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    full_description: Optional[str] = None
    price: float
    image: Optional[str] = None
    rating: float = 0.0
    reviews_count: int = 0
    category_id: int
    category_name: Optional[str] = None
    sizes: List[ProductSizeResponse] = Field(default_factory=list)


class SearchResponse(BaseModel):
    products: List[ProductResponse]
    categories: List[CategoryResponse]


# =============================================================================
# CART
# =============================================================================

class CartItemCreate(BaseModel):
    product_id: int = Field(..., validation_alias=AliasChoices("product_id", "productId"))
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    size: str = Field(..., min_length=1, max_length=10, examples=["M"])


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=99)


class CartItemCreated(BaseModel):
    id: str


class CartItemResponse(BaseModel):
    """Cart line joined with its product and size."""
    id: str
    product_id: int
    quantity: int
    size: str
    product_name: str
    product_description: Optional[str] = None
    product_full_description: Optional[str] = None
    product_price: float
    product_image: Optional[str] = None
    product_category_id: int
    product_rating: float = 0.0
    product_reviews: int = 0
    size_price_modifier: float = 0.0
    unit_price: float
    line_total: float
    created_at: Optional[datetime] = None


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemCreate(BaseModel):
    """Line item. ``price`` is the unit price; omitted means catalog price."""
    product_id: int = Field(..., validation_alias=AliasChoices("product_id", "productId", "id"))
    quantity: int = Field(..., ge=1)
    size: Optional[str] = Field(None, max_length=10)
    price: Optional[float] = Field(None, ge=0)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0, validation_alias=AliasChoices("total_amount", "totalAmount"))
    status: Optional[str] = Field(None, examples=["processing"])
    address: Optional[str] = Field(None, max_length=255)
    note: Optional[str] = Field(None, max_length=500)
    payment_method: Optional[str] = Field(
        None, examples=["cash", "momo"], validation_alias=AliasChoices("payment_method", "paymentMethod")
    )
    delivery_method: DeliveryMethod = Field(
        default=DeliveryMethod.DELIVER,
        validation_alias=AliasChoices("delivery_method", "deliveryMethod"),
    )
    customer_name: Optional[str] = Field(
        None, max_length=200, validation_alias=AliasChoices("customer_name", "customerName")
    )
    customer_phone: Optional[str] = Field(
        None, max_length=20, validation_alias=AliasChoices("customer_phone", "customerPhone")
    )


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., examples=["cancelled"])


class OrderCreateResponse(BaseModel):
    message: str
    order_id: str


class OrderItemResponse(BaseModel):
    id: str
    product_id: int
    product_name: Optional[str] = None
    price: float
    quantity: int
    size: Optional[str] = None
    image: Optional[str] = None


class OrderResponse(BaseModel):
    """Order as shown in the history, with readable status and aliases."""
    id: str
    status: str
    total_amount: float
    date: Optional[datetime] = None
    address: Optional[str] = None
    note: Optional[str] = None
    payment_method: str
    delivery_method: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    user_confirmed_transfer: bool = False
    user_confirmed_transfer_at: Optional[datetime] = None
    items: List[OrderItemResponse] = Field(default_factory=list)


# =============================================================================
# HEALTH
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    email_service: str
    timestamp: datetime
