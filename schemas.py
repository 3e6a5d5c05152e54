from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, StringConstraints, field_validator

from models import OrderStatus, PaymentStatus, Role
from services.isbn_utils import normalize

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Price = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]

# largest value a 64-bit SQL integer column holds
MAX_INT = 2**63 - 1
Id = Annotated[int, Field(le=MAX_INT)]


# ─────────────────────── BOOKS ───────────────────────
class BookBase(BaseModel):
    title: NonBlank
    author: NonBlank
    genre: NonBlank
    isbn: NonBlank
    price: Price
    description: Optional[str] = None
    stock: int = Field(0, ge=0, le=MAX_INT)
    image_url: Optional[str] = None


class BookCreate(BookBase):
    @field_validator("isbn")
    @classmethod
    def clean_isbn(cls, value: str) -> str:
        return normalize(value)


class Book(BookBase):
    id: int
    created_at: datetime
    average_rating: float = 0.0
    total_reviews: int = 0

    class Config:
        from_attributes = True


class BookSummary(BaseModel):
    id: int
    title: str
    author: str
    image_url: Optional[str] = None
    price: Decimal

    class Config:
        from_attributes = True


# ─────────────────────── USERS ───────────────────────
class RegisterRequest(BaseModel):
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50,
                                               pattern=r"^[A-Za-z0-9_.-]+$")]
    email: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255,
                                            pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]
    password: str = Field(..., min_length=6, max_length=128)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    username: NonBlank
    password: str


class TokenResponse(BaseModel):
    token: str
    type: str = "Bearer"
    id: int
    username: str
    email: str
    role: Role


class UserProfile(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ─────────────────────── ORDERS ───────────────────────
class OrderItemRequest(BaseModel):
    book_id: Id
    quantity: int = Field(..., ge=1, le=MAX_INT)


class CreateOrderRequest(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    shipping_address: NonBlank
    payment_method: NonBlank


class OrderItem(BaseModel):
    id: int
    book: Optional[BookSummary] = None
    quantity: int
    price: Decimal
    subtotal: Decimal


class Order(BaseModel):
    id: int
    user_id: int
    username: Optional[str] = None
    order_items: List[OrderItem] = Field(default_factory=list)
    total_price: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    shipping_address: str
    payment_method: str
    created_at: datetime
    updated_at: datetime


# ─────────────────────── REVIEWS ───────────────────────
class ReviewUpdate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewCreate(ReviewUpdate):
    book_id: Id


class Review(BaseModel):
    id: int
    user_id: int
    username: Optional[str] = None
    book_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ─────────────────────── ADMIN ───────────────────────
class AdminStats(BaseModel):
    total_revenue: Decimal
    total_orders: int
    recent_orders: int


class RevenueReport(BaseModel):
    revenue: Decimal
    period: str
