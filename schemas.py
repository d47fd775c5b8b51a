"""
Database Schemas

MongoDB collection schemas as Pydantic models.
Model name is converted to lowercase for the collection name:
- Book -> "book" collection
- Order -> "order" collection

Fields are snake_case in Python and camelCase on the wire and in the
database (coverImage, totalAmount, orderStatus, ...).
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Book(CamelModel):
    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(..., min_length=1, description="Author name")
    description: Optional[str] = Field(None, description="Description")
    price: float = Field(..., ge=0, description="Price")
    stock: int = Field(..., ge=0, description="Stock count")
    category: Optional[str] = Field(None, description="Category")
    cover_image: Optional[str] = Field("", description="Path of the uploaded cover, e.g. /uploads/<name>")


class BookUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    cover_image: Optional[str] = None


class Delivery(CamelModel):
    full_name: Optional[str] = ""
    phone: Optional[str] = ""
    address1: Optional[str] = ""
    address2: Optional[str] = ""
    city: Optional[str] = ""
    postal_code: Optional[str] = ""
    country: Optional[str] = ""


class OrderItem(CamelModel):
    book_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("bookId", "book_id", "id", "_id"),
        serialization_alias="bookId",
        description="Referenced Book id as string",
    )
    title: str = Field(..., description="Snapshot of book title")
    quantity: int = Field(..., ge=1, description="Quantity ordered")
    price: float = Field(..., ge=0, description="Unit price at time of add-to-cart")


class Order(CamelModel):
    user_id: Optional[str] = Field(None, description="Owner, when an account system supplies one")
    books: List[OrderItem] = Field(default_factory=list)
    delivery: Delivery = Field(default_factory=Delivery)
    total_amount: float = Field(..., ge=0)
    payment_id: Optional[str] = None
    order_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    order_status: str = "Processing"


class OrderCreate(CamelModel):
    cart: List[OrderItem] = Field(default_factory=list)
    delivery: Delivery = Field(default_factory=Delivery)
    payment_id: Optional[str] = None
    total_amount: Optional[float] = Field(None, ge=0)
    user_id: Optional[str] = None


class CheckoutItem(CamelModel):
    title: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class CheckoutRequest(CamelModel):
    cart: Optional[List[CheckoutItem]] = None
    delivery: Delivery = Field(default_factory=Delivery)
