"""
Schemas for the Lumière storefront session

Products and orders mirror the JSON documents exchanged with the store API.
Prices are integer amounts in INR minor units; there is one currency only.
"""
from typing import List, Optional, Union
from pydantic import BaseModel, Field


class Product(BaseModel):
    """Jewelry product as served by GET /api/products"""
    id: int = Field(..., description="Unique product id")
    category: str = Field(..., description="Category (e.g., 'Rings', 'Necklaces', 'Earrings')")
    name: str = Field(..., description="Display name")
    price: int = Field(..., ge=0, description="Price in INR")
    story: str = Field(..., description="Short marketing description")
    stock_quantity: int = Field(..., ge=0, description="Units in stock")


class ProductListResponse(BaseModel):
    success: bool
    data: List[Product]


class CartLine(BaseModel):
    """Cart entry with the price captured when the product was first added"""
    id: int = Field(..., description="Product id")
    name: str
    category: str
    price: int = Field(..., ge=0)
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class CartTotals(BaseModel):
    subtotal: int = 0
    count: int = 0


class CheckoutForm(BaseModel):
    name: str = ""
    email: str = ""
    mobile: str = ""
    address1: str = ""
    address2: str = ""
    pincode: str = ""


class OrderItem(BaseModel):
    id: int
    name: str
    category: str
    price: int = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class OrderRequest(BaseModel):
    customer: CheckoutForm
    items: List[OrderItem]
    subtotal: int = Field(..., ge=0)
    shipping_cost: int = Field(0, ge=0)
    total: int = Field(..., ge=0)


class OrderRef(BaseModel):
    id: Union[str, int]


class OrderResponse(BaseModel):
    success: bool
    order: Optional[OrderRef] = None
    error: Optional[str] = None


class OrderConfirmation(BaseModel):
    """What the shopper sees once an order is accepted"""
    order_id: str
    total: int
    item_count: int
