# backend/schemas/product.py
from pydantic import Field
from typing import Optional

from schemas.common import ApiModel


# Shared base attributes for product entities
class ProductBase(ApiModel):
    name: str
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    image: Optional[str] = None
    category: str = Field(..., min_length=1)


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
