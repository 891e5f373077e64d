from pydantic import Field
from typing import List, Optional
from datetime import datetime

from schemas.common import ApiModel


# Output schema for an individual order line (snapshot taken at checkout)
class OrderItemOut(ApiModel):
    product_id: int
    quantity: int
    unit_price: float


# Input schema for placing an order from the current cart
class OrderCreatePayload(ApiModel):
    address: Optional[str] = None
    payment_method: Optional[str] = None

# Output schema representing the full order details
class OrderResponse(ApiModel):
    id: int
    items: List[OrderItemOut]
    total_price: float
    address: Optional[str] = None
    payment_method: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

class OrderPlacedResponse(ApiModel):
    message: str
    order: OrderResponse

# Schema for updating order status
class OrderStatusPatch(ApiModel):
    status: str = Field(..., min_length=1)
