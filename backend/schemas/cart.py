from pydantic import Field
from typing import List, Optional

from schemas.common import ApiModel

# Request schema for adding an item to the cart.
# Quantity is checked by the cart service so a bad value maps to InvalidState.
class CartAddItem(ApiModel):
    product_id: int
    quantity: int = 1

# Request schema for updating a cart line quantity
class CartUpdateItem(ApiModel):
    quantity: int

# One stored line: product reference + quantity
class CartLineOut(ApiModel):
    product_id: int
    quantity: int

# Stored cart as returned after a change
class CartOut(ApiModel):
    user_id: str
    items: List[CartLineOut] = Field(default_factory=list)

# Cart line resolved against the catalogue; product fields are null for
# lines whose product has been removed
class CartViewItem(ApiModel):
    product_id: int
    name: Optional[str] = None
    price: Optional[float] = None
    quantity: int
    image: Optional[str] = None
