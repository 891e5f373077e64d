# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, CheckConstraint
from database import Base

# Model Product
# A single sellable grocery item. `quantity` is the stock count shown to
# shoppers; orders neither check nor decrement it.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    image = Column(String, nullable=True)
    category = Column(String, nullable=False, index=True)
