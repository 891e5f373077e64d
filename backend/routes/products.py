# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import fits_integer, get_db, unit_of_work
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from models.product import Product
from schemas.principal import AuthenticatedIdentity
import schemas.product as product_schemas

router = APIRouter(prefix="/api/products", tags=["Products"])


# Public catalogue listing, optionally narrowed to one category
@router.get("", response_model=List[product_schemas.ProductOut])
def list_products(
    category: Optional[str] = Query(None, description="Exact category to filter by"),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if category:
        query = query.filter(Product.category == category)
    items = query.order_by(Product.id.asc()).all()
    return [product_schemas.ProductOut.model_validate(p) for p in items]


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    rows = db.query(Product.category).distinct().order_by(Product.category.asc()).all()
    return [r[0] for r in rows]


@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.get(Product, product_id) if fits_integer(product_id) else None
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product_schemas.ProductOut.model_validate(product)


@router.post("", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AuthenticatedIdentity = Depends(role_required("admin")),
):
    new_product = Product(**payload.model_dump())
    with unit_of_work(db, "Error creating product"):
        db.add(new_product)
    db.refresh(new_product)

    write_log(
        db, user_id=admin.user_id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": new_product.id, "category": new_product.category},
    )
    return product_schemas.ProductOut.model_validate(new_product)


# Carts and orders keep plain product ids, so a delete never touches them
@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AuthenticatedIdentity = Depends(role_required("admin")),
):
    product = db.get(Product, product_id) if fits_integer(product_id) else None
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    with unit_of_work(db, "Error deleting product"):
        db.delete(product)

    write_log(
        db, user_id=admin.user_id, action="PRODUCT_DELETE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
