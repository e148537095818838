"""Product API routes — the minimal catalog contact requests point at."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from farmconnect.database import get_db
from farmconnect.dependencies import get_current_user
from farmconnect.models.product import Product
from farmconnect.models.user import User, UserRole
from farmconnect.schemas.product import ProductCreate, ProductOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List a product; only farmers sell."""
    if current_user.role != UserRole.farmer:
        raise HTTPException(status_code=403, detail="Only farmers can list products")
    product = Product(
        farmer_id=current_user.user_id,
        name=payload.name,
        minimum_order_quantity=payload.minimum_order_quantity,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Farmer %s listed product %s (%s)", current_user.user_id, product.product_id, product.name)
    return product


@router.get("/", response_model=list[ProductOut])
def list_products(farmer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    query = db.query(Product)
    if farmer_id:
        query = query.filter(Product.farmer_id == farmer_id)
    return query.order_by(Product.created_at.desc()).all()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.product_id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
