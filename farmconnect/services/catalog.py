"""Product catalog lookups used by the contact request lifecycle."""
from sqlalchemy.orm import Session

from farmconnect.errors import NotFoundError
from farmconnect.models.product import Product


def get_product(db: Session, product_id: str) -> Product:
    """Return the product with its owning farmer, or raise NotFoundError."""
    product = db.query(Product).filter(Product.product_id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product
