"""User API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from farmconnect.database import get_db
from farmconnect.models.user import User, UserRole
from farmconnect.schemas.user import UserCreate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a user with a marketplace role."""
    if db.query(User).filter(User.display_name == payload.display_name).first():
        raise HTTPException(status_code=409, detail="Display name already taken")
    user = User(display_name=payload.display_name, role=UserRole(payload.role))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s %s (%s)", user.role.value, user.user_id, user.display_name)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users."""
    return db.query(User).order_by(User.display_name).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
