"""Caller identity resolution.

The identity provider is external; callers present their user id in the
``X-User-Id`` header and the role is read from the users table.
"""
from fastapi import Depends, HTTPException, Security, status
from fastapi.security.api_key import APIKeyHeader
from sqlalchemy.orm import Session

from farmconnect.database import get_db
from farmconnect.models.user import User

USER_ID_HEADER = "X-User-Id"
_user_id_header = APIKeyHeader(name=USER_ID_HEADER, auto_error=False)


def get_current_user(
    user_id: str = Security(_user_id_header),
    db: Session = Depends(get_db),
) -> User:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user
