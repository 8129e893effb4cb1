import logging

from fastapi import Depends, HTTPException, status

from bookstore.models.user import User
from bookstore.utils.token import get_current_user

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Gate for back-office routes: order status, hardcopy returns, store settings."""
    if current_user.role != ADMIN_ROLE:
        logger.warning(f"User {current_user.id} denied admin access")
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Admin access required")
    return current_user
