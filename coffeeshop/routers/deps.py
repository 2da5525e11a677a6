"""
Shared route dependencies: database session and the authenticated user.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.core.exceptions import AuthenticationError
from coffeeshop.core.security import decode_access_token
from coffeeshop.database import get_db
from coffeeshop.models import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve ``Authorization: Bearer <token>`` to a user.

    Raises:
        AuthenticationError: Missing header, bad or expired token, or the
            account no longer exists
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authorization header")

    user_id = decode_access_token(credentials.credentials)
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Invalid token")
    return user
