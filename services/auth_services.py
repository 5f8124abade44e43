import logging
from typing import Dict

from fastapi import Request, HTTPException, status, Depends

from utils.session_manager import get_session

logger = logging.getLogger(__name__)

ROLE_ADMIN = "ADMIN"


def require_auth(request: Request) -> Dict:
    auth_token = request.headers.get("Authorization")

    if not auth_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header"
        )

    session_user = get_session(auth_token)

    if not session_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session token"
        )

    return session_user


def require_admin(session_user: Dict = Depends(require_auth)) -> Dict:
    if session_user.get("role", "").upper() != ROLE_ADMIN:
        logger.warning(f"User {session_user.get('username')} tried an admin-only operation")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return session_user


def user_id(session_user: Dict) -> str:
    # Identities from older tokens only carry a username
    return str(session_user.get("id") or session_user.get("username"))
