import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from sqlalchemy.orm import Session, joinedload

from .config import ADMIN_ROLE_NAME, DEFAULT_ROLE_NAME, FIREBASE_PROJECT_ID
from .database import get_db
from .firebase import get_firebase_app
from .models import User

logger = logging.getLogger(__name__)

security = HTTPBearer()


def verify_firebase_token(token: str) -> dict:
    """Verify a Firebase ID token (signature, audience, expiry) and return its claims"""
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    try:
        return firebase_auth.verify_id_token(token, app=get_firebase_app())
    except firebase_auth.ExpiredIdTokenError as e:
        logger.warning("⚠️ Expired Firebase token")
        raise HTTPException(status_code=401, detail="Token expired") from e
    except (firebase_auth.InvalidIdTokenError, ValueError) as e:
        logger.error(f"❌ Token verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid authentication token") from e


async def get_decoded_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Decoded Firebase claims for the bearer token"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    decoded_token = verify_firebase_token(token)

    # Firebase ID tokens use 'sub' as the user ID claim; the Admin SDK also exposes 'uid'
    firebase_uid = decoded_token.get("uid") or decoded_token.get("sub") or decoded_token.get("user_id")
    if not firebase_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(decoded_token.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    decoded_token["uid"] = firebase_uid
    return decoded_token


async def get_current_user(
    decoded_token: dict = Depends(get_decoded_token),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user's profile.

    Read-only: profiles are created by POST /auth/provision, never here.
    """
    user = (
        db.query(User)
        .filter(User.firebase_uid == decoded_token["uid"])
        .options(joinedload(User.role))
        .first()
    )
    if not user:
        logger.warning(f"⚠️ No profile for Firebase UID {decoded_token['uid']}")
        raise HTTPException(
            status_code=403,
            detail="User profile not provisioned. Call POST /auth/provision first.",
        )

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


def resolve_role_name(user: User) -> str:
    """Role name for a user, "User" when the role row is missing"""
    if user.role is not None and user.role.name:
        return user.role.name
    return DEFAULT_ROLE_NAME


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if resolve_role_name(user) != ADMIN_ROLE_NAME:
        logger.warning(f"⚠️ User {user.email} attempted an admin-only operation")
        raise HTTPException(status_code=403, detail="Administrator role required")
    return user
