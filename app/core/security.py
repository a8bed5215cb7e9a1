"""
Security module — Firebase JWT verification + Mock auth + Role guard.

Auth Flow:
1. Teacher/admin logs in via Firebase → gets JWT
2. Frontend sends JWT to FastAPI
3. FastAPI verifies JWT using Firebase Admin SDK
4. Backend fetches the user profile from Supabase (by firebase_uid)
5. Backend checks the account is active
6. Backend injects: user_id, role, and the name fields used on reports

Mock mode skips Firebase and resolves tokens from MOCK_USERS.
"""

import os
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from app.core.config import settings
from app.core.database import get_supabase

security_scheme = HTTPBearer()

# ---------------------------------------------------------------------------
# Firebase initialization (lazy)
# ---------------------------------------------------------------------------
_firebase_app = None


def _init_firebase():
    global _firebase_app
    if _firebase_app is not None:
        return
    import firebase_admin
    from firebase_admin import credentials as fb_credentials

    cred_path = settings.FIREBASE_CREDENTIALS_PATH
    if os.path.exists(cred_path):
        cred = fb_credentials.Certificate(cred_path)
        _firebase_app = firebase_admin.initialize_app(cred)
    else:
        # Try default credentials
        _firebase_app = firebase_admin.initialize_app()


# ---------------------------------------------------------------------------
# Mock users (for demo / local runs without Firebase)
# ---------------------------------------------------------------------------
MOCK_USERS = {
    "teacher-token": {
        "uid": "teacher-firebase-uid",
        "user_id": "t0000000-0000-0000-0000-000000000001",
        "email": "amina.okafor@school.test",
        "role": "teacher",
        "name": "Amina Okafor",
    },
    "admin-token": {
        "uid": "admin-firebase-uid",
        "user_id": "a0000000-0000-0000-0000-000000000001",
        "email": "admin@school.test",
        "role": "admin",
        "name": "School Admin",
    },
}


def _user_from_row(row: dict, uid: str) -> dict:
    return {
        "uid": uid,
        "user_id": row["id"],
        "email": row.get("email", ""),
        "role": row["role"],
        "name": row.get("name"),
        "display_name": row.get("display_name"),
        "first_name": row.get("first_name"),
        "last_name": row.get("last_name"),
    }


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------
async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> dict:
    """
    Validate the Bearer token and return the user dict.
    Only registered, active users can authenticate.
    """
    token = credentials.credentials

    if settings.AUTH_MODE == "mock":
        return await _mock_auth(token)

    return await _firebase_auth(token)


async def _mock_auth(token: str) -> dict:
    user = MOCK_USERS.get(token)
    if user:
        return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token. Only registered school staff can login.",
    )


async def _firebase_auth(token: str) -> dict:
    """Firebase mode: verify JWT, fetch profile from Supabase, enforce is_active."""
    _init_firebase()
    from firebase_admin import auth as fb_auth

    try:
        decoded = fb_auth.verify_id_token(token)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase token",
        )

    uid = decoded["uid"]

    db = get_supabase()
    result = (
        db.table("users")
        .select("*")
        .eq("firebase_uid", uid)
        .maybe_single()
        .execute()
    )

    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not registered in this school. Contact your administrator.",
        )

    user_data = result.data

    if not user_data.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Contact your administrator.",
        )

    user = _user_from_row(user_data, uid)
    user["email"] = user["email"] or decoded.get("email", "")
    return user


# ---------------------------------------------------------------------------
# Role guard dependency
# ---------------------------------------------------------------------------
def require_role(allowed_roles: list[str]):
    """
    Usage:
        @router.get("/admin-only")
        async def endpoint(user=Depends(require_role(["admin"]))):
    """

    async def role_checker(
        user: dict = Depends(get_current_user),
    ) -> dict:
        if user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user['role']}' not authorized. Required: {allowed_roles}",
            )
        return user

    return role_checker
