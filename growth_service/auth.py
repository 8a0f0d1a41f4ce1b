# auth.py
import uuid

from fastapi import Depends, HTTPException, Request
from passlib.context import CryptContext

# ---------------------------------------------------------
# Password Hashing
# ---------------------------------------------------------
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
MAX_BCRYPT_BYTES = 72  # bcrypt limit


def hash_password(password: str) -> str:
    """Hash password safely & check 72-byte bcrypt rule."""
    if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"Password too long. Max {MAX_BCRYPT_BYTES} bytes allowed."
        )
    return pwd_context.hash(password)


# ------------------------
# Dependencies: Current User
# ------------------------
def get_current_user(request: Request):
    """
    Reads caller identity forwarded by the frontend/gateway:
    x-user-id, x-user-role, x-trace-id
    """
    user_id = request.headers.get("x-user-id")
    role = request.headers.get("x-user-role")
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get("x-trace-id") or str(uuid.uuid4())
    return {"id": user_id, "role": role, "trace_id": trace_id}


def admin_required(user=Depends(get_current_user)):
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Forbidden: Admins only")
    return user
