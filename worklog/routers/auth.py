import os

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from worklog.database import SessionLocal
from worklog.models.user import User, UserStatus
from worklog.services.auth_service import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenRequest(BaseModel):
    user_id: str


@router.post("/token")
def issue_token(payload: TokenRequest):
    """Development helper; production tokens come from the identity provider."""
    env = os.getenv("ENV", "dev").lower()
    if env not in {"dev", "local", "test"}:
        raise HTTPException(status_code=404, detail="Not Found")

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == str(payload.user_id)).first()
    finally:
        db.close()

    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="User is inactive")

    try:
        token = create_access_token(user_id=user.id, role=user.role)
    except Exception as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
    }
