"""
Authentication Routes

POST /auth/login - Login and get JWT token (issued by the backend)
POST /auth/register - Register a student account
GET /auth/me - Claims of the caller's token
"""

from fastapi import APIRouter, Depends

from app.core.auth import get_backend_client, read_token_claims, require_token
from app.services.backend_client import BackendClient
from app.schemas.schemas import (
    CurrentUserResponse, LoginRequest, LoginResponse, RegisterResponse, StudentRegisterRequest
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, backend: BackendClient = Depends(get_backend_client)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    return backend.auth.login(request)


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(request: StudentRegisterRequest, backend: BackendClient = Depends(get_backend_client)):
    """
    Register a new student account.

    Field rules (password length, Neptun code, graduation year) are checked
    here before the backend is called.
    """
    return backend.auth.register_student(request)


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(token: str = Depends(require_token)):
    """Get current authenticated user's info from the token claims."""
    claims = read_token_claims(token) or {}
    user_id = claims.get("userId", claims.get("sub"))
    exp = claims.get("exp")
    return CurrentUserResponse(
        user_id=str(user_id) if user_id is not None else None,
        email=claims.get("email"),
        role=claims.get("role"),
        expires_at=int(exp) if isinstance(exp, (int, float)) else None,
    )
