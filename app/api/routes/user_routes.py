"""
User Administration Routes

GET /users/inactive - Deactivated accounts
PATCH /users/{user_id}/reactivate - Restore an account
PATCH /users/{user_id}/deactivate - Suspend an account
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_backend_client, require_token
from app.services.backend_client import BackendClient
from app.schemas.schemas import User

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(require_token)])


@router.get("/inactive", response_model=List[User])
def list_inactive_users(backend: BackendClient = Depends(get_backend_client)):
    return backend.users.list_inactive()


@router.patch("/{user_id}/reactivate", response_model=User)
def reactivate_user(user_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.users.reactivate(user_id)


@router.patch("/{user_id}/deactivate", response_model=User)
def deactivate_user(user_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.users.deactivate(user_id)
