"""
Application Routes

POST /applications - Apply to a position (student)
GET /applications/my - Own applications (student)
GET /applications/company - Applications received (company admin)
GET /applications/company/{application_id} - One received application
PATCH /applications/company/{application_id}/evaluate - Accept / reject
PATCH /applications/{application_id}/retract - Withdraw own application
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_backend_client, require_token
from app.services.backend_client import BackendClient
from app.schemas.schemas import (
    Application, ApplicationCreate, ApplicationEvaluate, ApplicationStatus,
    ApplicationSubmitResponse
)

router = APIRouter(
    prefix="/applications",
    tags=["Applications"],
    dependencies=[Depends(require_token)],
)


@router.post("", response_model=ApplicationSubmitResponse, status_code=201)
def submit_application(payload: ApplicationCreate, backend: BackendClient = Depends(get_backend_client)):
    """Apply to a position. The backend rejects duplicates and closed positions."""
    return backend.applications.submit(payload)


@router.get("/my", response_model=List[Application])
def my_applications(backend: BackendClient = Depends(get_backend_client)):
    return backend.applications.list_my()


@router.get("/company", response_model=List[Application])
def company_applications(
    status: Optional[ApplicationStatus] = Query(None),
    position_id: Optional[str] = Query(None, alias="positionId"),
    backend: BackendClient = Depends(get_backend_client),
):
    """Applications received by the caller's company."""
    params = {
        "status": status.value if status else None,
        "positionId": position_id,
    }
    return backend.applications.list_company(params)


@router.get("/company/{application_id}", response_model=Application)
def company_application(application_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.applications.get_company_application(application_id)


@router.patch("/company/{application_id}/evaluate", response_model=Application)
def evaluate_application(
    application_id: str,
    payload: ApplicationEvaluate,
    backend: BackendClient = Depends(get_backend_client),
):
    """Set the outcome of an application, with an optional note to the student."""
    return backend.applications.evaluate(application_id, payload)


@router.patch("/{application_id}/retract", response_model=Application)
def retract_application(application_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.applications.retract(application_id)
