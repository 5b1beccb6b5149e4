"""
Company Routes

GET /companies - List companies
GET /companies/{company_id} - Company details
POST /companies - Create company (admin)
PATCH /companies/{company_id} - Update company
DELETE /companies/{company_id} - Delete company
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_backend_client, require_token
from app.services.backend_client import BackendClient
from app.schemas.schemas import Company, CompanyCreate, CompanyUpdate, MessageResponse

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.get("", response_model=List[Company])
def list_companies(backend: BackendClient = Depends(get_backend_client)):
    return backend.companies.list()


@router.get("/{company_id}", response_model=Company)
def get_company(company_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.companies.get(company_id)


@router.post("", response_model=Company, status_code=201, dependencies=[Depends(require_token)])
def create_company(data: CompanyCreate, backend: BackendClient = Depends(get_backend_client)):
    """Create a company with its sites. Locations drive the position map."""
    return backend.companies.create(data)


@router.patch("/{company_id}", response_model=Company, dependencies=[Depends(require_token)])
def update_company(company_id: str, data: CompanyUpdate, backend: BackendClient = Depends(get_backend_client)):
    """Update company profile. Only the fields sent are changed."""
    return backend.companies.update(company_id, data)


@router.delete("/{company_id}", response_model=MessageResponse, dependencies=[Depends(require_token)])
def delete_company(company_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.companies.remove(company_id)
