"""
Recruiting Backend Client

Typed wrapper around the backend REST API (/api/...).

- JSON in, JSON out; bearer token on every call when we have one
- Non-2xx answers become BackendError carrying the backend's own message
- {success, data} and {data, pagination} envelopes are unwrapped
- Payloads are validated into our schemas; a mismatch is a
  BackendContractError rather than silently passed-through data

Endpoints are grouped the way the backend groups them:
client.positions.list(), client.applications.submit(...), ...
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from app.core.exceptions import BackendContractError, BackendError
from app.schemas.schemas import (
    Application, ApplicationCreate, ApplicationEvaluate, ApplicationSubmitResponse,
    Company, CompanyCreate, CompanyUpdate, Id, LoginRequest, LoginResponse,
    MessageResponse, NewsCreate, NewsItem, NewsUpdate, Position, PositionCreate,
    PositionDeactivateResponse, PositionUpdate, RegisterResponse,
    StudentRegisterRequest, User
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PATHS = {
    "auth": "/api/auth",
    "companies": "/api/companies",
    "positions": "/api/jobs/positions",
    "users": "/api/users",
    "news": "/api/news",
    "applications": "/api/applications",
}


def ensure_id(value: Optional[Id], label: str = "id") -> str:
    """Path-safe id; blank ids are rejected before any request is made."""
    text = str(value if value is not None else "").strip()
    if not text:
        raise ValueError(f"Missing {label}.")
    return text


def extract_error_message(body: Any, status_code: int) -> str:
    """Best human-readable message from a backend error body."""
    message = ""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = error.get("message") or ""
        elif isinstance(error, str):
            message = error
        if not message:
            message = body.get("message") or ""
        if not message:
            errors = body.get("errors")
            if isinstance(errors, list) and errors and isinstance(errors[0], dict):
                message = errors[0].get("message") or ""
    return message or f"HTTP {status_code} error"


def test_backend_connection(base_url: str, timeout: float = 5.0) -> bool:
    """
    Test if the backend answers at all (any HTTP status counts).
    Returns True if reachable, False otherwise.
    """
    try:
        httpx.get(base_url, timeout=timeout)
        return True
    except httpx.HTTPError as e:
        logger.warning("Backend connection failed: %s", e)
        return False


def unwrap_envelope(body: Any) -> Any:
    if isinstance(body, dict) and "data" in body:
        if body.get("success") is True:
            return body["data"]
        if "pagination" in body and isinstance(body["data"], list):
            return body["data"]
    return body


def _dump(payload: BaseModel, partial: bool = False) -> dict:
    return payload.model_dump(mode="json", by_alias=True, exclude_unset=partial, exclude_none=not partial)


class BackendClient:
    """One client per caller token. Use as a context manager or call close()."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

        self.auth = AuthApi(self)
        self.positions = PositionsApi(self)
        self.applications = ApplicationsApi(self)
        self.companies = CompaniesApi(self)
        self.users = UsersApi(self)
        self.news = NewsApi(self)

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ---------------- transport ----------------

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        anonymous: bool = False,
    ) -> Any:
        """Send one request and return the unwrapped JSON body."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        request = self._http.build_request(method, path, params=query or None, json=json)
        if anonymous:
            request.headers.pop("Authorization", None)

        try:
            resp = self._http.send(request)
        except httpx.HTTPError as exc:
            logger.error("Backend request %s %s failed: %s", method, path, exc)
            raise BackendError(502, f"Backend unreachable: {exc}") from exc

        body = self._decode(resp)
        if resp.is_error:
            message = extract_error_message(body, resp.status_code)
            logger.info("Backend %s %s -> %d: %s", method, path, resp.status_code, message)
            raise BackendError(resp.status_code, message)
        return unwrap_envelope(body)

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        if "application/json" in resp.headers.get("content-type", ""):
            try:
                return resp.json()
            except ValueError:
                return None
        return resp.text

    def parse(self, schema: Type[T], data: Any) -> T:
        """Validate backend data into `schema` (a model or e.g. List[Model])."""
        try:
            return TypeAdapter(schema).validate_python(data)
        except ValidationError as exc:
            logger.error("Backend payload does not match %s: %s", schema, exc)
            raise BackendContractError(f"Unexpected backend response: {exc.error_count()} invalid field(s)") from exc

    def message(self, data: Any, default: str) -> MessageResponse:
        if isinstance(data, dict) and data.get("message"):
            return MessageResponse(message=str(data["message"]))
        return MessageResponse(message=default)


class _Resource:
    def __init__(self, client: BackendClient):
        self.client = client


# ============================================================
# RESOURCE GROUPS
# ============================================================

class AuthApi(_Resource):
    def login(self, payload: LoginRequest) -> LoginResponse:
        data = self.client.request("POST", f"{PATHS['auth']}/login", json=_dump(payload), anonymous=True)
        return self.client.parse(LoginResponse, data)

    def register_student(self, payload: StudentRegisterRequest) -> RegisterResponse:
        data = self.client.request("POST", f"{PATHS['auth']}/register", json=_dump(payload), anonymous=True)
        return self.client.parse(RegisterResponse, data)


class PositionsApi(_Resource):
    base = PATHS["positions"]

    def list(self, params: Optional[dict] = None) -> List[Position]:
        return self.client.parse(List[Position], self.client.request("GET", self.base, params=params))

    def list_public(self, params: Optional[dict] = None) -> List[Position]:
        """Public listing; sent without credentials."""
        data = self.client.request("GET", self.base, params=params, anonymous=True)
        return self.client.parse(List[Position], data if isinstance(data, list) else [])

    def list_dual(self, params: Optional[dict] = None) -> List[Position]:
        return self.client.parse(List[Position], self.client.request("GET", f"{self.base}/dual", params=params))

    def list_non_dual(self, params: Optional[dict] = None) -> List[Position]:
        return self.client.parse(List[Position], self.client.request("GET", f"{self.base}/non-dual", params=params))

    def get(self, position_id: Id) -> Position:
        path = f"{self.base}/{ensure_id(position_id, 'positionId')}"
        return self.client.parse(Position, self.client.request("GET", path))

    def list_by_company(self, company_id: Id, params: Optional[dict] = None) -> List[Position]:
        path = f"{self.base}/company/{ensure_id(company_id, 'companyId')}"
        return self.client.parse(List[Position], self.client.request("GET", path, params=params))

    def create(self, payload: PositionCreate) -> Position:
        return self.client.parse(Position, self.client.request("POST", self.base, json=_dump(payload)))

    def update(self, position_id: Id, payload: PositionUpdate) -> Position:
        path = f"{self.base}/{ensure_id(position_id, 'positionId')}"
        return self.client.parse(Position, self.client.request("PATCH", path, json=_dump(payload, partial=True)))

    def remove(self, position_id: Id) -> MessageResponse:
        data = self.client.request("DELETE", f"{self.base}/{ensure_id(position_id, 'positionId')}")
        return self.client.message(data, "Position deleted")

    def deactivate(self, position_id: Id) -> PositionDeactivateResponse:
        path = f"{self.base}/{ensure_id(position_id, 'positionId')}/deactivate"
        return self.client.parse(PositionDeactivateResponse, self.client.request("PATCH", path, json={}))


class ApplicationsApi(_Resource):
    base = PATHS["applications"]

    def submit(self, payload: ApplicationCreate) -> ApplicationSubmitResponse:
        data = self.client.request("POST", self.base, json=_dump(payload))
        return self.client.parse(ApplicationSubmitResponse, data)

    def list(self, params: Optional[dict] = None) -> List[Application]:
        return self.client.parse(List[Application], self.client.request("GET", self.base, params=params))

    def list_my(self, params: Optional[dict] = None) -> List[Application]:
        return self.client.parse(List[Application], self.client.request("GET", f"{self.base}/my", params=params))

    def list_company(self, params: Optional[dict] = None) -> List[Application]:
        data = self.client.request("GET", f"{self.base}/company", params=params)
        return self.client.parse(List[Application], data)

    def get_company_application(self, application_id: Id) -> Application:
        path = f"{self.base}/company/{ensure_id(application_id, 'applicationId')}"
        return self.client.parse(Application, self.client.request("GET", path))

    def evaluate(self, application_id: Id, payload: ApplicationEvaluate) -> Application:
        path = f"{self.base}/company/{ensure_id(application_id, 'applicationId')}/evaluate"
        return self.client.parse(Application, self.client.request("PATCH", path, json=_dump(payload)))

    def retract(self, application_id: Id) -> Application:
        path = f"{self.base}/{ensure_id(application_id, 'applicationId')}/retract"
        return self.client.parse(Application, self.client.request("PATCH", path, json={}))


class CompaniesApi(_Resource):
    base = PATHS["companies"]

    def list(self, params: Optional[dict] = None) -> List[Company]:
        return self.client.parse(List[Company], self.client.request("GET", self.base, params=params))

    def get(self, company_id: Id) -> Company:
        path = f"{self.base}/{ensure_id(company_id, 'companyId')}"
        return self.client.parse(Company, self.client.request("GET", path))

    def create(self, payload: CompanyCreate) -> Company:
        return self.client.parse(Company, self.client.request("POST", self.base, json=_dump(payload)))

    def update(self, company_id: Id, payload: CompanyUpdate) -> Company:
        path = f"{self.base}/{ensure_id(company_id, 'companyId')}"
        return self.client.parse(Company, self.client.request("PATCH", path, json=_dump(payload, partial=True)))

    def remove(self, company_id: Id) -> MessageResponse:
        data = self.client.request("DELETE", f"{self.base}/{ensure_id(company_id, 'companyId')}")
        return self.client.message(data, "Company deleted")


class UsersApi(_Resource):
    base = PATHS["users"]

    def list_inactive(self, params: Optional[dict] = None) -> List[User]:
        return self.client.parse(List[User], self.client.request("GET", f"{self.base}/inactive", params=params))

    def reactivate(self, user_id: Id) -> User:
        path = f"{self.base}/{ensure_id(user_id, 'userId')}/reactivate"
        return self.client.parse(User, self.client.request("PATCH", path, json={}))

    def deactivate(self, user_id: Id) -> User:
        path = f"{self.base}/{ensure_id(user_id, 'userId')}/deactivate"
        return self.client.parse(User, self.client.request("PATCH", path, json={}))


class NewsApi(_Resource):
    base = PATHS["news"]

    def list(self, params: Optional[dict] = None) -> List[NewsItem]:
        return self.client.parse(List[NewsItem], self.client.request("GET", self.base, params=params))

    def get(self, news_id: Id) -> NewsItem:
        path = f"{self.base}/{ensure_id(news_id, 'newsId')}"
        return self.client.parse(NewsItem, self.client.request("GET", path))

    def admin_list(self, params: Optional[dict] = None) -> List[NewsItem]:
        return self.client.parse(List[NewsItem], self.client.request("GET", f"{self.base}/admin", params=params))

    def admin_list_archived(self, params: Optional[dict] = None) -> List[NewsItem]:
        data = self.client.request("GET", f"{self.base}/admin/archived", params=params)
        return self.client.parse(List[NewsItem], data)

    def admin_create(self, payload: NewsCreate) -> NewsItem:
        data = self.client.request("POST", f"{self.base}/admin", json=_dump(payload))
        return self.client.parse(NewsItem, data)

    def admin_update(self, news_id: Id, payload: NewsUpdate) -> NewsItem:
        path = f"{self.base}/admin/{ensure_id(news_id, 'newsId')}"
        return self.client.parse(NewsItem, self.client.request("PATCH", path, json=_dump(payload, partial=True)))

    def archive(self, news_id: Id) -> MessageResponse:
        data = self.client.request("PATCH", f"{self.base}/admin/{ensure_id(news_id, 'newsId')}/archive", json={})
        return self.client.message(data, "News archived")

    def unarchive(self, news_id: Id) -> MessageResponse:
        data = self.client.request("PATCH", f"{self.base}/admin/{ensure_id(news_id, 'newsId')}/unarchive", json={})
        return self.client.message(data, "News restored")

    def remove(self, news_id: Id) -> MessageResponse:
        data = self.client.request("DELETE", f"{self.base}/admin/{ensure_id(news_id, 'newsId')}")
        return self.client.message(data, "News deleted")
