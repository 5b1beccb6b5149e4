"""
Pydantic Schemas - Backend records and API request/response validation

All schemas in one file for simplicity. JSON is camelCase on the wire
(backend and our own clients), snake_case in Python.

Records coming from the backend forbid unknown fields, so a change in the
backend contract fails loudly at the boundary instead of leaking through.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Union
from enum import Enum

from app.utils.validation import (
    normalize_neptun, validate_neptun_optional, validate_password,
    validate_required, validate_year
)

Id = Union[int, str]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(CamelModel):
    model_config = ConfigDict(extra="forbid")


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "STUDENT"
    company_admin = "COMPANY_ADMIN"
    university_user = "UNIVERSITY_USER"
    system_admin = "SYSTEM_ADMIN"
    teacher = "TEACHER"
    mentor = "MENTOR"


class ApplicationStatus(str, Enum):
    submitted = "SUBMITTED"
    accepted = "ACCEPTED"
    rejected = "REJECTED"
    no_response = "NO_RESPONSE"


class SearchResultType(str, Enum):
    position = "position"
    company = "company"
    news = "news"


class NewsTargetGroup(str, Enum):
    student = "STUDENT"
    all = "ALL"


class StudyMode(str, Enum):
    full_time = "NAPPALI"
    correspondence = "LEVELEZŐ"


class SortKey(str, Enum):
    newest = "NEWEST"
    deadline_asc = "DEADLINE_ASC"
    deadline_desc = "DEADLINE_DESC"
    title_asc = "TITLE_ASC"


class DeadlineFilter(str, Enum):
    all = "ALL"
    within_7_days = "7D"
    within_30_days = "30D"
    within_90_days = "90D"
    no_deadline = "NO_DEADLINE"


FILTER_ALL = "ALL"


# ============================================================
# SHARED RECORDS
# ============================================================

class Location(Record):
    id: Optional[Id] = None
    country: Optional[str] = None
    zip_code: Optional[Union[int, str]] = None
    city: Optional[str] = None
    address: Optional[str] = None


class Tag(Record):
    name: str
    category: Optional[str] = None


class Coordinates(CamelModel):
    model_config = ConfigDict(allow_inf_nan=False)

    lat: float = Field(..., ge=-90, le=90)
    lng: float


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanySummary(Record):
    id: Optional[Id] = None
    name: str
    logo_url: Optional[str] = None
    locations: List[Location] = []


class Company(Record):
    id: Id
    name: str
    tax_id: Optional[str] = None
    locations: List[Location] = []
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None


class CompanyCreate(Record):
    name: str = Field(..., min_length=2, max_length=200)
    tax_id: str
    locations: List[Location] = []
    contact_name: str
    contact_email: EmailStr
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None


class CompanyUpdate(Record):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    tax_id: Optional[str] = None
    locations: Optional[List[Location]] = None
    contact_name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None


# ============================================================
# POSITION SCHEMAS
# ============================================================

def _coerce_tags(value):
    # Older positions store tags as bare names
    if isinstance(value, list):
        return [{"name": t} if isinstance(t, str) else t for t in value]
    return value


class Position(Record):
    id: Id
    company_id: Optional[Id] = None
    title: str
    description: str = ""
    location: Optional[Location] = None
    deadline: Optional[str] = None  # ISO 8601, may be malformed
    is_dual: bool = False
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tags: List[Tag] = []
    company: Optional[CompanySummary] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return _coerce_tags(value)


class PositionWithCoords(Position):
    latitude: float
    longitude: float


class PositionCreate(Record):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = ""
    location: Location
    deadline: Optional[str] = None
    is_dual: bool = False
    is_active: bool = True
    tags: List[Tag] = []
    company_id: Optional[Id] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return _coerce_tags(value)


class PositionUpdate(Record):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    location: Optional[Location] = None
    deadline: Optional[str] = None
    is_dual: Optional[bool] = None
    is_active: Optional[bool] = None
    tags: Optional[List[Tag]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return _coerce_tags(value)


class PositionDeactivateResponse(Record):
    message: str
    position: Position


class FilterState(CamelModel):
    search: str = ""
    city: str = FILTER_ALL
    company: str = FILTER_ALL
    tag_category: str = FILTER_ALL
    deadline_filter: DeadlineFilter = DeadlineFilter.all
    active_only: bool = True
    selected_tags: List[str] = []
    sort_key: SortKey = SortKey.newest


class Facets(CamelModel):
    cities: List[str] = []
    companies: List[str] = []
    tag_categories: List[str] = []
    tags: List[str] = []


class PositionPage(CamelModel):
    items: List[Position]
    total: int
    page: int
    page_size: int
    facets: Facets


class MapPositionsResponse(CamelModel):
    items: List[PositionWithCoords]
    total: int
    skipped: int
    cancelled: bool = False


# ============================================================
# STUDENT / USER SCHEMAS
# ============================================================

class StudentProfile(Record):
    id: Id
    user_id: Optional[Id] = None
    full_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    mothers_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[Union[int, str]] = None
    city: Optional[str] = None
    street_address: Optional[str] = None
    high_school: Optional[str] = None
    graduation_year: Optional[int] = None
    neptun_code: Optional[str] = None
    current_major: Optional[str] = None
    study_mode: Optional[StudyMode] = None
    has_language_cert: Optional[bool] = None


class CompanyAdminProfile(Record):
    id: Id
    user_id: Optional[Id] = None
    company_id: Optional[Id] = None
    full_name: Optional[str] = None
    email: Optional[str] = None


class UniversityUserProfile(Record):
    id: Id
    user_id: Optional[Id] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None


class User(Record):
    id: Id
    email: str
    role: UserRole
    is_active: bool
    deleted_at: Optional[str] = None
    student: Optional[StudentProfile] = None
    company_admin: Optional[CompanyAdminProfile] = None
    university_user: Optional[UniversityUserProfile] = None


# ============================================================
# AUTH SCHEMAS
# ============================================================

class LoginRequest(Record):
    email: EmailStr
    password: str


class LoginUser(Record):
    id: Id
    email: str
    role: UserRole


class LoginResponse(Record):
    message: str
    token: str
    user: LoginUser


class StudentRegisterRequest(Record):
    email: EmailStr
    password: str
    full_name: str
    phone_number: str
    role: UserRole = UserRole.student
    mothers_name: str
    date_of_birth: str  # YYYY-MM-DD
    country: str
    zip_code: int
    city: str
    street_address: str
    high_school: str
    graduation_year: int
    neptun_code: Optional[str] = None
    current_major: str
    study_mode: StudyMode
    has_language_cert: bool = False

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        error = validate_password(value)
        if error:
            raise ValueError(error)
        return value

    @field_validator("full_name", "phone_number", "mothers_name", "city", "street_address",
                     "high_school", "current_major")
    @classmethod
    def check_required(cls, value: str, info) -> str:
        error = validate_required(value, info.field_name)
        if error:
            raise ValueError(error)
        return value.strip()

    @field_validator("graduation_year")
    @classmethod
    def check_graduation_year(cls, value: int) -> int:
        error = validate_year(value, "Graduation year")
        if error:
            raise ValueError(error)
        return value

    @field_validator("neptun_code")
    @classmethod
    def check_neptun(cls, value: Optional[str]) -> Optional[str]:
        error = validate_neptun_optional(value)
        if error:
            raise ValueError(error)
        return normalize_neptun(value) if value and value.strip() else None

    @field_validator("role")
    @classmethod
    def check_student_role(cls, value: UserRole) -> UserRole:
        if value != UserRole.student:
            raise ValueError("Only student accounts can self-register")
        return value


class RegisterResponse(Record):
    message: str
    user_id: Optional[Id] = None
    role: Optional[UserRole] = None


class CurrentUserResponse(CamelModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    expires_at: Optional[int] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationPositionCompany(Record):
    name: str
    logo_url: Optional[str] = None


class ApplicationPosition(Record):
    id: Id
    title: str
    company: ApplicationPositionCompany


class Application(Record):
    id: Id
    position_id: Id
    student_id: Id
    status: ApplicationStatus
    student_note: Optional[str] = None
    company_note: Optional[str] = None
    created_at: Optional[str] = None
    position: Optional[ApplicationPosition] = None
    student: Optional[StudentProfile] = None


class ApplicationCreate(Record):
    position_id: Id
    student_note: Optional[str] = Field(None, max_length=2000)


class ApplicationEvaluate(Record):
    status: ApplicationStatus
    company_note: Optional[str] = Field(None, max_length=2000)


class ApplicationSubmitResponse(Record):
    message: str
    application: Application


# ============================================================
# NEWS SCHEMAS
# ============================================================

class NewsItem(Record):
    id: Id
    title: str
    content: str
    tags: List[str] = []
    target_group: NewsTargetGroup
    important: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class NewsCreate(Record):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    tags: List[str] = []
    target_group: NewsTargetGroup = NewsTargetGroup.all
    important: bool = False


class NewsUpdate(Record):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    target_group: Optional[NewsTargetGroup] = None
    important: Optional[bool] = None


# ============================================================
# GEO SCHEMAS
# ============================================================

class GeocodeResponse(CamelModel):
    city: str
    address: str
    coordinates: Optional[Coordinates] = None
    source: Optional[str] = None


class DistanceRequest(CamelModel):
    origin: Coordinates
    destination: Coordinates


class DistanceResponse(CamelModel):
    distance_km: float


class PositionDistanceResponse(CamelModel):
    position_id: Id
    company_coordinates: Optional[Coordinates] = None
    distance_km: Optional[float] = None
    message: Optional[str] = None


# ============================================================
# SEARCH SCHEMAS
# ============================================================

class SearchResult(CamelModel):
    type: SearchResultType
    id: Id
    title: str
    subtitle: str


class SearchResponse(CamelModel):
    query: str
    results: List[SearchResult]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(CamelModel):
    message: str
    success: bool = True
