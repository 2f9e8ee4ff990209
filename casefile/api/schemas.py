"""
Request/response models for the record API, including form validation rules.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.schema import CATEGORIES

PHONE_PATTERN = re.compile(r"^[0-9+-]+$")


class RecordForm(BaseModel):
    """Candidate record as submitted by the add/edit form (no id)."""
    model_config = ConfigDict(populate_by_name=True, validate_default=True)

    name: str = ""
    phone: str = ""
    case_details: str = Field("", alias="caseDetails")
    image: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    created_at: Optional[int] = Field(None, alias="createdAt")

    @field_validator('name')
    @classmethod
    def name_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('name cannot be empty')
        return v.strip()

    @field_validator('phone')
    @classmethod
    def phone_must_be_valid(cls, v):
        if not v.strip():
            raise ValueError('phone cannot be empty')
        if not PHONE_PATTERN.match(v.strip()):
            raise ValueError('Please enter a valid phone number')
        return v.strip()

    @field_validator('case_details')
    @classmethod
    def case_details_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('case details cannot be empty')
        return v

    @field_validator('category')
    @classmethod
    def category_must_be_valid(cls, v):
        if v in (None, ""):
            return v
        if v not in CATEGORIES:
            raise ValueError(f'category must be one of: {CATEGORIES}')
        return v


class RecordResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str
    phone: str
    case_details: str = Field(alias="caseDetails")
    image: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: Optional[int] = Field(None, alias="createdAt")


class RecordListResponse(BaseModel):
    records: List[RecordResponse]
    count: int
    total: int


class MutationResponse(BaseModel):
    success: bool
    operation: str
    count: int
    record_id: Optional[str] = None
    changed: bool = True
    image_stripped: bool = False


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    record_count: int


class DiagnosticsResponse(BaseModel):
    storage_key: str
    record_count: int
    usage_bytes: int
    first_record_id: Optional[str] = None
    first_record_name: Optional[str] = None


class CountEntry(BaseModel):
    name: str
    count: int


class StatsResponse(BaseModel):
    time_range: str
    total: int
    category_counts: Dict[str, int]
    tag_counts: Dict[str, int]
    top_tags: List[CountEntry]
    records_by_day: List[CountEntry]
    records_by_month: List[CountEntry]
    recent: List[RecordResponse]


class ValidationFieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    error_type: str
    message: str
    timestamp: datetime = None
    details: Optional[Dict[str, Any]] = None

    def __init__(self, **data):
        super().__init__(timestamp=datetime.now(), **data)
