from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union, Literal, Annotated
from datetime import datetime, date


class SubjectSummary(BaseModel):
    id: str
    name: str
    subject_type: Optional[str] = None


class SubjectResponse(BaseModel):
    id: str
    name: str
    grade: int
    subject_type: Optional[str] = None
    created_at: datetime
    resource_count: int = 0

    class Config:
        from_attributes = True


class ResourceResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    subject_id: str
    grade: int
    category: str
    file_url: str
    file_name: str
    created_at: datetime
    subject: Optional[SubjectSummary] = None

    class Config:
        from_attributes = True


class ResourceFilter(BaseModel):
    grade: Optional[int] = None
    subject_id: Optional[str] = None
    category: Optional[str] = None


class DateRange(BaseModel):
    start: Optional[date] = None
    end: Optional[date] = None


class SearchFilters(BaseModel):
    grades: List[int] = []
    categories: List[str] = []
    date_range: DateRange = DateRange()
    file_types: List[str] = []


class SubjectHit(BaseModel):
    type: Literal["subject"] = "subject"
    id: str
    title: str
    description: str
    grade: int
    href: str
    created_at: datetime


class ResourceHit(BaseModel):
    type: Literal["resource"] = "resource"
    id: str
    title: str
    description: Optional[str] = None
    grade: int
    category: str
    subject_id: Optional[str] = None
    subject_name: Optional[str] = None
    file_type: Optional[str] = None
    href: str
    created_at: datetime


SearchResult = Annotated[Union[SubjectHit, ResourceHit], Field(discriminator="type")]


class GradeOverview(BaseModel):
    grade: int
    total_subjects: int
    total_resources: int
    categories: Dict[str, List[SubjectResponse]]


class SubjectPage(BaseModel):
    subject: SubjectResponse
    category: str
    query: str = ""
    category_counts: Dict[str, int]
    resources: List[ResourceResponse]


class CategoryOption(BaseModel):
    value: str
    label: str


class SearchOptions(BaseModel):
    grades: List[int]
    categories: List[CategoryOption]
    file_types: List[str]
    debounce_ms: int
