from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime


class SubjectCreate(BaseModel):
    name: str
    grade: int
    subject_type: Optional[str] = None


class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    grade: Optional[int] = None
    subject_type: Optional[str] = None


class ResourceCreate(BaseModel):
    title: str
    description: Optional[str] = None
    subject_id: Optional[str] = None
    grade: Optional[int] = None  # Defaults to the subject's grade
    category: str = "notes"  # notes, pyqs, projects


class ResourceUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    subject_id: Optional[str] = None
    grade: Optional[int] = None
    category: Optional[str] = None


class RecentUpload(BaseModel):
    title: str
    grade: int
    created_at: datetime


class DashboardStats(BaseModel):
    total_resources: int
    total_users: int
    resources_by_grade: Dict[int, int]
    resources_by_category: Dict[str, int]
    recent_uploads: List[RecentUpload]
