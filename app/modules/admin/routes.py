from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from app.core.dependencies import get_admin_record_store, get_object_storage, require_admin
from app.database.record_store import RecordStore
from app.database.object_storage import ObjectStorage
from app.modules.admin.schemas import (
    SubjectCreate, SubjectUpdate, ResourceCreate, ResourceUpdate, DashboardStats
)
from app.modules.admin.service import AdminService
from app.modules.catalog.schemas import SubjectResponse, ResourceResponse
from typing import List, Optional

# Mounted at settings.admin_dashboard_path; every route needs an admin session
router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


def get_admin_service(
    store: RecordStore = Depends(get_admin_record_store),
    storage: ObjectStorage = Depends(get_object_storage)
) -> AdminService:
    return AdminService(store, storage)


def _require_confirmation(confirm: bool, what: str) -> None:
    if not confirm:
        raise HTTPException(status_code=400, detail=f"Deleting a {what} must be confirmed (confirm=true)")


@router.get("", response_model=DashboardStats)
def dashboard(service: AdminService = Depends(get_admin_service)):
    """Dashboard statistics"""
    return service.get_stats()


@router.get("/subjects", response_model=List[SubjectResponse])
def list_subjects(service: AdminService = Depends(get_admin_service)):
    """List all subjects by grade, then name"""
    return service.list_subjects()


@router.post("/subjects", response_model=SubjectResponse, status_code=201)
def create_subject(subject_data: SubjectCreate, service: AdminService = Depends(get_admin_service)):
    return service.create_subject(subject_data)


@router.put("/subjects/{subject_id}", response_model=SubjectResponse)
def update_subject(
    subject_id: str,
    subject_data: SubjectUpdate,
    service: AdminService = Depends(get_admin_service)
):
    return service.update_subject(subject_id, subject_data)


@router.delete("/subjects/{subject_id}", status_code=204)
def delete_subject(
    subject_id: str,
    confirm: bool = False,
    cascade: bool = False,
    service: AdminService = Depends(get_admin_service)
):
    """Delete subject (confirm=true required; cascade=true also deletes its resources)"""
    _require_confirmation(confirm, "subject")
    service.delete_subject(subject_id, cascade=cascade)
    return None


@router.get("/resources", response_model=List[ResourceResponse])
def list_resources(service: AdminService = Depends(get_admin_service)):
    """List all resources, newest first"""
    return service.list_resources()


@router.post("/resources", response_model=ResourceResponse, status_code=201)
def create_resource(
    title: str = Form(...),
    description: Optional[str] = Form(None),
    subject_id: Optional[str] = Form(None),
    grade: Optional[int] = Form(None),
    category: str = Form("notes"),
    file: Optional[UploadFile] = File(None),
    service: AdminService = Depends(get_admin_service)
):
    """Upload a file and create its resource record"""
    resource_data = ResourceCreate(
        title=title,
        description=description,
        subject_id=subject_id,
        grade=grade,
        category=category
    )
    return service.create_resource(resource_data, file)


@router.put("/resources/{resource_id}", response_model=ResourceResponse)
def update_resource(
    resource_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    subject_id: Optional[str] = Form(None),
    grade: Optional[int] = Form(None),
    category: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    service: AdminService = Depends(get_admin_service)
):
    """Update resource fields; a new file replaces the stored one"""
    resource_data = ResourceUpdate(
        title=title,
        description=description,
        subject_id=subject_id,
        grade=grade,
        category=category
    )
    return service.update_resource(resource_id, resource_data, file)


@router.delete("/resources/{resource_id}", status_code=204)
def delete_resource(
    resource_id: str,
    confirm: bool = False,
    service: AdminService = Depends(get_admin_service)
):
    """Delete resource and its file (confirm=true required)"""
    _require_confirmation(confirm, "resource")
    service.delete_resource(resource_id)
    return None
