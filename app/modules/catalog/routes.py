from fastapi import APIRouter, Depends, Query, Response
from app.core.dependencies import get_record_store, get_object_storage
from app.config.catalog_config import DEFAULT_CATEGORY
from app.database.record_store import RecordStore
from app.database.object_storage import ObjectStorage
from app.modules.catalog.schemas import (
    SubjectResponse, ResourceResponse, ResourceFilter, SearchFilters, DateRange,
    SearchResult, GradeOverview, SubjectPage, SearchOptions
)
from app.modules.catalog.service import CatalogService, group_subjects_by_grade
from typing import Dict, List, Optional
from datetime import date
from urllib.parse import quote

router = APIRouter(prefix="/catalog", tags=["catalog"])


def get_catalog_service(
    store: RecordStore = Depends(get_record_store),
    storage: ObjectStorage = Depends(get_object_storage),
) -> CatalogService:
    return CatalogService(store, storage)


@router.get("/options", response_model=SearchOptions)
def search_options(service: CatalogService = Depends(get_catalog_service)):
    """Filter vocabulary for the search panel"""
    return service.search_options()


@router.get("/subjects", response_model=Dict[int, List[SubjectResponse]])
def list_subjects(service: CatalogService = Depends(get_catalog_service)):
    """All subjects grouped by grade (home page)"""
    return group_subjects_by_grade(service.list_all_subjects())


@router.get("/grades/{grade}", response_model=GradeOverview)
def get_grade(grade: int, service: CatalogService = Depends(get_catalog_service)):
    """Subjects of a grade grouped by category, with subject and resource totals"""
    return service.grade_overview(grade)


@router.get("/grades/{grade}/subjects", response_model=List[SubjectResponse])
def list_grade_subjects(grade: int, service: CatalogService = Depends(get_catalog_service)):
    return service.list_subjects_by_grade(grade)


@router.get("/subjects/{subject_id}", response_model=SubjectResponse)
def get_subject(subject_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_subject(subject_id)


@router.get("/subjects/{subject_id}/page", response_model=SubjectPage)
def get_subject_page(
    subject_id: str,
    category: str = DEFAULT_CATEGORY,
    q: str = "",
    service: CatalogService = Depends(get_catalog_service)
):
    """Subject detail with resources for one category tab"""
    return service.subject_page(subject_id, category=category, query=q)


@router.get("/resources", response_model=List[ResourceResponse])
def list_resources(
    grade: Optional[int] = None,
    subject_id: Optional[str] = None,
    category: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.list_resources(ResourceFilter(grade=grade, subject_id=subject_id, category=category))


@router.get("/search", response_model=List[SearchResult])
def search(
    q: str = "",
    grades: List[int] = Query(default=[]),
    categories: List[str] = Query(default=[]),
    start: Optional[date] = None,
    end: Optional[date] = None,
    file_types: List[str] = Query(default=[]),
    service: CatalogService = Depends(get_catalog_service)
):
    """Search resources by title and subjects by name"""
    filters = SearchFilters(
        grades=grades,
        categories=categories,
        date_range=DateRange(start=start, end=end),
        file_types=file_types
    )
    return service.search(q, filters)


@router.get("/resources/{resource_id}/download")
def download_resource(resource_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Stream the stored file under its original name"""
    resource, content = service.fetch_file(resource_id)
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(resource.file_name)}"}
    )


@router.get("/resources/{resource_id}/preview")
def preview_resource(resource_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Inline PDF preview"""
    resource, content = service.fetch_file(resource_id, pdf_only=True)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(resource.file_name)}"}
    )
