from app.config.catalog_config import (
    SUBJECTS, RESOURCES, GRADES, CATEGORIES, DEFAULT_CATEGORY, FILE_TYPES,
    OTHER_SUBJECT_CATEGORY, is_valid_grade, is_valid_category, get_search_options
)
from app.database.record_store import (
    RecordStore, RecordStoreError, Order, eq, in_, gte, lte, text_search, ilike_any
)
from app.database.object_storage import ObjectStorage, StorageError, key_from_public_url
from app.modules.catalog.schemas import (
    SubjectResponse, ResourceResponse, ResourceFilter, SearchFilters,
    SubjectHit, ResourceHit, GradeOverview, SubjectPage, SearchOptions
)
from typing import Dict, List, Optional, Tuple, Union
from fastapi import HTTPException
import logging
import os

logger = logging.getLogger(__name__)

SUBJECT_WITH_COUNT = "*, resources(count)"
RESOURCE_WITH_SUBJECT = "*, subject:subjects(id, name, subject_type)"
# Inner join: resources whose subject is gone are not searchable
SEARCH_RESOURCE_COLUMNS = "*, subject:subjects!inner(id, name)"


def check_grade(grade: int) -> None:
    if not is_valid_grade(grade):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid grade: {grade}. Must be one of {', '.join(str(g) for g in GRADES)}"
        )


def check_category(category: str) -> None:
    if not is_valid_category(category):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category: {category}. Must be one of {', '.join(CATEGORIES)}"
        )


def subject_category(subject: SubjectResponse) -> str:
    return (subject.subject_type or "").upper() or OTHER_SUBJECT_CATEGORY


def group_subjects_by_category(subjects: List[SubjectResponse]) -> Dict[str, List[SubjectResponse]]:
    """Bucket subjects by uppercased subject_type, keeping input order within and across buckets."""
    groups: Dict[str, List[SubjectResponse]] = {}
    for subject in subjects:
        groups.setdefault(subject_category(subject), []).append(subject)
    return groups


def group_subjects_by_grade(subjects: List[SubjectResponse]) -> Dict[int, List[SubjectResponse]]:
    groups: Dict[int, List[SubjectResponse]] = {}
    for subject in subjects:
        groups.setdefault(subject.grade, []).append(subject)
    return groups


def filter_resources(resources: List[ResourceResponse], category: str, query: str = "") -> List[ResourceResponse]:
    """Category tab plus case-insensitive substring match on title or description."""
    needle = (query or "").strip().lower()
    matched = []
    for resource in resources:
        if resource.category != category:
            continue
        if needle and needle not in resource.title.lower() and needle not in (resource.description or "").lower():
            continue
        matched.append(resource)
    return matched


def file_extension(file_name: Optional[str]) -> Optional[str]:
    ext = os.path.splitext(file_name or "")[1]
    return ext[1:].lower() if ext else None


def is_pdf(file_name: Optional[str]) -> bool:
    return file_extension(file_name) == "pdf"


def _to_subject(row: dict) -> SubjectResponse:
    data = dict(row)
    counts = data.pop("resources", None)
    data["resource_count"] = counts[0].get("count", 0) if counts else 0
    return SubjectResponse(**data)


class CatalogService:
    def __init__(self, store: RecordStore, storage: Optional[ObjectStorage] = None):
        self.store = store
        self.storage = storage

    def list_subjects_by_grade(self, grade: int) -> List[SubjectResponse]:
        """Subjects of one grade sorted by name, with their resource counts"""
        check_grade(grade)
        try:
            rows = self.store.query(
                SUBJECTS,
                [eq("grade", grade)],
                [Order("name")],
                columns=SUBJECT_WITH_COUNT
            )
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        return [_to_subject(row) for row in rows]

    def list_all_subjects(self) -> List[SubjectResponse]:
        """All subjects sorted by grade then name"""
        try:
            rows = self.store.query(
                SUBJECTS,
                order=[Order("grade"), Order("name")],
                columns=SUBJECT_WITH_COUNT
            )
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        return [_to_subject(row) for row in rows]

    def get_subject(self, subject_id: str) -> SubjectResponse:
        try:
            row = self.store.get(SUBJECTS, subject_id, columns=SUBJECT_WITH_COUNT)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        if not row:
            raise HTTPException(status_code=404, detail="Subject not found")
        return _to_subject(row)

    def get_resource(self, resource_id: str) -> ResourceResponse:
        try:
            row = self.store.get(RESOURCES, resource_id, columns=RESOURCE_WITH_SUBJECT)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        if not row:
            raise HTTPException(status_code=404, detail="Resource not found")
        return ResourceResponse(**row)

    def list_resources(self, resource_filter: Optional[ResourceFilter] = None) -> List[ResourceResponse]:
        """Resources matching the optional grade/subject/category filter, newest first"""
        resource_filter = resource_filter or ResourceFilter()
        filters = []
        if resource_filter.grade is not None:
            check_grade(resource_filter.grade)
            filters.append(eq("grade", resource_filter.grade))
        if resource_filter.subject_id:
            filters.append(eq("subject_id", resource_filter.subject_id))
        if resource_filter.category:
            check_category(resource_filter.category)
            filters.append(eq("category", resource_filter.category))
        try:
            rows = self.store.query(
                RESOURCES,
                filters,
                [Order("created_at", desc=True)],
                columns=RESOURCE_WITH_SUBJECT
            )
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        return [ResourceResponse(**row) for row in rows]

    def grade_overview(self, grade: int) -> GradeOverview:
        subjects = self.list_subjects_by_grade(grade)
        return GradeOverview(
            grade=grade,
            total_subjects=len(subjects),
            total_resources=sum(s.resource_count for s in subjects),
            categories=group_subjects_by_category(subjects)
        )

    def subject_page(self, subject_id: str, category: str = DEFAULT_CATEGORY, query: str = "") -> SubjectPage:
        """Subject detail with its resources narrowed to one category tab and an optional text filter"""
        check_category(category)
        subject = self.get_subject(subject_id)
        resources = self.list_resources(ResourceFilter(subject_id=subject_id))
        counts = {c: 0 for c in CATEGORIES}
        for resource in resources:
            if resource.category in counts:
                counts[resource.category] += 1
        return SubjectPage(
            subject=subject,
            category=category,
            query=query or "",
            category_counts=counts,
            resources=filter_resources(resources, category, query)
        )

    def search(self, query: str, filters: Optional[SearchFilters] = None) -> List[Union[ResourceHit, SubjectHit]]:
        """Full-text search over resource titles and subject names.

        Resources come first (newest first), then subjects (by name). The
        optional filters narrow resources; the grade filter also narrows
        subjects. A blank query returns nothing without touching the store.
        """
        if not query or not query.strip():
            return []
        query = query.strip()
        filters = filters or SearchFilters()

        for grade in filters.grades:
            check_grade(grade)
        for category in filters.categories:
            check_category(category)
        file_types = [t.lower().lstrip(".") for t in filters.file_types]
        for file_type in file_types:
            if file_type not in FILE_TYPES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid file type: {file_type}. Must be one of {', '.join(FILE_TYPES)}"
                )

        resource_filters = [text_search("title", query)]
        subject_filters = [text_search("name", query)]
        if filters.grades:
            resource_filters.append(in_("grade", filters.grades))
            subject_filters.append(in_("grade", filters.grades))
        if filters.categories:
            resource_filters.append(in_("category", filters.categories))
        if filters.date_range.start:
            resource_filters.append(gte("created_at", filters.date_range.start.isoformat()))
        if filters.date_range.end:
            # End date is inclusive of the whole day
            resource_filters.append(lte("created_at", f"{filters.date_range.end.isoformat()}T23:59:59.999999+00:00"))
        if file_types:
            resource_filters.append(ilike_any("file_name", [f"*.{t}" for t in file_types]))

        try:
            resource_rows = self.store.query(
                RESOURCES, resource_filters, [Order("created_at", desc=True)], columns=SEARCH_RESOURCE_COLUMNS
            )
            subject_rows = self.store.query(SUBJECTS, subject_filters, [Order("name")])
        except RecordStoreError as e:
            logger.error(f"Search for {query!r} failed: {e}")
            raise HTTPException(status_code=500, detail=e.message)

        results: List[Union[ResourceHit, SubjectHit]] = []
        for row in resource_rows:
            subject = row.get("subject") or {}
            subject_id = subject.get("id") or row.get("subject_id")
            results.append(ResourceHit(
                id=row["id"],
                title=row["title"],
                description=row.get("description"),
                grade=row["grade"],
                category=row["category"],
                subject_id=subject_id,
                subject_name=subject.get("name"),
                file_type=file_extension(row.get("file_name") or row.get("file_url")),
                href=f"/grade/{row['grade']}/subject/{subject_id}?resource={row['id']}",
                created_at=row["created_at"]
            ))
        for row in subject_rows:
            description = f"Grade {row['grade']}"
            if row.get("subject_type"):
                description = f"{description} - {row['subject_type']}"
            results.append(SubjectHit(
                id=row["id"],
                title=row["name"],
                description=description,
                grade=row["grade"],
                href=f"/grade/{row['grade']}/subject/{row['id']}",
                created_at=row["created_at"]
            ))
        return results

    def search_options(self) -> SearchOptions:
        return SearchOptions(**get_search_options())

    def fetch_file(self, resource_id: str, pdf_only: bool = False) -> Tuple[ResourceResponse, bytes]:
        """Resolve a resource to its stored bytes"""
        resource = self.get_resource(resource_id)
        if pdf_only and not is_pdf(resource.file_name):
            raise HTTPException(status_code=400, detail="Preview is only available for PDF files")
        if self.storage is None:
            raise HTTPException(status_code=500, detail="Object storage not configured")
        try:
            content = self.storage.download(key_from_public_url(resource.file_url))
        except StorageError as e:
            raise HTTPException(status_code=500, detail=f"Failed to download file: {str(e)}")
        return resource, content
