from app.config.catalog_config import (
    SUBJECTS, RESOURCES, USERS, RECENT_UPLOADS_LIMIT
)
from app.database.record_store import RecordStore, RecordStoreError, Order, eq
from app.database.object_storage import (
    ObjectStorage, StorageError, generate_object_key, key_from_public_url
)
from app.modules.admin.schemas import (
    SubjectCreate, SubjectUpdate, ResourceCreate, ResourceUpdate, DashboardStats, RecentUpload
)
from app.modules.catalog.schemas import SubjectResponse, ResourceResponse
from app.modules.catalog.service import CatalogService, check_grade, check_category
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, UploadFile
import logging

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, store: RecordStore, storage: ObjectStorage):
        self.store = store
        self.storage = storage
        self.catalog = CatalogService(store, storage)

    # Subjects

    def list_subjects(self) -> List[SubjectResponse]:
        return self.catalog.list_all_subjects()

    def create_subject(self, subject_data: SubjectCreate) -> SubjectResponse:
        """Create a new subject"""
        name = (subject_data.name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Subject name is required")
        check_grade(subject_data.grade)
        try:
            rows = self.store.insert(SUBJECTS, {
                "name": name,
                "grade": subject_data.grade,
                "subject_type": subject_data.subject_type
            })
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=f"Failed to create subject: {e.message}")
        if not rows:
            raise HTTPException(status_code=500, detail="Failed to create subject")
        logger.info(f"Created subject {rows[0]['id']} ({name}, grade {subject_data.grade})")
        return SubjectResponse(**rows[0])

    def update_subject(self, subject_id: str, subject_data: SubjectUpdate) -> SubjectResponse:
        """Update subject; moving it to another grade is refused while it has resources"""
        existing = self.catalog.get_subject(subject_id)
        update_data: Dict[str, Any] = {}
        if subject_data.name is not None:
            name = subject_data.name.strip()
            if not name:
                raise HTTPException(status_code=400, detail="Subject name is required")
            update_data["name"] = name
        if subject_data.subject_type is not None:
            update_data["subject_type"] = subject_data.subject_type
        if subject_data.grade is not None and subject_data.grade != existing.grade:
            check_grade(subject_data.grade)
            if existing.resource_count:
                raise HTTPException(
                    status_code=409,
                    detail=f"Subject has {existing.resource_count} resource(s) in grade {existing.grade}; move or delete them first"
                )
            update_data["grade"] = subject_data.grade
        if not update_data:
            return existing

        try:
            rows = self.store.update(SUBJECTS, subject_id, update_data)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=f"Failed to update subject: {e.message}")
        if not rows:
            raise HTTPException(status_code=404, detail="Subject not found")
        return self.catalog.get_subject(subject_id)

    def delete_subject(self, subject_id: str, cascade: bool = False) -> bool:
        """Delete subject. Its resources block the delete unless cascade, which deletes their rows and then their files."""
        self.catalog.get_subject(subject_id)
        try:
            resources = self.store.query(RESOURCES, [eq("subject_id", subject_id)], columns="id, file_url")
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

        if resources and not cascade:
            raise HTTPException(
                status_code=409,
                detail=f"Subject has {len(resources)} resource(s); pass cascade=true to delete them too"
            )

        try:
            if resources:
                self.store.delete_where(RESOURCES, [eq("subject_id", subject_id)])
                logger.info(f"Deleted {len(resources)} resource(s) of subject {subject_id}")
            result = self.store.delete(SUBJECTS, subject_id)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=f"Failed to delete subject: {e.message}")
        # Stored files are removed only once no row points at them
        self._remove_files([r.get("file_url") for r in resources])
        return len(result) > 0

    # Resources

    def list_resources(self) -> List[ResourceResponse]:
        return self.catalog.list_resources()

    def _resolve_subject_grade(self, subject_id: Optional[str], grade: Optional[int]) -> int:
        """Resource grade must match its subject's grade; defaults to it when omitted"""
        if not subject_id:
            raise HTTPException(status_code=400, detail="Please select a subject")
        subject = self.catalog.get_subject(subject_id)
        if grade is None:
            return subject.grade
        check_grade(grade)
        if grade != subject.grade:
            raise HTTPException(
                status_code=400,
                detail=f"Grade {grade} does not match subject grade {subject.grade}"
            )
        return grade

    def _remove_files(self, file_urls: List[Optional[str]]) -> None:
        keys = [key_from_public_url(url) for url in file_urls if url]
        if not keys:
            return
        try:
            self.storage.remove(keys)
        except StorageError as e:
            logger.warning(f"Failed to remove stored file(s) {keys}: {e}")

    def _store_file(self, file: UploadFile) -> Dict[str, str]:
        key = generate_object_key(file.filename)
        content = file.file.read()
        try:
            self.storage.upload(key, content, content_type=file.content_type or "application/octet-stream")
        except StorageError as e:
            raise HTTPException(status_code=500, detail=f"Failed to upload file: {str(e)}")
        return {"key": key, "file_url": self.storage.get_public_url(key), "file_name": file.filename}

    def create_resource(self, resource_data: ResourceCreate, file: Optional[UploadFile]) -> ResourceResponse:
        """Upload the file, then insert the resource row; the upload is removed if the insert fails"""
        if file is None or not file.filename:
            raise HTTPException(status_code=400, detail="Please select a file")
        title = (resource_data.title or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")
        check_category(resource_data.category)
        grade = self._resolve_subject_grade(resource_data.subject_id, resource_data.grade)

        stored = self._store_file(file)
        try:
            rows = self.store.insert(RESOURCES, {
                "title": title,
                "description": resource_data.description,
                "subject_id": resource_data.subject_id,
                "grade": grade,
                "category": resource_data.category,
                "file_url": stored["file_url"],
                "file_name": stored["file_name"]
            })
            if not rows:
                raise RecordStoreError(RESOURCES, "No row returned")
        except RecordStoreError as e:
            self._remove_files([stored["file_url"]])
            raise HTTPException(status_code=500, detail=f"Failed to create resource: {e.message}")
        logger.info(f"Created resource {rows[0]['id']} with file {stored['key']}")
        return self.catalog.get_resource(rows[0]["id"])

    def update_resource(
        self,
        resource_id: str,
        resource_data: ResourceUpdate,
        file: Optional[UploadFile] = None
    ) -> ResourceResponse:
        """Update resource fields and optionally replace its file"""
        existing = self.catalog.get_resource(resource_id)
        update_data: Dict[str, Any] = {}
        if resource_data.title is not None:
            title = resource_data.title.strip()
            if not title:
                raise HTTPException(status_code=400, detail="Title is required")
            update_data["title"] = title
        if resource_data.description is not None:
            update_data["description"] = resource_data.description
        if resource_data.category is not None:
            check_category(resource_data.category)
            update_data["category"] = resource_data.category
        if resource_data.subject_id is not None or resource_data.grade is not None:
            subject_id = resource_data.subject_id or existing.subject_id
            grade = resource_data.grade
            if grade is None and subject_id == existing.subject_id:
                grade = existing.grade
            update_data["grade"] = self._resolve_subject_grade(subject_id, grade)
            update_data["subject_id"] = subject_id

        stored = None
        if file is not None and file.filename:
            stored = self._store_file(file)
            update_data["file_url"] = stored["file_url"]
            update_data["file_name"] = stored["file_name"]

        if update_data:
            try:
                rows = self.store.update(RESOURCES, resource_id, update_data)
            except RecordStoreError as e:
                if stored:
                    self._remove_files([stored["file_url"]])
                raise HTTPException(status_code=500, detail=f"Failed to update resource: {e.message}")
            if not rows:
                if stored:
                    self._remove_files([stored["file_url"]])
                raise HTTPException(status_code=404, detail="Resource not found")

        if stored and existing.file_url:
            self._remove_files([existing.file_url])
        return self.catalog.get_resource(resource_id)

    def delete_resource(self, resource_id: str) -> bool:
        """Delete resource and its stored file; the subject is left untouched"""
        existing = self.catalog.get_resource(resource_id)
        try:
            result = self.store.delete(RESOURCES, resource_id)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=f"Failed to delete resource: {e.message}")
        self._remove_files([existing.file_url])
        logger.info(f"Deleted resource {resource_id}")
        return len(result) > 0

    # Dashboard

    def get_stats(self) -> DashboardStats:
        """Totals, per-grade and per-category resource counts, and the latest uploads"""
        try:
            total_resources = self.store.count(RESOURCES)
            total_users = self.store.count(USERS)
            rows = self.store.query(RESOURCES, columns="grade, category")
            recent = self.store.query(
                RESOURCES,
                order=[Order("created_at", desc=True)],
                columns="title, grade, created_at",
                limit=RECENT_UPLOADS_LIMIT
            )
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

        by_grade: Dict[int, int] = {}
        by_category: Dict[str, int] = {}
        for row in rows:
            by_grade[row["grade"]] = by_grade.get(row["grade"], 0) + 1
            by_category[row["category"]] = by_category.get(row["category"], 0) + 1

        return DashboardStats(
            total_resources=total_resources,
            total_users=total_users,
            resources_by_grade=by_grade,
            resources_by_category=by_category,
            recent_uploads=[RecentUpload(**r) for r in recent]
        )
