"""File uploads: validated writes to object storage plus a metadata row per object.

Every record in the ``files`` table points at an object that was written
successfully. The reverse is not guaranteed on delete: the object is removed
first, then the row, and a failure in between is reported but not undone.
"""
import logging
import os
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError

from .. import models
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..repositories import FileRepository
from ..storage import ObjectStorage, StoredObject
from ..utils import format_file_size, paginate

logger = logging.getLogger(__name__)

MAX_PARALLEL_UPLOADS = 8


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class UploadOptions:
    max_size: int
    allowed_types: Sequence[str] = field(default_factory=list)


def generate_file_key(original_name: str, owner_id: int) -> str:
    """``uploads/<owner>/<epoch ms>-<random>.<ext>``, unique per upload."""
    _, ext = os.path.splitext(os.path.basename(original_name or ""))
    timestamp = int(time.time() * 1000)
    return f"uploads/{owner_id}/{timestamp}-{secrets.token_hex(6)}{ext.lower()}"


def content_disposition(kind: str, filename: str) -> str:
    safe = (filename or "file").replace('"', "").replace("\r", "").replace("\n", "")
    return f"{kind}; filename=\"{quote(safe, safe=' .-_()')}\""


class FileService:
    def __init__(self, files: FileRepository, storage: ObjectStorage, base_url: str = ""):
        self.files = files
        self.storage = storage
        self.base_url = base_url.rstrip("/")

    def file_url(self, key: str) -> str:
        return f"{self.base_url}/api/v1/files/view/{quote(key)}"

    def _validate(self, file: IncomingFile, options: UploadOptions) -> None:
        if file.size > options.max_size:
            raise ValidationError(f"file too large, maximum size is {format_file_size(options.max_size)}")
        if file.content_type not in options.allowed_types:
            raise ValidationError(f"file type not allowed, accepted types: {', '.join(options.allowed_types)}")
        if file.size == 0:
            raise ValidationError("file is empty")

    def _write(self, file: IncomingFile, key: str, owner_id: int) -> None:
        self.storage.put(
            key,
            file.data,
            content_type=file.content_type,
            content_disposition=content_disposition("attachment", file.filename),
            metadata={
                # S3 user metadata must be ASCII
                "original-name": quote(file.filename or ""),
                "uploaded-by": str(owner_id),
                "uploaded-at": datetime.now(timezone.utc).isoformat(),
            },
        )

    def _record(self, file: IncomingFile, key: str, owner_id: int) -> models.FileRecord:
        return models.FileRecord(
            original_name=file.filename or os.path.basename(key),
            key=key,
            size=file.size,
            content_type=file.content_type,
            url=self.file_url(key),
            user_id=owner_id,
        )

    def _discard(self, keys: List[str]) -> None:
        for key in keys:
            try:
                self.storage.delete(key)
            except Exception:
                logger.exception("could not remove orphaned object %s", key)

    def _persist(self, records: List[models.FileRecord]) -> None:
        try:
            for record in records:
                self.files.add(record)
            self.files.commit()
        except SQLAlchemyError:
            self.files.rollback()
            self._discard([r.key for r in records])
            raise
        for record in records:
            self.files.refresh(record)

    def upload(self, file: IncomingFile, owner_id: int, options: UploadOptions) -> models.FileRecord:
        self._validate(file, options)
        key = generate_file_key(file.filename, owner_id)
        self._write(file, key, owner_id)
        record = self._record(file, key, owner_id)
        self._persist([record])
        logger.info("user %s uploaded %s (%d bytes)", owner_id, key, file.size)
        return record

    def upload_many(self, files: List[IncomingFile], owner_id: int, options: UploadOptions) -> List[models.FileRecord]:
        """Upload every file or none of them.

        All files are validated before the first write. Writes run in
        parallel; if any of them fails the objects already written are
        deleted and the error is raised.
        """
        if not files:
            raise ValidationError("no files sent")
        for file in files:
            self._validate(file, options)

        keys = [generate_file_key(f.filename, owner_id) for f in files]
        written: List[str] = []
        error: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=min(MAX_PARALLEL_UPLOADS, len(files))) as pool:
            futures = [pool.submit(self._write, f, k, owner_id) for f, k in zip(files, keys)]
            for key, future in zip(keys, futures):
                exc = future.exception()
                if exc is None:
                    written.append(key)
                elif error is None:
                    error = exc
        if error is not None:
            self._discard(written)
            raise error

        records = [self._record(f, k, owner_id) for f, k in zip(files, keys)]
        self._persist(records)
        logger.info("user %s uploaded %d files", owner_id, len(records))
        return records

    def get(self, key: str) -> Optional[StoredObject]:
        return self.storage.get(key)

    def _owned(self, file_id: str, caller_id: int, caller_role: str, action: str) -> models.FileRecord:
        record = self.files.find_by_id(file_id)
        if not record:
            raise NotFoundError("file not found")
        if caller_role != models.ROLE_ADMIN and record.user_id != caller_id:
            raise AuthorizationError(f"not allowed to {action} this file")
        return record

    def delete(self, file_id: str, caller_id: int, caller_role: str) -> None:
        record = self._owned(file_id, caller_id, caller_role, "delete")
        self.storage.delete(record.key)
        self.files.delete(record)
        logger.info("file %s deleted by user %s", file_id, caller_id)

    def info(self, file_id: str, caller_id: int, caller_role: str) -> models.FileRecord:
        return self._owned(file_id, caller_id, caller_role, "access")

    def list(self, owner_id: Optional[int], page: int = 1, limit: int = 10) -> Tuple[List[models.FileRecord], dict]:
        records, total = self.files.find_many(page, limit, user_id=owner_id)
        return records, paginate(page, limit, total)

    def storage_stats(self, owner_id: Optional[int] = None) -> dict:
        rows = self.files.sizes_and_types(user_id=owner_id)
        total_files = len(rows)
        total_size = sum(size for size, _ in rows)
        distribution: Dict[str, int] = {}
        for _, content_type in rows:
            distribution[content_type] = distribution.get(content_type, 0) + 1
        return {
            "total_files": total_files,
            "total_size": total_size,
            "average_size": total_size / total_files if total_files else 0,
            "type_distribution": distribution,
        }
