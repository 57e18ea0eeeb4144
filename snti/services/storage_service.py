import asyncio
import hashlib
import logging
import os
import re
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple
import aiofiles
import aiofiles.os
from fastapi import UploadFile
from snti.config import settings
from snti.core.exceptions import (
    FileTooLargeException,
    NotFoundException,
    ProcessingException,
    StorageException,
    UnsupportedMediaTypeException,
    ValidationException,
)
from snti.core.logging_utils import sanitize_log_message
from snti.models.documento import CATEGORY_LABELS, DocumentCategory

# Timeout for a single chunk read/write (30 seconds)
FILE_OPERATION_TIMEOUT = 30

MAX_BASENAME_LENGTH = 40

logger = logging.getLogger(__name__)


def is_allowed_mime_type(mime_type: Optional[str], allowed_types: Optional[List[str]] = None) -> bool:
    """Return True when the declared MIME type is in the allow-list."""
    allowed = settings.ALLOWED_FILE_TYPES if allowed_types is None else allowed_types
    return bool(mime_type) and mime_type in allowed


def validate_mime_type(mime_type: Optional[str]) -> None:
    """
    Reject an upload before any byte is written.

    Raises:
        UnsupportedMediaTypeException if the type is not allowed
    """
    if not is_allowed_mime_type(mime_type):
        raise UnsupportedMediaTypeException(error=f"Tipo recibido: {mime_type}")


def resolve_category(label: Optional[str]) -> DocumentCategory:
    """
    Map a caller-supplied document label to its storage category.

    Matching is exact; unknown or missing labels fall back to OTRO.
    """
    if label is None:
        return DocumentCategory.OTRO
    return CATEGORY_LABELS.get(label, DocumentCategory.OTRO)


def generate_stored_filename(original_filename: Optional[str]) -> str:
    """
    Build a unique, filesystem-safe name that keeps a readable prefix.

    Format: ``<sanitized base, max 40>-<epoch millis>-<16 hex><.ext>``

    Args:
        original_filename: Filename as sent by the client

    Returns:
        Stored filename
    """
    # Drop any client-side directory components
    name = os.path.basename((original_filename or "").replace("\\", "/"))
    stem, ext = os.path.splitext(name)
    base = re.sub(r"[^\w\s-]", "", stem, flags=re.ASCII)
    base = re.sub(r"\s+", "-", base)[:MAX_BASENAME_LENGTH]
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}"
    return f"{base}-{unique_suffix}{ext.lower()}"


def mime_subtype(mime_type: str) -> str:
    """application/pdf -> pdf"""
    return mime_type.split("/", 1)[1] if "/" in mime_type else mime_type


async def remove_file_quietly(path: Path, request_id: Optional[str] = None) -> bool:
    """
    Delete a stored file, logging instead of raising.

    Returns:
        True if the file was removed, False otherwise
    """
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        logger.debug(sanitize_log_message("File already absent", Path=str(path), RequestID=request_id))
        return False
    except OSError as e:
        logger.error(
            sanitize_log_message("Failed to remove stored file", Path=str(path), Error=str(e), RequestID=request_id)
        )
        return False

    logger.info(sanitize_log_message("Stored file removed", Path=str(path), RequestID=request_id))
    return True


class StoredFileGuard:
    """
    Owns a file on disk until the upload it belongs to is committed.

    Leaving the ``async with`` block without calling :meth:`commit` deletes
    the file. Deletion errors are logged and never replace the original
    exception.
    """

    def __init__(self, path: Path, request_id: Optional[str] = None):
        self.path = path
        self.request_id = request_id
        self.committed = False

    def commit(self) -> None:
        self.committed = True

    async def release(self) -> None:
        await remove_file_quietly(self.path, self.request_id)

    async def __aenter__(self) -> "StoredFileGuard":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if not self.committed:
            await self.release()
        return False


class StorageService:
    """Service for placing, writing, hashing and locating files under UPLOAD_DIR."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.max_file_size = settings.MAX_FILE_SIZE
        self.chunk_size = settings.UPLOAD_CHUNK_SIZE

    def ensure_category_dir(self, category: DocumentCategory) -> Path:
        """
        Create ``UPLOAD_DIR/<category>`` if needed.

        Raises:
            StorageException if the directory cannot be created
        """
        category_dir = self.upload_dir / category.value
        try:
            category_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                sanitize_log_message("Failed to create upload directory", Path=str(category_dir), Error=str(e))
            )
            raise StorageException(detail="Error al crear el directorio de almacenamiento", error=str(e))
        return category_dir

    def place(self, category: DocumentCategory, original_filename: Optional[str]) -> Tuple[Path, str, str]:
        """
        Choose where an upload will live.

        Args:
            category: Resolved document category
            original_filename: Client filename

        Returns:
            Tuple of (absolute_path, relative_posix_path, stored_filename)
        """
        category_dir = self.ensure_category_dir(category)
        stored_filename = generate_stored_filename(original_filename)
        relative_path = str(PurePosixPath(category.value) / stored_filename)
        return category_dir / stored_filename, relative_path, stored_filename

    def resolve(self, relative_path: str) -> Path:
        """
        Turn a stored relative path back into an absolute one.

        Raises:
            NotFoundException if the path escapes UPLOAD_DIR
        """
        root = self.upload_dir.resolve()
        candidate = (root / relative_path).resolve()
        if root != candidate and root not in candidate.parents:
            logger.warning(sanitize_log_message("Rejected stored path outside upload dir", Path=relative_path))
            raise NotFoundException(detail="Archivo no encontrado")
        return candidate

    async def write_upload(self, file: UploadFile, destination: Path) -> int:
        """
        Stream an upload to disk in chunks.

        Args:
            file: Uploaded file
            destination: Absolute target path

        Returns:
            Number of bytes written

        Raises:
            FileTooLargeException if the content exceeds MAX_FILE_SIZE
            ValidationException if the file is empty
            StorageException if the write fails
        """
        written = 0
        try:
            async with aiofiles.open(destination, "wb") as out:
                while True:
                    chunk = await file.read(self.chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_file_size:
                        raise FileTooLargeException(
                            error=f"Máximo permitido: {self.max_file_size} bytes"
                        )
                    await asyncio.wait_for(out.write(chunk), timeout=FILE_OPERATION_TIMEOUT)
        except asyncio.TimeoutError:
            raise StorageException(
                error=f"File write operation timed out after {FILE_OPERATION_TIMEOUT} seconds"
            )
        except OSError as e:
            raise StorageException(error=str(e))

        if written == 0:
            raise ValidationException(detail="El archivo está vacío")

        return written

    async def compute_sha256(self, path: Path) -> str:
        """
        Hash the bytes actually persisted at ``path``.

        Raises:
            ProcessingException if the file cannot be read
        """
        digest = hashlib.sha256()
        try:
            async with aiofiles.open(path, "rb") as src:
                while True:
                    chunk = await src.read(self.chunk_size)
                    if not chunk:
                        break
                    digest.update(chunk)
        except OSError as e:
            raise ProcessingException(error=str(e))
        return digest.hexdigest()

    async def file_size(self, path: Path) -> Optional[int]:
        """Size in bytes, or None when the file does not exist."""
        try:
            stat_result = await aiofiles.os.stat(path)
        except FileNotFoundError:
            return None
        return stat_result.st_size

    async def delete(self, relative_path: Optional[str], request_id: Optional[str] = None) -> bool:
        """Best-effort removal of a stored file by its relative path."""
        if not relative_path:
            return False
        try:
            path = self.resolve(relative_path)
        except NotFoundException:
            return False
        return await remove_file_quietly(path, request_id)
