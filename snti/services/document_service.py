import enum
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional
from urllib.parse import quote
import aiofiles
from fastapi import UploadFile
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from snti.config import settings
from snti.core.acl import require_worker_access
from snti.core.exceptions import (
    APIException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    SilentFailureException,
    StorageException,
    UnknownException,
)
from snti.core.logging_utils import sanitize_log_message
from snti.models.documento import Documento
from snti.models.trabajador import Trabajador
from snti.models.usuario import Usuario
from snti.services.storage_service import (
    StorageService,
    StoredFileGuard,
    mime_subtype,
    resolve_category,
    validate_mime_type,
)

logger = logging.getLogger(__name__)


class UploadState(str, enum.Enum):
    """Lifecycle of a single upload."""
    RECEIVED = "RECEIVED"
    FILTERED = "FILTERED"
    STORED = "STORED"
    HASHED = "HASHED"
    REGISTERED = "REGISTERED"
    VERIFIED = "VERIFIED"
    COMMITTED = "COMMITTED"
    FAILED = "FAILED"


class UploadTracker:
    """Records the current upload state and logs every transition."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id
        self.state = UploadState.RECEIVED
        logger.debug(sanitize_log_message("Upload state", State=self.state.value, RequestID=request_id))

    def advance(self, new_state: UploadState, **context) -> None:
        logger.debug(
            sanitize_log_message(
                "Upload state transition",
                From=self.state.value,
                To=new_state.value,
                RequestID=self.request_id,
                **context
            )
        )
        self.state = new_state


@dataclass
class DocumentDownload:
    """Everything needed to stream a stored document, resolved before the first byte."""
    path: Path
    filename: str
    media_type: str
    size: int
    chunk_size: int = 1024 * 1024
    request_id: Optional[str] = None

    @property
    def headers(self) -> Dict[str, str]:
        ascii_name = self.filename.encode("ascii", "replace").decode("ascii").replace('"', "")
        disposition = f'attachment; filename="{ascii_name}"'
        if ascii_name != self.filename:
            disposition += f"; filename*=UTF-8''{quote(self.filename)}"
        return {
            "Content-Disposition": disposition,
            "Content-Length": str(self.size),
        }

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the file in chunks; read errors after headers are sent are only logged."""
        try:
            async with aiofiles.open(self.path, "rb") as src:
                while True:
                    chunk = await src.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk
        except OSError as e:
            logger.error(
                sanitize_log_message(
                    "Error while streaming document",
                    Path=str(self.path),
                    Error=str(e),
                    RequestID=self.request_id
                )
            )


class DocumentService:
    """Service for the document upload pipeline, listing, download and deletion."""

    def __init__(self, storage: Optional[StorageService] = None):
        self.storage = storage or StorageService()
        self.register_procedure = settings.DOCUMENT_REGISTER_PROCEDURE
        self.reject_duplicates = settings.REJECT_DUPLICATE_UPLOADS

    async def upload_document(
        self,
        db: AsyncSession,
        file: UploadFile,
        id_trabajador: int,
        tipo_documento: Optional[str],
        descripcion: Optional[str] = None,
        es_publico: bool = False,
        request_id: Optional[str] = None
    ) -> Documento:
        """
        Filter, store, hash and register an uploaded document.

        The stored file is removed on every path that does not end with a
        verified database row.

        Args:
            db: Database session
            file: Uploaded file
            id_trabajador: Owning worker
            tipo_documento: Caller label, resolved to a storage category
            descripcion: Optional description
            es_publico: Visibility flag
            request_id: Request ID for log correlation

        Returns:
            The committed Documento

        Raises:
            UnsupportedMediaTypeException, NotFoundException, FileTooLargeException,
            ValidationException, StorageException, ProcessingException,
            DatabaseException, SilentFailureException, UnknownException
        """
        tracker = UploadTracker(request_id)

        try:
            validate_mime_type(file.content_type)
        except APIException:
            tracker.advance(UploadState.FAILED, Reason="unsupported media type")
            raise
        tracker.advance(UploadState.FILTERED, MimeType=file.content_type)

        if await db.get(Trabajador, id_trabajador) is None:
            tracker.advance(UploadState.FAILED, Reason="worker not found")
            raise NotFoundException(detail="Trabajador no encontrado")

        category = resolve_category(tipo_documento)
        absolute_path, relative_path, stored_filename = self.storage.place(category, file.filename)

        async with StoredFileGuard(absolute_path, request_id) as guard:
            try:
                size = await self.storage.write_upload(file, absolute_path)
                tracker.advance(UploadState.STORED, Path=relative_path, Size=size)

                hash_archivo = await self.storage.compute_sha256(absolute_path)
                tracker.advance(UploadState.HASHED, Hash=hash_archivo)

                if self.reject_duplicates:
                    await self._reject_duplicate(db, hash_archivo, id_trabajador)

                values = {
                    "id_trabajador": id_trabajador,
                    "tipo_documento": category.value,
                    "nombre_archivo": file.filename or stored_filename,
                    "nombre_almacenado": stored_filename,
                    "ruta_almacenamiento": relative_path,
                    "mimetype": file.content_type,
                    "tipo_archivo": mime_subtype(file.content_type),
                    "tamano_bytes": size,
                    "hash_archivo": hash_archivo,
                    "descripcion": descripcion,
                    "es_publico": bool(es_publico),
                    "metadatos": {
                        "mime_type": file.content_type,
                        "original_name": file.filename,
                        "upload_date": datetime.utcnow().isoformat(),
                        "file_size_bytes": size,
                    },
                }
                await self.register_document(db, values, request_id=request_id)
                tracker.advance(UploadState.REGISTERED)

                documento = await self.verify_registration(db, hash_archivo, id_trabajador, relative_path)
                tracker.advance(UploadState.VERIFIED, DocumentID=documento.id_documento)
            except APIException as e:
                tracker.advance(UploadState.FAILED, Code=e.code)
                raise
            except Exception as e:
                tracker.advance(UploadState.FAILED, Code=UnknownException.code)
                raise UnknownException(detail="Error al guardar el documento", error=str(e))

            guard.commit()

        tracker.advance(UploadState.COMMITTED)
        logger.info(
            sanitize_log_message(
                "Document uploaded successfully",
                DocumentID=documento.id_documento,
                WorkerID=id_trabajador,
                Category=category.value,
                StoredFilename=stored_filename,
                Size=size,
                RequestID=request_id
            )
        )
        return documento

    async def _reject_duplicate(self, db: AsyncSession, hash_archivo: str, id_trabajador: int) -> None:
        result = await db.execute(
            select(Documento.id_documento).where(
                Documento.hash_archivo == hash_archivo,
                Documento.id_trabajador == id_trabajador,
                Documento.activo == True
            ).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictException(detail="El documento ya fue subido para este trabajador")

    async def register_document(
        self,
        db: AsyncSession,
        values: dict,
        request_id: Optional[str] = None
    ) -> None:
        """
        Persist document metadata in one database transaction.

        Uses the configured stored procedure when present, otherwise an ORM
        insert.

        Raises:
            DatabaseException if the write or commit fails
        """
        try:
            if self.register_procedure:
                await self._call_register_procedure(db, values)
            else:
                await self._insert_document(db, values)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                sanitize_log_message(
                    "Document registration failed",
                    WorkerID=values.get("id_trabajador"),
                    Path=values.get("ruta_almacenamiento"),
                    Error=str(e),
                    RequestID=request_id
                )
            )
            raise DatabaseException(error=str(e))

    async def _insert_document(self, db: AsyncSession, values: dict) -> None:
        db.add(Documento(**values))
        await db.flush()

    async def _call_register_procedure(self, db: AsyncSession, values: dict) -> None:
        # Procedure name is validated as a dotted identifier in Settings
        statement = text(
            f"SELECT {self.register_procedure}("
            ":id_trabajador, :tipo_documento, CAST(:metadatos AS JSONB), :hash_archivo, "
            ":nombre_archivo, :descripcion, :tipo_archivo, :ruta_almacenamiento, "
            ":tamano_bytes, :es_publico)"
        )
        params = {
            "id_trabajador": values["id_trabajador"],
            "tipo_documento": values["tipo_documento"],
            "metadatos": json.dumps(values["metadatos"]),
            "hash_archivo": values["hash_archivo"],
            "nombre_archivo": values["nombre_archivo"],
            "descripcion": values["descripcion"],
            "tipo_archivo": values["tipo_archivo"],
            "ruta_almacenamiento": values["ruta_almacenamiento"],
            "tamano_bytes": values["tamano_bytes"],
            "es_publico": values["es_publico"],
        }
        await db.execute(statement, params)

    async def verify_registration(
        self,
        db: AsyncSession,
        hash_archivo: str,
        id_trabajador: int,
        ruta_almacenamiento: str
    ) -> Documento:
        """
        Read the freshly written row back.

        Raises:
            SilentFailureException if the write reported success but no row exists
        """
        result = await db.execute(
            select(Documento).where(
                Documento.hash_archivo == hash_archivo,
                Documento.id_trabajador == id_trabajador,
                Documento.ruta_almacenamiento == ruta_almacenamiento
            ).execution_options(populate_existing=True)
        )
        documento = result.scalar_one_or_none()
        if documento is None:
            logger.error(
                sanitize_log_message(
                    "Document missing after registration",
                    WorkerID=id_trabajador,
                    Path=ruta_almacenamiento,
                    Hash=hash_archivo
                )
            )
            raise SilentFailureException()
        return documento

    async def get_document(
        self,
        db: AsyncSession,
        id_documento: int,
        include_inactive: bool = False
    ) -> Optional[Documento]:
        """
        Get a document by ID.

        Args:
            db: Database session
            id_documento: ID of the document
            include_inactive: If True, include soft-deleted documents

        Returns:
            Documento or None
        """
        query = select(Documento).where(Documento.id_documento == id_documento)
        if not include_inactive:
            query = query.where(Documento.activo == True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_by_worker(self, db: AsyncSession, id_trabajador: int) -> List[Documento]:
        """
        Active documents of a worker, newest first.

        Raises:
            NotFoundException if the worker does not exist
        """
        if await db.get(Trabajador, id_trabajador) is None:
            raise NotFoundException(detail="Trabajador no encontrado")

        result = await db.execute(
            select(Documento)
            .where(Documento.id_trabajador == id_trabajador, Documento.activo == True)
            .order_by(Documento.fecha_subida.desc(), Documento.id_documento.desc())
        )
        return list(result.scalars().all())

    async def open_download(
        self,
        db: AsyncSession,
        id_documento: int,
        user: Usuario,
        request_id: Optional[str] = None
    ) -> DocumentDownload:
        """
        Authorize and locate a document for streaming.

        All checks run before any response header is produced.

        Raises:
            NotFoundException if the row or the file is missing
            ForbiddenException if the user does not own the document
            StorageException if the stored size differs from the metadata
        """
        documento = await self.get_document(db, id_documento)
        if documento is None:
            raise NotFoundException(detail="Documento no encontrado")

        require_worker_access(user, documento.id_trabajador, action="download_document")

        path = self.storage.resolve(documento.ruta_almacenamiento)
        size = await self.storage.file_size(path)
        if size is None:
            logger.warning(
                sanitize_log_message(
                    "Stored file missing",
                    DocumentID=id_documento,
                    Path=documento.ruta_almacenamiento,
                    RequestID=request_id
                )
            )
            raise NotFoundException(detail="Archivo no encontrado en el servidor")

        if size != documento.tamano_bytes:
            logger.error(
                sanitize_log_message(
                    "Stored file size mismatch",
                    DocumentID=id_documento,
                    Expected=documento.tamano_bytes,
                    Actual=size,
                    RequestID=request_id
                )
            )
            raise StorageException(detail="El archivo almacenado no coincide con sus metadatos")

        logger.info(
            sanitize_log_message(
                "Document download",
                DocumentID=id_documento,
                UserID=user.id_usuario,
                RequestID=request_id
            )
        )
        return DocumentDownload(
            path=path,
            filename=documento.nombre_archivo,
            media_type=documento.mimetype or "application/octet-stream",
            size=size,
            chunk_size=self.storage.chunk_size,
            request_id=request_id
        )

    async def soft_delete(
        self,
        db: AsyncSession,
        id_documento: int,
        request_id: Optional[str] = None
    ) -> Documento:
        """
        Mark a document inactive, keeping the file.

        Raises:
            NotFoundException if the document does not exist or is already inactive
        """
        documento = await self.get_document(db, id_documento)
        if documento is None:
            raise NotFoundException(detail="Documento no encontrado")

        documento.deactivate()
        await db.commit()

        logger.info(sanitize_log_message("Document deactivated", DocumentID=id_documento, RequestID=request_id))
        return documento

    async def delete_row(
        self,
        db: AsyncSession,
        id_documento: int,
        request_id: Optional[str] = None
    ) -> bool:
        """
        Delete a document row, logging instead of raising on failure.

        Returns:
            True if the row was deleted, False otherwise
        """
        documento = await self.get_document(db, id_documento, include_inactive=True)
        if documento is None:
            return False

        try:
            await db.delete(documento)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                sanitize_log_message(
                    "Failed to delete document row",
                    DocumentID=id_documento,
                    Error=str(e),
                    RequestID=request_id
                )
            )
            return False

        logger.info(sanitize_log_message("Document deleted", DocumentID=id_documento, RequestID=request_id))
        return True

    async def hard_delete(
        self,
        db: AsyncSession,
        id_documento: int,
        request_id: Optional[str] = None
    ) -> bool:
        """
        Remove a document's file and then its row, best effort.

        Args:
            db: Database session
            id_documento: ID of the document
            request_id: Request ID for log correlation

        Returns:
            True if the row was deleted, False otherwise
        """
        documento = await self.get_document(db, id_documento, include_inactive=True)
        if documento is None:
            return False

        await self.storage.delete(documento.ruta_almacenamiento, request_id)
        return await self.delete_row(db, id_documento, request_id)
