import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from snti.core.exceptions import DatabaseException, NotFoundException, ValidationException
from snti.core.logging_utils import sanitize_log_message
from snti.models.documento import Documento
from snti.models.permiso import Permiso, DEFAULT_ESTATUS
from snti.models.trabajador import Trabajador
from snti.models.usuario import Usuario
from snti.services.document_service import DocumentDownload, DocumentService
from snti.services.saga import Saga
from snti.services.storage_service import validate_mime_type

logger = logging.getLogger(__name__)

APPROVAL_LABEL = "Aprobación Permiso"

# Fields an update may change; id_trabajador is fixed once created
UPDATABLE_FIELDS = ("tipo_permiso", "fecha_inicio", "fecha_fin", "motivo", "estatus")


def _check_date_range(fecha_inicio: Optional[date], fecha_fin: Optional[date]) -> None:
    if fecha_inicio and fecha_fin and fecha_fin < fecha_inicio:
        raise ValidationException(
            detail="La fecha de fin no puede ser anterior a la fecha de inicio."
        )


class PermisoService:
    """Service for permission requests and their approval documents."""

    def __init__(self, document_service: Optional[DocumentService] = None):
        self.document_service = document_service or DocumentService()

    @staticmethod
    def _query():
        return (
            select(Permiso)
            .options(selectinload(Permiso.trabajador), selectinload(Permiso.documento))
            .execution_options(populate_existing=True)
        )

    async def get_permiso(self, db: AsyncSession, id_permiso: int) -> Optional[Permiso]:
        """
        Get a permission with its worker and document loaded.

        Args:
            db: Database session
            id_permiso: ID of the permission

        Returns:
            Permiso or None
        """
        result = await db.execute(self._query().where(Permiso.id_permiso == id_permiso))
        return result.scalar_one_or_none()

    async def list_all(self, db: AsyncSession) -> List[Permiso]:
        result = await db.execute(
            self._query().order_by(Permiso.fecha_registro.desc(), Permiso.id_permiso.desc())
        )
        return list(result.scalars().all())

    async def list_by_worker(self, db: AsyncSession, id_trabajador: int) -> List[Permiso]:
        """
        Permissions of one worker, newest first.

        Raises:
            NotFoundException if the worker does not exist
        """
        if await db.get(Trabajador, id_trabajador) is None:
            raise NotFoundException(detail="El trabajador especificado no existe.")

        result = await db.execute(
            self._query()
            .where(Permiso.id_trabajador == id_trabajador)
            .order_by(Permiso.fecha_registro.desc(), Permiso.id_permiso.desc())
        )
        return list(result.scalars().all())

    async def list_for_user(self, db: AsyncSession, user: Usuario) -> List[Permiso]:
        """Permissions of the worker bound to the given user."""
        result = await db.execute(
            self._query()
            .where(Permiso.id_trabajador == user.id_trabajador)
            .order_by(Permiso.fecha_registro.desc(), Permiso.id_permiso.desc())
        )
        return list(result.scalars().all())

    async def _insert_permiso(self, db: AsyncSession, permiso: Permiso) -> None:
        db.add(permiso)
        await db.commit()

    async def _save_permiso(self, db: AsyncSession, permiso: Permiso, request_id: Optional[str]) -> None:
        try:
            await self._insert_permiso(db, permiso)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                sanitize_log_message(
                    "Failed to save permission",
                    WorkerID=permiso.id_trabajador,
                    Error=str(e),
                    RequestID=request_id
                )
            )
            raise DatabaseException(detail="Error al registrar el permiso", error=str(e))

    async def create_permiso(
        self,
        db: AsyncSession,
        file: UploadFile,
        id_trabajador: int,
        fecha_inicio: date,
        fecha_fin: date,
        motivo: str,
        tipo_permiso: Optional[str] = None,
        estatus: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> Tuple[Permiso, Documento]:
        """
        Register the approval document, then the permission referencing it.

        If the permission cannot be saved the new document row and file are
        removed again.

        Returns:
            Tuple of (permiso, documento)
        """
        _check_date_range(fecha_inicio, fecha_fin)

        async with Saga("create_permiso", request_id) as saga:
            documento = await self.document_service.upload_document(
                db,
                file=file,
                id_trabajador=id_trabajador,
                tipo_documento=APPROVAL_LABEL,
                descripcion=f'Documento de aprobación para permiso de tipo "{tipo_permiso or "N/A"}"',
                es_publico=False,
                request_id=request_id
            )
            id_documento = documento.id_documento
            saga.add_compensation(
                "delete approval document",
                lambda: self.document_service.hard_delete(db, id_documento, request_id)
            )

            permiso = Permiso(
                id_trabajador=id_trabajador,
                tipo_permiso=tipo_permiso or None,
                fecha_inicio=fecha_inicio,
                fecha_fin=fecha_fin,
                motivo=motivo,
                estatus=estatus or DEFAULT_ESTATUS,
                documento_aprobacion_id=id_documento
            )
            await self._save_permiso(db, permiso, request_id)

        logger.info(
            sanitize_log_message(
                "Permission created",
                PermisoID=permiso.id_permiso,
                WorkerID=id_trabajador,
                DocumentID=id_documento,
                RequestID=request_id
            )
        )
        return await self.get_permiso(db, permiso.id_permiso), documento

    async def update_permiso(
        self,
        db: AsyncSession,
        id_permiso: int,
        changes: Dict[str, Any],
        file: Optional[UploadFile] = None,
        request_id: Optional[str] = None
    ) -> Permiso:
        """
        Update permission fields and optionally replace its approval document.

        The previous document is removed best effort before the replacement is
        stored; failures there are logged and do not block the update.

        Raises:
            NotFoundException if the permission does not exist
            ValidationException if the resulting date range is inverted
        """
        permiso = await self.get_permiso(db, id_permiso)
        if permiso is None:
            raise NotFoundException(detail="Permiso no encontrado para actualizar.")

        changes = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS and value is not None}
        _check_date_range(
            changes.get("fecha_inicio", permiso.fecha_inicio),
            changes.get("fecha_fin", permiso.fecha_fin)
        )

        id_trabajador = permiso.id_trabajador
        previous_document_id = permiso.documento_aprobacion_id

        async with Saga("update_permiso", request_id) as saga:
            if file is not None:
                validate_mime_type(file.content_type)

                if previous_document_id is not None:
                    permiso.documento_aprobacion_id = None
                    await db.commit()
                    removed = await self.document_service.hard_delete(db, previous_document_id, request_id)
                    if not removed:
                        logger.warning(
                            sanitize_log_message(
                                "Previous approval document not removed",
                                PermisoID=id_permiso,
                                DocumentID=previous_document_id,
                                RequestID=request_id
                            )
                        )

                documento = await self.document_service.upload_document(
                    db,
                    file=file,
                    id_trabajador=id_trabajador,
                    tipo_documento=APPROVAL_LABEL,
                    descripcion=f"Documento de aprobación actualizado para permiso ID {id_permiso}",
                    es_publico=False,
                    request_id=request_id
                )
                new_document_id = documento.id_documento
                saga.add_compensation(
                    "delete replacement document",
                    lambda: self.document_service.hard_delete(db, new_document_id, request_id)
                )
                changes["documento_aprobacion_id"] = new_document_id

            permiso = await self.get_permiso(db, id_permiso)
            for field, value in changes.items():
                setattr(permiso, field, value)
            permiso.touch()
            await self._save_permiso(db, permiso, request_id)

        logger.info(
            sanitize_log_message(
                "Permission updated",
                PermisoID=id_permiso,
                Fields=sorted(changes.keys()),
                RequestID=request_id
            )
        )
        return await self.get_permiso(db, id_permiso)

    async def delete_permiso(
        self,
        db: AsyncSession,
        id_permiso: int,
        request_id: Optional[str] = None
    ) -> None:
        """
        Delete a permission, its approval file and its document row.

        A missing file is tolerated; a failing document-row delete is logged.

        Raises:
            NotFoundException if the permission does not exist
        """
        permiso = await self.get_permiso(db, id_permiso)
        if permiso is None:
            raise NotFoundException(detail="Permiso no encontrado para eliminar.")

        id_documento = permiso.documento_aprobacion_id
        if permiso.documento is not None:
            await self.document_service.storage.delete(permiso.documento.ruta_almacenamiento, request_id)

        try:
            await db.delete(permiso)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise DatabaseException(detail="Error al eliminar el permiso", error=str(e))

        if id_documento is not None:
            await self.document_service.delete_row(db, id_documento, request_id)

        logger.info(
            sanitize_log_message(
                "Permission deleted",
                PermisoID=id_permiso,
                DocumentID=id_documento,
                RequestID=request_id
            )
        )

    async def open_attachment_download(
        self,
        db: AsyncSession,
        id_documento: int,
        user: Usuario,
        request_id: Optional[str] = None
    ) -> DocumentDownload:
        """
        Download an approval document, with the same rules as any document.

        Raises:
            NotFoundException if no permission references the document
        """
        result = await db.execute(
            select(Permiso.id_permiso).where(Permiso.documento_aprobacion_id == id_documento).limit(1)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundException(detail="Documento de permiso no encontrado")

        return await self.document_service.open_download(db, id_documento, user, request_id)
