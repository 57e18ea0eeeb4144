import logging
import math
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from snti.core.exceptions import ConflictException, NotFoundException
from snti.core.logging_utils import sanitize_log_message
from snti.models.seccion import Seccion
from snti.models.trabajador import Trabajador
from snti.services.storage_service import StorageService

logger = logging.getLogger(__name__)

# Unique columns and how they are named in conflict messages
UNIQUE_FIELDS = {
    "curp": "CURP",
    "rfc": "RFC",
    "email": "Email",
    "numero_empleado": "Número de empleado",
    "numero_plaza": "Número de plaza",
}

SEARCH_FIELDS = ("nombre", "apellido_paterno", "apellido_materno", "curp", "rfc", "email", "numero_empleado")


class TrabajadorService:
    """Service for worker records."""

    @staticmethod
    async def get_by_id(db: AsyncSession, id_trabajador: int) -> Optional[Trabajador]:
        """
        Get worker by ID.

        Args:
            db: Database session
            id_trabajador: Worker ID

        Returns:
            Trabajador record or None
        """
        result = await db.execute(
            select(Trabajador).where(Trabajador.id_trabajador == id_trabajador)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def find_duplicate_fields(
        db: AsyncSession,
        values: Dict[str, Any],
        exclude_id: Optional[int] = None
    ) -> List[str]:
        """
        Names of the unique fields in ``values`` already used by another worker.

        Args:
            db: Database session
            values: Candidate field values
            exclude_id: Worker to ignore (the one being updated)

        Returns:
            Display names of the duplicated fields, empty if none
        """
        conditions = [
            getattr(Trabajador, field) == values[field]
            for field in UNIQUE_FIELDS
            if values.get(field) is not None
        ]
        if not conditions:
            return []

        query = select(Trabajador).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(Trabajador.id_trabajador != exclude_id)
        result = await db.execute(query)
        existing = result.scalars().all()

        return [
            label
            for field, label in UNIQUE_FIELDS.items()
            if values.get(field) is not None and any(getattr(row, field) == values[field] for row in existing)
        ]

    @staticmethod
    async def _ensure_section(db: AsyncSession, id_seccion: int) -> None:
        if await db.get(Seccion, id_seccion) is None:
            raise NotFoundException(detail="La sección especificada no existe")

    @staticmethod
    async def _raise_if_duplicated(db: AsyncSession, values: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        duplicated = await TrabajadorService.find_duplicate_fields(db, values, exclude_id)
        if duplicated:
            raise ConflictException(
                detail=f"Ya existe un trabajador con los siguientes datos: {', '.join(duplicated)}"
            )

    @staticmethod
    async def create(
        db: AsyncSession,
        values: Dict[str, Any],
        commit: bool = True
    ) -> Trabajador:
        """
        Create a worker.

        Args:
            db: Database session
            values: Validated worker fields
            commit: Commit immediately; bootstrap passes False to share its transaction

        Raises:
            ConflictException if a unique field is already taken
            NotFoundException if the section does not exist
        """
        await TrabajadorService._raise_if_duplicated(db, values)
        await TrabajadorService._ensure_section(db, values["id_seccion"])

        trabajador = Trabajador(**values)
        db.add(trabajador)
        try:
            if commit:
                await db.commit()
            else:
                await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictException(detail="Ya existe un trabajador con esos datos", error=str(e.orig))
        await db.refresh(trabajador)

        logger.info(
            sanitize_log_message(
                "Worker created",
                WorkerID=trabajador.id_trabajador,
                numero_empleado=trabajador.numero_empleado
            )
        )
        return trabajador

    @staticmethod
    async def list_paginated(
        db: AsyncSession,
        page: int = 1,
        size: int = 10,
        search: Optional[str] = None
    ) -> Tuple[List[Trabajador], int]:
        """
        Page through workers ordered by apellido_paterno.

        Returns:
            Tuple of (workers on the page, total matching)
        """
        query = select(Trabajador)
        count_query = select(func.count()).select_from(Trabajador)

        if search:
            pattern = f"%{search.strip()}%"
            condition = or_(*[getattr(Trabajador, field).ilike(pattern) for field in SEARCH_FIELDS])
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = (await db.execute(count_query)).scalar_one()
        result = await db.execute(
            query.order_by(Trabajador.apellido_paterno.asc(), Trabajador.id_trabajador.asc())
            .offset((page - 1) * size)
            .limit(size)
        )
        return list(result.scalars().all()), total

    @staticmethod
    def total_pages(total: int, size: int) -> int:
        return math.ceil(total / size) if size else 0

    @staticmethod
    async def update(db: AsyncSession, id_trabajador: int, changes: Dict[str, Any]) -> Trabajador:
        """
        Apply a partial update.

        Raises:
            NotFoundException if the worker or the new section does not exist
            ConflictException if a changed unique field belongs to another worker
        """
        trabajador = await TrabajadorService.get_by_id(db, id_trabajador)
        if trabajador is None:
            raise NotFoundException(detail="Trabajador no encontrado")

        await TrabajadorService._raise_if_duplicated(db, changes, exclude_id=id_trabajador)
        if changes.get("id_seccion") is not None:
            await TrabajadorService._ensure_section(db, changes["id_seccion"])

        for field, value in changes.items():
            setattr(trabajador, field, value)
        trabajador.touch()

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictException(detail="Ya existe un trabajador con esos datos", error=str(e.orig))
        await db.refresh(trabajador)

        logger.info(
            sanitize_log_message("Worker updated", WorkerID=id_trabajador, Fields=sorted(changes.keys()))
        )
        return trabajador

    @staticmethod
    async def delete(db: AsyncSession, id_trabajador: int, request_id: Optional[str] = None) -> None:
        """
        Delete a worker with its documents, permissions and user account.

        Stored files are removed after the rows are gone; failures there are
        only logged.

        Raises:
            NotFoundException if the worker does not exist
        """
        result = await db.execute(
            select(Trabajador)
            .where(Trabajador.id_trabajador == id_trabajador)
            .options(
                selectinload(Trabajador.documentos),
                selectinload(Trabajador.permisos),
                selectinload(Trabajador.usuario)
            )
        )
        trabajador = result.scalar_one_or_none()
        if trabajador is None:
            raise NotFoundException(detail="Trabajador no encontrado")

        stored_paths = [documento.ruta_almacenamiento for documento in trabajador.documentos]

        await db.delete(trabajador)
        await db.commit()

        storage = StorageService()
        for relative_path in stored_paths:
            await storage.delete(relative_path, request_id)

        logger.info(
            sanitize_log_message(
                "Worker deleted",
                WorkerID=id_trabajador,
                Documents=len(stored_paths),
                RequestID=request_id
            )
        )
