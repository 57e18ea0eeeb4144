import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from snti.core.exceptions import ConflictException
from snti.core.logging_utils import sanitize_log_message
from snti.models.seccion import Seccion

logger = logging.getLogger(__name__)


class SeccionService:
    """Service for union sections."""

    @staticmethod
    async def list_all(db: AsyncSession) -> List[Seccion]:
        result = await db.execute(select(Seccion).order_by(Seccion.nombre_seccion.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def create(db: AsyncSession, nombre_seccion: str, descripcion: Optional[str] = None) -> Seccion:
        """
        Create a section.

        Raises:
            ConflictException if the name is already used
        """
        existing = await db.execute(select(Seccion.id_seccion).where(Seccion.nombre_seccion == nombre_seccion))
        if existing.scalar_one_or_none() is not None:
            raise ConflictException(detail="Ya existe una sección con ese nombre")

        seccion = Seccion(nombre_seccion=nombre_seccion, descripcion=descripcion)
        db.add(seccion)
        await db.commit()
        await db.refresh(seccion)

        logger.info(sanitize_log_message("Section created", SectionID=seccion.id_seccion))
        return seccion
