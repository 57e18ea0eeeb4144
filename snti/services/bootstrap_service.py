import logging
from typing import Any, Dict, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from snti.core.exceptions import ConflictException
from snti.core.logging_utils import sanitize_log_message
from snti.models.seccion import Seccion
from snti.models.trabajador import Trabajador
from snti.models.usuario import Rol, Usuario
from snti.schemas.bootstrap import FirstAdminRequest
from snti.services.trabajador_service import TrabajadorService
from snti.services.usuario_service import UsuarioService

logger = logging.getLogger(__name__)

CREDENTIAL_FIELDS = {"identificador", "contrasena", "nombre_seccion"}


class BootstrapService:
    """First-run setup: creates the initial administrator."""

    @staticmethod
    async def get_first_admin(db: AsyncSession) -> Optional[Usuario]:
        result = await db.execute(
            select(Usuario)
            .where(Usuario.rol == Rol.ADMINISTRADOR)
            .options(selectinload(Usuario.trabajador).selectinload(Trabajador.seccion))
            .order_by(Usuario.id_usuario.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def status(db: AsyncSession) -> Dict[str, Any]:
        """Report whether an administrator exists yet."""
        admin = await BootstrapService.get_first_admin(db)
        info_admin = None
        if admin is not None:
            seccion = admin.trabajador.seccion if admin.trabajador else None
            info_admin = {
                "id": admin.id_usuario,
                "identificador": admin.identificador,
                "fecha_creacion": admin.fecha_creacion,
                "seccion": seccion.nombre_seccion if seccion else None,
            }
        return {
            "bootstrap_requerido": admin is None,
            "admin_existente": admin is not None,
            "info_admin": info_admin,
        }

    @staticmethod
    async def _ensure_section(db: AsyncSession, id_seccion: int, nombre_seccion: str) -> int:
        if await db.get(Seccion, id_seccion) is not None:
            return id_seccion

        # Reuse a section with the same name before creating one
        result = await db.execute(select(Seccion).where(Seccion.nombre_seccion == nombre_seccion))
        seccion = result.scalar_one_or_none()
        if seccion is None:
            seccion = Seccion(id_seccion=id_seccion, nombre_seccion=nombre_seccion)
            db.add(seccion)
            await db.flush()
            logger.info(sanitize_log_message("Section created during bootstrap", SectionID=seccion.id_seccion))
        return seccion.id_seccion

    @staticmethod
    async def create_first_admin(db: AsyncSession, payload: FirstAdminRequest) -> Tuple[Usuario, Trabajador]:
        """
        Create section (if missing), worker and administrator in one transaction.

        Raises:
            ConflictException if an administrator already exists or a unique field is taken
        """
        if await BootstrapService.get_first_admin(db) is not None:
            raise ConflictException(detail="El sistema ya fue inicializado: ya existe un administrador")

        try:
            id_seccion = await BootstrapService._ensure_section(db, payload.id_seccion, payload.nombre_seccion)

            values = payload.model_dump(exclude=CREDENTIAL_FIELDS)
            values["id_seccion"] = id_seccion
            trabajador = await TrabajadorService.create(db, values, commit=False)

            usuario = await UsuarioService.create(
                db,
                id_trabajador=trabajador.id_trabajador,
                identificador=payload.identificador,
                password=payload.contrasena,
                rol=Rol.ADMINISTRADOR,
                commit=False
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            sanitize_log_message(
                "First administrator created",
                UserID=usuario.id_usuario,
                WorkerID=trabajador.id_trabajador
            )
        )
        return usuario, trabajador
