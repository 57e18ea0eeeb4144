import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from snti.core.exceptions import (
    AuthenticationException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from snti.core.logging_utils import sanitize_log_message
from snti.core.security import get_password_hash, pwd_context, verify_password
from snti.models.trabajador import Trabajador
from snti.models.usuario import Rol, Usuario

logger = logging.getLogger(__name__)


class UsuarioService:
    """Service for user accounts and credential checks."""

    @staticmethod
    async def get_by_id(db: AsyncSession, id_usuario: int) -> Optional[Usuario]:
        """
        Get user by ID.

        Args:
            db: Database session
            id_usuario: User ID

        Returns:
            Usuario record or None
        """
        result = await db.execute(
            select(Usuario).where(Usuario.id_usuario == id_usuario)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_identificador(db: AsyncSession, identificador: str) -> Optional[Usuario]:
        result = await db.execute(
            select(Usuario).where(Usuario.identificador == identificador)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def authenticate(db: AsyncSession, identificador: str, password: str) -> Usuario:
        """
        Check credentials and stamp ``ultimo_acceso``.

        Unknown users, wrong passwords and inactive accounts get the same
        answer.

        Raises:
            AuthenticationException on any failure
        """
        usuario = await UsuarioService.get_by_identificador(db, identificador)
        if usuario is None:
            # Keep timing similar to a real verification
            pwd_context.dummy_verify()
            valid = False
        else:
            valid = verify_password(password, usuario.contrasena_hash) and usuario.activo

        if not valid:
            logger.warning(sanitize_log_message("Login failed", identificador=identificador))
            raise AuthenticationException(detail="Credenciales inválidas")

        usuario.ultimo_acceso = datetime.utcnow()
        await db.commit()

        logger.info(sanitize_log_message("Login succeeded", UserID=usuario.id_usuario))
        return usuario

    @staticmethod
    async def create(
        db: AsyncSession,
        id_trabajador: int,
        identificador: str,
        password: str,
        rol: Rol = Rol.USUARIO,
        commit: bool = True
    ) -> Usuario:
        """
        Create a login for a worker.

        Raises:
            NotFoundException if the worker does not exist
            ConflictException if the worker already has a user or the identifier is taken
        """
        if await db.get(Trabajador, id_trabajador) is None:
            raise NotFoundException(detail="Trabajador no encontrado")

        existing = await db.execute(select(Usuario.id_usuario).where(Usuario.id_trabajador == id_trabajador))
        if existing.scalar_one_or_none() is not None:
            raise ConflictException(detail="El trabajador ya tiene un usuario asignado")

        if await UsuarioService.get_by_identificador(db, identificador) is not None:
            raise ConflictException(detail="El identificador ya está en uso")

        usuario = Usuario(
            identificador=identificador,
            contrasena_hash=get_password_hash(password),
            rol=rol,
            id_trabajador=id_trabajador,
            activo=True
        )
        db.add(usuario)
        try:
            if commit:
                await db.commit()
            else:
                await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictException(detail="El usuario ya existe", error=str(e.orig))
        await db.refresh(usuario)

        logger.info(
            sanitize_log_message(
                "User created",
                UserID=usuario.id_usuario,
                WorkerID=id_trabajador,
                Rol=rol.value
            )
        )
        return usuario

    @staticmethod
    async def list_all(db: AsyncSession) -> List[Usuario]:
        result = await db.execute(select(Usuario).order_by(Usuario.id_usuario.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def set_estado(db: AsyncSession, id_usuario: int, activo: bool, acting_user: Usuario) -> Usuario:
        """
        Activate or deactivate a user.

        Raises:
            NotFoundException if the user does not exist
            ValidationException if an administrator tries to deactivate themselves
        """
        if id_usuario == acting_user.id_usuario and not activo:
            raise ValidationException(detail="No puedes desactivar tu propio usuario")

        usuario = await UsuarioService.get_by_id(db, id_usuario)
        if usuario is None:
            raise NotFoundException(detail="Usuario no encontrado")

        usuario.activo = activo
        await db.commit()

        logger.info(
            sanitize_log_message(
                "User status changed",
                UserID=id_usuario,
                Activo=activo,
                ChangedBy=acting_user.id_usuario
            )
        )
        return usuario
