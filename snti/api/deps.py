import uuid
from typing import Callable, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.core.acl import has_role
from snti.core.exceptions import AuthenticationException, ForbiddenException
from snti.core.security import decode_access_token
from snti.models.usuario import Rol, Usuario
from snti.services.document_service import DocumentService
from snti.services.permiso_service import PermisoService
from snti.services.usuario_service import UsuarioService


# HTTP Bearer scheme for JWT authentication; missing credentials are reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> Usuario:
    """
    Get current user from JWT token.
    Dependency for endpoints requiring authentication.

    Raises:
        AuthenticationException: 401 if the token is missing or invalid, or the
        user no longer exists or is inactive
    """
    if credentials is None:
        raise AuthenticationException(detail="Token no proporcionado")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationException()

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationException(detail="Token sin identificador de usuario")

    try:
        usuario = await UsuarioService.get_by_id(db, int(user_id))
    except ValueError:
        raise AuthenticationException(detail="Identificador de usuario inválido en el token")

    if usuario is None or not usuario.activo:
        raise AuthenticationException(detail="Usuario no encontrado o inactivo")

    return usuario


def require_roles(*roles: Rol) -> Callable:
    """
    Build a dependency that admits only the given roles.

    Usage:
        @router.get("/", dependencies=[Depends(require_roles(Rol.ADMINISTRADOR))])
    """
    async def checker(current_user: Usuario = Depends(get_current_user)) -> Usuario:
        if not has_role(current_user, roles):
            raise ForbiddenException(detail="No tienes permisos para realizar esta acción")
        return current_user

    return checker


require_admin = require_roles(Rol.ADMINISTRADOR)


def current_request_id(request: Request) -> str:
    """Request ID set by LoggingMiddleware, or a new one."""
    if not hasattr(request.state, "request_id"):
        request.state.request_id = str(uuid.uuid4())
    return request.state.request_id


# Service Dependencies for Dependency Injection
def get_document_service() -> DocumentService:
    """Get DocumentService instance."""
    return DocumentService()


def get_permiso_service() -> PermisoService:
    """Get PermisoService instance."""
    return PermisoService()
