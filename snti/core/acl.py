import logging
from typing import Iterable
from snti.models.usuario import Rol, Usuario
from snti.core.exceptions import ForbiddenException
from snti.core.logging_utils import sanitize_log_message

logger = logging.getLogger(__name__)


def has_role(user: Usuario, roles: Iterable[Rol]) -> bool:
    """Check if the user holds any of the given roles."""
    return user.rol in set(roles)


def can_access_worker(user: Usuario, id_trabajador: int) -> bool:
    """
    Check record-level access to a worker's data.

    Administrators may access any worker; regular users only the worker
    their account is bound to.

    Args:
        user: Authenticated user
        id_trabajador: Worker that owns the resource

    Returns:
        True if access is allowed, False otherwise
    """
    if user.is_admin:
        return True
    return user.id_trabajador == id_trabajador


def require_worker_access(user: Usuario, id_trabajador: int, action: str = "access") -> None:
    """
    Enforce record-level access, raising 403 when denied.

    Raises:
        ForbiddenException if the user may not act on the worker's data
    """
    if not can_access_worker(user, id_trabajador):
        logger.warning(
            sanitize_log_message(
                "Access denied",
                UserID=user.id_usuario,
                Rol=user.rol.value if user.rol else None,
                Action=action,
                TargetWorker=id_trabajador
            )
        )
        raise ForbiddenException(detail="No tienes permiso para acceder a este recurso")
