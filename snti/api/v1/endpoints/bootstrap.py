import hmac
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from snti.config import settings
from snti.database import get_db
from snti.core.exceptions import ForbiddenException
from snti.core.security import create_user_token
from snti.middleware.rate_limit import rate_limit_auth
from snti.schemas.bootstrap import BootstrapStatus, FirstAdminRequest, FirstAdminResponse
from snti.schemas.common import APIResponse
from snti.services.bootstrap_service import BootstrapService

router = APIRouter()


@router.get("/status", response_model=APIResponse[BootstrapStatus])
async def bootstrap_status(db: AsyncSession = Depends(get_db)):
    """
    Whether the first administrator still has to be created.
    Public endpoint.
    """
    return APIResponse(data=BootstrapStatus(**await BootstrapService.status(db)))


@router.post("/first-admin", response_model=APIResponse[FirstAdminResponse], status_code=status.HTTP_201_CREATED)
@rate_limit_auth()
async def create_first_admin(
    request: Request,
    payload: FirstAdminRequest,
    x_bootstrap_token: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Create the first administrator with its worker record.
    Only works while no administrator exists; requires X-Bootstrap-Token
    when BOOTSTRAP_TOKEN is configured.
    """
    if settings.BOOTSTRAP_TOKEN and not hmac.compare_digest(x_bootstrap_token or "", settings.BOOTSTRAP_TOKEN):
        raise ForbiddenException(detail="Token de inicialización inválido")

    usuario, trabajador = await BootstrapService.create_first_admin(db, payload)

    return APIResponse(
        message="Administrador inicial creado exitosamente",
        data=FirstAdminResponse(
            id_usuario=usuario.id_usuario,
            id_trabajador=trabajador.id_trabajador,
            identificador=usuario.identificador,
            rol=usuario.rol.value,
            access_token=create_user_token(usuario.id_usuario, trabajador.id_trabajador, usuario.rol.value)
        )
    )
