from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.api.deps import get_current_user
from snti.core.security import create_user_token
from snti.middleware.rate_limit import rate_limit_auth
from snti.models.usuario import Usuario
from snti.schemas.auth import CurrentUserResponse, LoginRequest, LoginResponse
from snti.schemas.common import APIResponse
from snti.services.usuario_service import UsuarioService

router = APIRouter()


@router.post("/login", response_model=APIResponse[LoginResponse])
@rate_limit_auth()
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate with identifier and password and return a JWT token.
    """
    usuario = await UsuarioService.authenticate(db, credentials.identificador, credentials.contrasena)

    access_token = create_user_token(
        id_usuario=usuario.id_usuario,
        id_trabajador=usuario.id_trabajador,
        rol=usuario.rol.value
    )

    return APIResponse(
        message="Inicio de sesión exitoso",
        data=LoginResponse(
            access_token=access_token,
            id_usuario=usuario.id_usuario,
            id_trabajador=usuario.id_trabajador,
            rol=usuario.rol
        )
    )


@router.get("/me", response_model=APIResponse[CurrentUserResponse])
async def get_me(current_user: Usuario = Depends(get_current_user)):
    """
    Get current user information from JWT token.
    """
    return APIResponse(data=CurrentUserResponse.model_validate(current_user))
