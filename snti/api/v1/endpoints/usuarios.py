from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.api.deps import require_admin
from snti.models.usuario import Usuario
from snti.schemas.common import APIResponse
from snti.schemas.usuario import UsuarioCreate, UsuarioEstadoUpdate, UsuarioResponse
from snti.services.usuario_service import UsuarioService

router = APIRouter()


@router.post("", response_model=APIResponse[UsuarioResponse], status_code=status.HTTP_201_CREATED)
async def create_usuario(
    payload: UsuarioCreate,
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a login for an existing worker. Administrators only."""
    usuario = await UsuarioService.create(
        db,
        id_trabajador=payload.id_trabajador,
        identificador=payload.identificador,
        password=payload.contrasena,
        rol=payload.rol
    )
    return APIResponse(message="Usuario creado exitosamente", data=UsuarioResponse.model_validate(usuario))


@router.get("", response_model=APIResponse[List[UsuarioResponse]])
async def list_usuarios(
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    usuarios = await UsuarioService.list_all(db)
    return APIResponse(data=[UsuarioResponse.model_validate(u) for u in usuarios])


@router.patch("/{id_usuario}/estado", response_model=APIResponse[UsuarioResponse])
async def set_usuario_estado(
    id_usuario: int,
    payload: UsuarioEstadoUpdate,
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Activate or deactivate a user. Administrators only."""
    usuario = await UsuarioService.set_estado(db, id_usuario, payload.activo, current_user)
    message = "Usuario activado" if usuario.activo else "Usuario desactivado"
    return APIResponse(message=message, data=UsuarioResponse.model_validate(usuario))
