from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.api.deps import get_current_user, require_admin
from snti.models.usuario import Usuario
from snti.schemas.common import APIResponse
from snti.schemas.seccion import SeccionCreate, SeccionResponse
from snti.services.seccion_service import SeccionService

router = APIRouter()


@router.get("", response_model=APIResponse[List[SeccionResponse]])
async def list_secciones(
    current_user: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    secciones = await SeccionService.list_all(db)
    return APIResponse(data=[SeccionResponse.model_validate(s) for s in secciones])


@router.post("", response_model=APIResponse[SeccionResponse], status_code=status.HTTP_201_CREATED)
async def create_seccion(
    payload: SeccionCreate,
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a section. Administrators only."""
    seccion = await SeccionService.create(db, payload.nombre_seccion.strip(), payload.descripcion)
    return APIResponse(message="Sección creada exitosamente", data=SeccionResponse.model_validate(seccion))
