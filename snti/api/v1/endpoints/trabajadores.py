from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.api.deps import current_request_id, get_current_user, require_admin
from snti.core.acl import require_worker_access
from snti.core.exceptions import NotFoundException
from snti.models.usuario import Usuario
from snti.schemas.common import APIResponse
from snti.schemas.trabajador import (
    TrabajadorCreate,
    TrabajadorListItem,
    TrabajadorPage,
    TrabajadorResponse,
    TrabajadorUpdate,
)
from snti.services.trabajador_service import TrabajadorService

router = APIRouter()


@router.post("", response_model=APIResponse[TrabajadorResponse], status_code=status.HTTP_201_CREATED)
async def create_trabajador(
    payload: TrabajadorCreate,
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a worker. Administrators only."""
    trabajador = await TrabajadorService.create(db, payload.model_dump())
    return APIResponse(
        message="Trabajador creado exitosamente",
        data=TrabajadorResponse.model_validate(trabajador)
    )


@router.get("", response_model=APIResponse[TrabajadorPage])
async def list_trabajadores(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Paginated worker listing with optional search. Administrators only."""
    trabajadores, total = await TrabajadorService.list_paginated(db, page=page, size=size, search=search)
    return APIResponse(
        data=TrabajadorPage(
            total=total,
            page=page,
            size=size,
            totalPages=TrabajadorService.total_pages(total, size),
            data=[TrabajadorListItem.model_validate(t) for t in trabajadores]
        )
    )


@router.get("/{id_trabajador}", response_model=APIResponse[TrabajadorResponse])
async def get_trabajador(
    id_trabajador: int,
    current_user: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a worker; users may only read their own record."""
    require_worker_access(current_user, id_trabajador, action="read_worker")

    trabajador = await TrabajadorService.get_by_id(db, id_trabajador)
    if trabajador is None:
        raise NotFoundException(detail="Trabajador no encontrado")
    return APIResponse(data=TrabajadorResponse.model_validate(trabajador))


@router.put("/{id_trabajador}", response_model=APIResponse[TrabajadorResponse])
async def update_trabajador(
    id_trabajador: int,
    payload: TrabajadorUpdate,
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Partially update a worker. Administrators only."""
    changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    trabajador = await TrabajadorService.update(db, id_trabajador, changes)
    return APIResponse(
        message="Trabajador actualizado exitosamente",
        data=TrabajadorResponse.model_validate(trabajador)
    )


@router.delete("/{id_trabajador}", response_model=APIResponse[None])
async def delete_trabajador(
    id_trabajador: int,
    current_user: Usuario = Depends(require_admin),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a worker with all dependent records and files. Administrators only."""
    await TrabajadorService.delete(db, id_trabajador, request_id)
    return APIResponse(message="Trabajador eliminado exitosamente")
