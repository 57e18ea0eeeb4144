import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.api.deps import current_request_id, get_current_user, get_permiso_service, require_admin
from snti.core.exceptions import ValidationException
from snti.core.validators import parse_iso_date, parse_optional_int
from snti.middleware.rate_limit import rate_limit_uploads
from snti.models.usuario import Usuario
from snti.schemas.common import APIResponse
from snti.schemas.permiso import AttachedDocument, PermisoCreatedResponse, PermisoResponse
from snti.services.permiso_service import PermisoService

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_SHORT_FIELD = 20


def _parse_permiso_form(
    fecha_inicio: Optional[str],
    fecha_fin: Optional[str],
    tipo_permiso: Optional[str],
    estatus: Optional[str],
    motivo: Optional[str],
    required: bool
) -> Dict[str, Any]:
    """
    Validate multipart permission fields, collecting every problem.

    Raises:
        ValidationException listing each invalid field
    """
    errors = []
    values: Dict[str, Any] = {}

    for name, raw in (("fecha_inicio", fecha_inicio), ("fecha_fin", fecha_fin)):
        try:
            values[name] = parse_iso_date(raw, name)
        except ValueError as e:
            errors.append({"campo": name, "mensaje": str(e)})
            continue
        if required and values[name] is None:
            errors.append({"campo": name, "mensaje": f"El campo {name} es obligatorio."})

    if motivo is not None and motivo.strip():
        values["motivo"] = motivo.strip()
    elif required:
        errors.append({"campo": "motivo", "mensaje": "El motivo es obligatorio."})

    for name, raw in (("tipo_permiso", tipo_permiso), ("estatus", estatus)):
        if raw is None or not raw.strip():
            continue
        if len(raw.strip()) > MAX_SHORT_FIELD:
            errors.append({"campo": name, "mensaje": f"El campo {name} no puede exceder {MAX_SHORT_FIELD} caracteres."})
        else:
            values[name] = raw.strip()

    if errors:
        raise ValidationException(errors=errors)
    return values


@router.post("", response_model=APIResponse[PermisoCreatedResponse], status_code=status.HTTP_201_CREATED)
@rate_limit_uploads()
async def create_permiso(
    request: Request,
    archivo: Optional[UploadFile] = File(None),
    id_trabajador: Optional[str] = Form(None),
    tipo_permiso: Optional[str] = Form(None),
    fecha_inicio: Optional[str] = Form(None),
    fecha_fin: Optional[str] = Form(None),
    motivo: Optional[str] = Form(None),
    estatus: Optional[str] = Form(None),
    current_user: Usuario = Depends(require_admin),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """
    Register a permission together with its approval document.
    Administrators only.
    """
    try:
        worker_id = parse_optional_int(id_trabajador, "id_trabajador")
    except ValueError as e:
        raise ValidationException(errors=[{"campo": "id_trabajador", "mensaje": str(e)}])
    if worker_id is None:
        raise ValidationException(errors=[{"campo": "id_trabajador", "mensaje": "El ID del trabajador es obligatorio."}])

    values = _parse_permiso_form(fecha_inicio, fecha_fin, tipo_permiso, estatus, motivo, required=True)

    if archivo is None or not archivo.filename:
        raise ValidationException(detail="El documento de aprobación es obligatorio.")

    permiso, documento = await permiso_service.create_permiso(
        db,
        file=archivo,
        id_trabajador=worker_id,
        request_id=request_id,
        **values
    )

    return APIResponse(
        message="Permiso y documento de aprobación registrados exitosamente.",
        data=PermisoCreatedResponse(
            permiso=PermisoResponse.model_validate(permiso),
            documento=AttachedDocument(
                id_documento=documento.id_documento,
                nombre_archivo=documento.nombre_archivo,
                ruta=documento.ruta_almacenamiento
            )
        )
    )


@router.get("", response_model=APIResponse[List[PermisoResponse]])
async def list_permisos(
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """All permissions, newest first. Administrators only."""
    permisos = await permiso_service.list_all(db)
    return APIResponse(
        message="Lista de permisos obtenida exitosamente.",
        data=[PermisoResponse.model_validate(p) for p in permisos]
    )


@router.get("/mis-permisos", response_model=APIResponse[List[PermisoResponse]])
async def my_permisos(
    current_user: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """Permissions of the caller's own worker record."""
    permisos = await permiso_service.list_for_user(db, current_user)
    if not permisos:
        return APIResponse(message="No tienes permisos registrados.", data=[])
    return APIResponse(
        message="Tus permisos han sido obtenidos exitosamente.",
        data=[PermisoResponse.model_validate(p) for p in permisos]
    )


@router.get("/trabajador/{id_trabajador}", response_model=APIResponse[List[PermisoResponse]])
async def list_worker_permisos(
    id_trabajador: int,
    current_user: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """Permissions of one worker. Administrators only."""
    permisos = await permiso_service.list_by_worker(db, id_trabajador)
    return APIResponse(data=[PermisoResponse.model_validate(p) for p in permisos])


@router.put("/{id_permiso}", response_model=APIResponse[PermisoResponse])
@rate_limit_uploads()
async def update_permiso(
    request: Request,
    id_permiso: int,
    archivo: Optional[UploadFile] = File(None),
    id_trabajador: Optional[str] = Form(None),
    tipo_permiso: Optional[str] = Form(None),
    fecha_inicio: Optional[str] = Form(None),
    fecha_fin: Optional[str] = Form(None),
    motivo: Optional[str] = Form(None),
    estatus: Optional[str] = Form(None),
    current_user: Usuario = Depends(require_admin),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """
    Update a permission; a new ``archivo`` replaces the approval document.
    ``id_trabajador`` cannot change and is ignored.
    """
    changes = _parse_permiso_form(fecha_inicio, fecha_fin, tipo_permiso, estatus, motivo, required=False)

    permiso = await permiso_service.update_permiso(
        db,
        id_permiso,
        changes,
        file=archivo if archivo is not None and archivo.filename else None,
        request_id=request_id
    )
    return APIResponse(
        message="Permiso actualizado exitosamente.",
        data=PermisoResponse.model_validate(permiso)
    )


@router.delete("/{id_permiso}", response_model=APIResponse[None])
async def delete_permiso(
    id_permiso: int,
    current_user: Usuario = Depends(require_admin),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """Delete a permission and its approval document. Administrators only."""
    await permiso_service.delete_permiso(db, id_permiso, request_id)
    return APIResponse(message="Permiso y documento asociado eliminados exitosamente.")


@router.get("/documento/{id_documento}/descargar")
async def download_permiso_document(
    id_documento: int,
    current_user: Usuario = Depends(get_current_user),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    permiso_service: PermisoService = Depends(get_permiso_service)
):
    """Download an approval document; users may only download their own."""
    download = await permiso_service.open_attachment_download(db, id_documento, current_user, request_id)
    return StreamingResponse(
        download.iter_bytes(),
        media_type=download.media_type,
        headers=download.headers
    )
