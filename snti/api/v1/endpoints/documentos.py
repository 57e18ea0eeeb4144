import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from snti.database import get_db
from snti.api.deps import current_request_id, get_current_user, get_document_service, require_admin
from snti.core.acl import require_worker_access
from snti.core.exceptions import ValidationException
from snti.core.validators import parse_bool, parse_optional_int
from snti.middleware.rate_limit import rate_limit_uploads
from snti.models.usuario import Usuario
from snti.schemas.common import APIResponse
from snti.schemas.documento import DocumentResponse, DocumentUploadResponse
from snti.services.document_service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=APIResponse[DocumentUploadResponse], status_code=status.HTTP_201_CREATED)
@rate_limit_uploads()
async def upload_document(
    request: Request,
    archivo: Optional[UploadFile] = File(None),
    id_trabajador: Optional[str] = Form(None),
    tipo_documento: Optional[str] = Form(None),
    descripcion: Optional[str] = Form(None),
    es_publico: Optional[str] = Form(None),
    current_user: Usuario = Depends(get_current_user),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    document_service: DocumentService = Depends(get_document_service)
):
    """
    Upload a document for a worker.
    Administrators may upload for any worker, users only for themselves.
    """
    if archivo is None or not archivo.filename:
        raise ValidationException(detail="No se proporcionó ningún archivo.")

    try:
        worker_id = parse_optional_int(id_trabajador, "id_trabajador")
    except ValueError as e:
        raise ValidationException(errors=[{"campo": "id_trabajador", "mensaje": str(e)}])
    if worker_id is None:
        raise ValidationException(errors=[{"campo": "id_trabajador", "mensaje": "El ID del trabajador es obligatorio."}])

    require_worker_access(current_user, worker_id, action="upload_document")

    documento = await document_service.upload_document(
        db,
        file=archivo,
        id_trabajador=worker_id,
        tipo_documento=tipo_documento.strip() if tipo_documento else None,
        descripcion=descripcion or None,
        es_publico=bool(parse_bool(es_publico)),
        request_id=request_id
    )

    return APIResponse(
        message="Documento subido exitosamente",
        data=DocumentUploadResponse.model_validate(documento)
    )


@router.get("/trabajador/{id_trabajador}", response_model=APIResponse[List[DocumentResponse]])
async def list_worker_documents(
    id_trabajador: int,
    current_user: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    document_service: DocumentService = Depends(get_document_service)
):
    """Active documents of a worker, newest first."""
    require_worker_access(current_user, id_trabajador, action="list_documents")

    documentos = await document_service.list_by_worker(db, id_trabajador)
    return APIResponse(data=[DocumentResponse.model_validate(doc) for doc in documentos])


@router.get("/{id_documento}/descargar")
async def download_document(
    id_documento: int,
    current_user: Usuario = Depends(get_current_user),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    document_service: DocumentService = Depends(get_document_service)
):
    """
    Stream a stored document as an attachment.
    Ownership and file integrity are checked before any byte is sent.
    """
    download = await document_service.open_download(db, id_documento, current_user, request_id)
    return StreamingResponse(
        download.iter_bytes(),
        media_type=download.media_type,
        headers=download.headers
    )


@router.delete("/{id_documento}", response_model=APIResponse[None])
async def delete_document(
    id_documento: int,
    current_user: Usuario = Depends(require_admin),
    request_id: str = Depends(current_request_id),
    db: AsyncSession = Depends(get_db),
    document_service: DocumentService = Depends(get_document_service)
):
    """Deactivate a document (the file is kept)."""
    await document_service.soft_delete(db, id_documento, request_id)
    return APIResponse(message="Documento eliminado exitosamente")
