"""Pydantic schemas for request/response contracts."""
from snti.schemas.common import APIResponse, ErrorResponse
from snti.schemas.auth import LoginRequest, LoginResponse, CurrentUserResponse
from snti.schemas.documento import DocumentUploadResponse, DocumentResponse, DocumentSummary
from snti.schemas.permiso import (
    WorkerSummary,
    PermisoResponse,
    AttachedDocument,
    PermisoCreatedResponse,
)
from snti.schemas.trabajador import (
    TrabajadorCreate,
    TrabajadorUpdate,
    TrabajadorResponse,
    TrabajadorListItem,
    TrabajadorPage,
)
from snti.schemas.usuario import UsuarioCreate, UsuarioEstadoUpdate, UsuarioResponse
from snti.schemas.seccion import SeccionCreate, SeccionResponse
from snti.schemas.bootstrap import BootstrapStatus, FirstAdminRequest, FirstAdminResponse

__all__ = [
    "APIResponse",
    "ErrorResponse",
    "LoginRequest",
    "LoginResponse",
    "CurrentUserResponse",
    "DocumentUploadResponse",
    "DocumentResponse",
    "DocumentSummary",
    "WorkerSummary",
    "PermisoResponse",
    "AttachedDocument",
    "PermisoCreatedResponse",
    "TrabajadorCreate",
    "TrabajadorUpdate",
    "TrabajadorResponse",
    "TrabajadorListItem",
    "TrabajadorPage",
    "UsuarioCreate",
    "UsuarioEstadoUpdate",
    "UsuarioResponse",
    "SeccionCreate",
    "SeccionResponse",
    "BootstrapStatus",
    "FirstAdminRequest",
    "FirstAdminResponse",
]
