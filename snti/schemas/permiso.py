from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel
from snti.schemas.documento import DocumentSummary


class WorkerSummary(BaseModel):
    """Worker fields embedded in permission responses."""
    nombre: str
    apellido_paterno: str
    apellido_materno: Optional[str] = None
    numero_empleado: str

    class Config:
        from_attributes = True


class PermisoResponse(BaseModel):
    """Response schema for a permission request."""
    id_permiso: int
    id_trabajador: int
    tipo_permiso: Optional[str] = None
    fecha_inicio: date
    fecha_fin: date
    motivo: str
    estatus: str
    documento_aprobacion_id: Optional[int] = None
    fecha_registro: Optional[datetime] = None
    fecha_actualizacion: Optional[datetime] = None
    trabajador: Optional[WorkerSummary] = None
    documento: Optional[DocumentSummary] = None

    class Config:
        from_attributes = True


class AttachedDocument(BaseModel):
    id_documento: int
    nombre_archivo: str
    ruta: str


class PermisoCreatedResponse(BaseModel):
    """Response schema for a newly created permission and its attachment."""
    permiso: PermisoResponse
    documento: AttachedDocument
