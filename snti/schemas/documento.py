from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class DocumentUploadResponse(BaseModel):
    """Descriptor returned after a committed upload."""
    id_documento: int
    nombre_archivo: str
    ruta_almacenamiento: str
    tipo_documento: str
    fecha_subida: datetime
    hash_archivo: str
    tamano_bytes: int

    class Config:
        from_attributes = True


class DocumentResponse(BaseModel):
    """Response schema for a worker's document listing."""
    id_documento: int
    tipo_documento: str
    nombre_archivo: str
    descripcion: Optional[str] = None
    fecha_subida: datetime
    es_publico: bool
    ruta_almacenamiento: str

    class Config:
        from_attributes = True


class DocumentSummary(BaseModel):
    """Document fields embedded in permission responses."""
    id_documento: int
    nombre_archivo: str
    ruta_almacenamiento: str
    tipo_documento: str
    fecha_subida: datetime

    class Config:
        from_attributes = True
