from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class SeccionCreate(BaseModel):
    nombre_seccion: str = Field(..., min_length=1, max_length=100)
    descripcion: Optional[str] = None


class SeccionResponse(BaseModel):
    id_seccion: int
    nombre_seccion: str
    descripcion: Optional[str] = None
    fecha_creacion: Optional[datetime] = None

    class Config:
        from_attributes = True
