from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from snti.schemas.trabajador import TrabajadorBase
from snti.schemas.usuario import check_password_strength


class AdminInfo(BaseModel):
    id: int
    identificador: str
    fecha_creacion: Optional[datetime] = None
    seccion: Optional[str] = None


class BootstrapStatus(BaseModel):
    """Whether the system still needs its first administrator."""
    bootstrap_requerido: bool
    admin_existente: bool
    info_admin: Optional[AdminInfo] = None


class FirstAdminRequest(TrabajadorBase):
    """
    Worker data plus credentials for the first administrator.

    ``id_seccion`` is optional here; when the section does not exist yet it is
    created from ``nombre_seccion``.
    """
    id_seccion: int = Field(1, ge=1)
    nombre_seccion: str = Field("Sección General", min_length=1, max_length=100)
    identificador: str = Field(..., min_length=3, max_length=150)
    contrasena: str = Field(..., alias="contraseña")

    class Config:
        populate_by_name = True

    @field_validator("contrasena")
    @classmethod
    def validate_password(cls, value):
        return check_password_strength(value)


class FirstAdminResponse(BaseModel):
    id_usuario: int
    id_trabajador: int
    identificador: str
    rol: str
    access_token: str
    token_type: str = "bearer"
