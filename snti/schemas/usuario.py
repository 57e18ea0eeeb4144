from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from snti.core.validators import is_strong_password
from snti.models.usuario import Rol


def check_password_strength(value: str) -> str:
    if not is_strong_password(value):
        raise ValueError(
            "La contraseña debe tener al menos 8 caracteres, una mayúscula, una minúscula y un número"
        )
    return value


class UsuarioCreate(BaseModel):
    """Request schema for creating a login for an existing worker."""
    id_trabajador: int = Field(..., ge=1)
    identificador: str = Field(..., min_length=3, max_length=150)
    contrasena: str = Field(..., alias="contraseña")
    rol: Rol = Rol.USUARIO

    class Config:
        populate_by_name = True

    @field_validator("contrasena")
    @classmethod
    def validate_password(cls, value):
        return check_password_strength(value)


class UsuarioEstadoUpdate(BaseModel):
    """Request schema for activating or deactivating a user."""
    activo: bool


class UsuarioResponse(BaseModel):
    """User account as returned by the API; never includes the hash."""
    id_usuario: int
    identificador: str
    rol: Rol
    id_trabajador: int
    activo: bool
    ultimo_acceso: Optional[datetime] = None
    fecha_creacion: Optional[datetime] = None

    class Config:
        from_attributes = True
