from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from snti.models.usuario import Rol


class LoginRequest(BaseModel):
    """Request schema for login."""
    identificador: str = Field(..., min_length=1, max_length=150)
    contrasena: str = Field(..., alias="contraseña", min_length=1)

    class Config:
        populate_by_name = True


class LoginResponse(BaseModel):
    """Response schema for login."""
    access_token: str
    token_type: str = "bearer"
    id_usuario: int
    id_trabajador: int
    rol: Rol


class CurrentUserResponse(BaseModel):
    """Response schema for current user info."""
    id_usuario: int
    identificador: str
    rol: Rol
    id_trabajador: int
    activo: bool
    ultimo_acceso: Optional[datetime] = None

    class Config:
        from_attributes = True
