from typing import Annotated, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, BeforeValidator, EmailStr, Field, field_validator
from snti.core.validators import is_valid_curp, is_valid_rfc
from snti.models.trabajador import Sexo, SituacionSentimental


def _check_curp(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not isinstance(value, str):
        raise ValueError("Debe ser texto")
    value = value.strip().upper()
    if not is_valid_curp(value):
        raise ValueError("Formato de CURP no válido")
    return value


def _check_rfc(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not isinstance(value, str):
        raise ValueError("Debe ser texto")
    value = value.strip().upper()
    if not is_valid_rfc(value):
        raise ValueError("Formato de RFC no válido")
    return value


CurpStr = Annotated[str, BeforeValidator(_check_curp)]
RfcStr = Annotated[str, BeforeValidator(_check_rfc)]


class TrabajadorBase(BaseModel):
    """Fields shared by create and bootstrap payloads."""
    nombre: str = Field(..., min_length=1, max_length=100)
    apellido_paterno: str = Field(..., min_length=1, max_length=100)
    apellido_materno: Optional[str] = Field(None, max_length=100)
    fecha_nacimiento: date
    sexo: Sexo
    curp: CurpStr
    rfc: RfcStr
    email: EmailStr
    situacion_sentimental: Optional[SituacionSentimental] = None
    numero_hijos: int = Field(0, ge=0)
    numero_empleado: str = Field(..., min_length=1, max_length=10)
    numero_plaza: str = Field(..., min_length=1, max_length=8)
    fecha_ingreso: date
    fecha_ingreso_gobierno: date
    nivel_puesto: str = Field(..., min_length=1, max_length=50)
    nombre_puesto: str = Field(..., min_length=1, max_length=100)
    puesto_inpi: Optional[str] = Field(None, max_length=100)
    adscripcion: str = Field(..., min_length=1, max_length=100)
    id_seccion: int = Field(..., ge=1)
    nivel_estudios: Optional[str] = Field(None, max_length=50)
    institucion_estudios: Optional[str] = Field(None, max_length=150)
    certificado_estudios: bool = False
    plaza_base: Optional[str] = Field(None, max_length=20)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class TrabajadorCreate(TrabajadorBase):
    """Request schema for creating a worker."""


class TrabajadorUpdate(BaseModel):
    """Request schema for a partial worker update."""
    nombre: Optional[str] = Field(None, min_length=1, max_length=100)
    apellido_paterno: Optional[str] = Field(None, min_length=1, max_length=100)
    apellido_materno: Optional[str] = Field(None, max_length=100)
    fecha_nacimiento: Optional[date] = None
    sexo: Optional[Sexo] = None
    curp: Optional[CurpStr] = None
    rfc: Optional[RfcStr] = None
    email: Optional[EmailStr] = None
    situacion_sentimental: Optional[SituacionSentimental] = None
    numero_hijos: Optional[int] = Field(None, ge=0)
    numero_empleado: Optional[str] = Field(None, min_length=1, max_length=10)
    numero_plaza: Optional[str] = Field(None, min_length=1, max_length=8)
    fecha_ingreso: Optional[date] = None
    fecha_ingreso_gobierno: Optional[date] = None
    nivel_puesto: Optional[str] = Field(None, max_length=50)
    nombre_puesto: Optional[str] = Field(None, max_length=100)
    puesto_inpi: Optional[str] = Field(None, max_length=100)
    adscripcion: Optional[str] = Field(None, max_length=100)
    id_seccion: Optional[int] = Field(None, ge=1)
    nivel_estudios: Optional[str] = Field(None, max_length=50)
    institucion_estudios: Optional[str] = Field(None, max_length=150)
    certificado_estudios: Optional[bool] = None
    plaza_base: Optional[str] = Field(None, max_length=20)


class TrabajadorResponse(BaseModel):
    """Full worker record."""
    id_trabajador: int
    nombre: str
    apellido_paterno: str
    apellido_materno: Optional[str] = None
    fecha_nacimiento: date
    sexo: Sexo
    curp: str
    rfc: str
    email: str
    situacion_sentimental: Optional[SituacionSentimental] = None
    numero_hijos: int
    numero_empleado: str
    numero_plaza: str
    fecha_ingreso: date
    fecha_ingreso_gobierno: date
    nivel_puesto: str
    nombre_puesto: str
    puesto_inpi: Optional[str] = None
    adscripcion: str
    id_seccion: int
    nivel_estudios: Optional[str] = None
    institucion_estudios: Optional[str] = None
    certificado_estudios: bool
    plaza_base: Optional[str] = None
    fecha_registro: Optional[datetime] = None
    fecha_actualizacion: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrabajadorListItem(BaseModel):
    """Worker row in paginated listings."""
    id_trabajador: int
    nombre: str
    apellido_paterno: str
    apellido_materno: Optional[str] = None
    curp: str
    rfc: str
    email: str
    numero_empleado: str
    numero_plaza: str
    fecha_ingreso: date
    nivel_puesto: str
    nombre_puesto: str
    adscripcion: str

    class Config:
        from_attributes = True


class TrabajadorPage(BaseModel):
    """Paginated worker listing."""
    total: int
    page: int
    size: int
    totalPages: int
    data: List[TrabajadorListItem]
