import enum
from sqlalchemy import Column, Integer, String, Boolean, Date, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from snti.database import Base
from snti.models.mixins import AuditTimestampsMixin


class Sexo(str, enum.Enum):
    """Sex as recorded in personnel files."""
    MASCULINO = "M"
    FEMENINO = "F"


class SituacionSentimental(str, enum.Enum):
    """Marital status."""
    SOLTERO = "Soltero"
    CASADO = "Casado"
    DIVORCIADO = "Divorciado"
    VIUDO = "Viudo"
    UNION_LIBRE = "UnionLibre"


class Trabajador(AuditTimestampsMixin, Base):
    """Worker model - the employee that owns documents and permission requests."""

    __tablename__ = "trabajadores"

    id_trabajador = Column(Integer, primary_key=True, index=True)

    # Personal data
    nombre = Column(String(100), nullable=False)
    apellido_paterno = Column(String(100), nullable=False, index=True)
    apellido_materno = Column(String(100), nullable=True)
    fecha_nacimiento = Column(Date, nullable=False)
    sexo = Column(SQLEnum(Sexo, values_callable=lambda e: [m.value for m in e]), nullable=False)
    curp = Column(String(18), unique=True, nullable=False, index=True)
    rfc = Column(String(13), unique=True, nullable=False, index=True)
    email = Column(String(150), unique=True, nullable=False, index=True)
    situacion_sentimental = Column(
        SQLEnum(SituacionSentimental, values_callable=lambda e: [m.value for m in e]),
        nullable=True
    )
    numero_hijos = Column(Integer, default=0, nullable=False)

    # Employment data
    numero_empleado = Column(String(10), unique=True, nullable=False, index=True)
    numero_plaza = Column(String(8), unique=True, nullable=False)
    fecha_ingreso = Column(Date, nullable=False)
    fecha_ingreso_gobierno = Column(Date, nullable=False)
    nivel_puesto = Column(String(50), nullable=False)
    nombre_puesto = Column(String(100), nullable=False)
    puesto_inpi = Column(String(100), nullable=True)
    adscripcion = Column(String(100), nullable=False)
    id_seccion = Column(Integer, ForeignKey("secciones.id_seccion"), nullable=False, index=True)
    nivel_estudios = Column(String(50), nullable=True)
    institucion_estudios = Column(String(150), nullable=True)
    certificado_estudios = Column(Boolean, default=False, nullable=False)
    plaza_base = Column(String(20), nullable=True)

    # Relationships
    seccion = relationship("Seccion", back_populates="trabajadores")
    documentos = relationship("Documento", back_populates="trabajador", cascade="all, delete-orphan")
    permisos = relationship("Permiso", back_populates="trabajador", cascade="all, delete-orphan")
    usuario = relationship("Usuario", back_populates="trabajador", uselist=False, cascade="all, delete-orphan")
