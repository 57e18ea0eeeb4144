import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from snti.database import Base


class Rol(str, enum.Enum):
    """Application roles."""
    ADMINISTRADOR = "ADMINISTRADOR"
    USUARIO = "USUARIO"


class Usuario(Base):
    """Login account bound to exactly one worker."""

    __tablename__ = "usuarios"

    id_usuario = Column(Integer, primary_key=True, index=True)
    identificador = Column(String(150), unique=True, nullable=False, index=True)
    contrasena_hash = Column(String(255), nullable=False)
    rol = Column(SQLEnum(Rol), default=Rol.USUARIO, nullable=False, index=True)
    id_trabajador = Column(Integer, ForeignKey("trabajadores.id_trabajador"), unique=True, nullable=False)
    activo = Column(Boolean, default=True, nullable=False)
    ultimo_acceso = Column(DateTime(timezone=True), nullable=True)
    fecha_creacion = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    trabajador = relationship("Trabajador", back_populates="usuario")

    @property
    def is_admin(self) -> bool:
        return self.rol == Rol.ADMINISTRADOR
