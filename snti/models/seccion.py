from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from snti.database import Base


class Seccion(Base):
    """Union section a worker belongs to."""

    __tablename__ = "secciones"

    id_seccion = Column(Integer, primary_key=True, index=True)
    nombre_seccion = Column(String(100), unique=True, nullable=False)
    descripcion = Column(Text, nullable=True)
    fecha_creacion = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    trabajadores = relationship("Trabajador", back_populates="seccion")
