from sqlalchemy import Column, Integer, String, Date, Text, ForeignKey
from sqlalchemy.orm import relationship
from snti.database import Base
from snti.models.mixins import AuditTimestampsMixin

DEFAULT_ESTATUS = "Pendiente"


class Permiso(AuditTimestampsMixin, Base):
    """Leave/permission request, backed by one approval document."""

    __tablename__ = "permisos"
    __table_args__ = {"sqlite_autoincrement": True}

    id_permiso = Column(Integer, primary_key=True, index=True)
    id_trabajador = Column(Integer, ForeignKey("trabajadores.id_trabajador"), nullable=False, index=True)
    tipo_permiso = Column(String(20), nullable=True)
    fecha_inicio = Column(Date, nullable=False)
    fecha_fin = Column(Date, nullable=False)
    motivo = Column(Text, nullable=False)
    estatus = Column(String(20), default=DEFAULT_ESTATUS, nullable=False)
    documento_aprobacion_id = Column(
        Integer,
        ForeignKey("documentos.id_documento", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    trabajador = relationship("Trabajador", back_populates="permisos")
    documento = relationship("Documento")
