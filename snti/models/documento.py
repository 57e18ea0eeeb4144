import enum
from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from snti.database import Base
from snti.models.mixins import ActiveFlagMixin


class DocumentCategory(str, enum.Enum):
    """Storage categories; the value is also the directory name under UPLOAD_DIR."""
    INE = "ine"
    CURP = "curp"
    RFC = "rfc"
    ACTA_NACIMIENTO = "actas_nacimiento"
    CERTIFICADO_ESTUDIOS = "certificados_estudios"
    CERTIFICADO_CURSO = "certificados_cursos"
    APROBACION_PERMISO = "aprobaciones_permisos"
    RESPALDO_CAMBIO_ADSCRIPCION = "documentos_respaldo_cambios_adscripcion"
    OTRO = "otros_documentos"


# Labels accepted from callers, matched exactly
CATEGORY_LABELS = {
    "INE": DocumentCategory.INE,
    "CURP": DocumentCategory.CURP,
    "RFC": DocumentCategory.RFC,
    "Acta de Nacimiento": DocumentCategory.ACTA_NACIMIENTO,
    "Certificado de Estudios": DocumentCategory.CERTIFICADO_ESTUDIOS,
    "Certificado de Curso": DocumentCategory.CERTIFICADO_CURSO,
    "Aprobación Permiso": DocumentCategory.APROBACION_PERMISO,
    "Respaldo Cambio Adscripción": DocumentCategory.RESPALDO_CAMBIO_ADSCRIPCION,
    "Otro": DocumentCategory.OTRO,
}


class Documento(ActiveFlagMixin, Base):
    """Document model - one stored file and its metadata."""

    __tablename__ = "documentos"
    # Ids of deleted documents are never reissued on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id_documento = Column(Integer, primary_key=True, index=True)
    id_trabajador = Column(Integer, ForeignKey("trabajadores.id_trabajador"), nullable=False, index=True)
    tipo_documento = Column(String(60), nullable=False, index=True)  # DocumentCategory value
    nombre_archivo = Column(String(255), nullable=False)  # original filename
    nombre_almacenado = Column(String(255), nullable=False)
    ruta_almacenamiento = Column(String(500), unique=True, nullable=False)  # relative to UPLOAD_DIR
    mimetype = Column(String(150), nullable=False)
    tipo_archivo = Column(String(100), nullable=True)
    tamano_bytes = Column(BigInteger, nullable=False)
    hash_archivo = Column(String(64), nullable=False, index=True)
    descripcion = Column(Text, nullable=True)
    es_publico = Column(Boolean, default=False, nullable=False)
    metadatos = Column(JSON, nullable=True)
    fecha_subida = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    trabajador = relationship("Trabajador", back_populates="documentos")
