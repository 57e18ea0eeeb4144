"""Database models."""
from snti.models.seccion import Seccion
from snti.models.trabajador import Trabajador, Sexo, SituacionSentimental
from snti.models.usuario import Usuario, Rol
from snti.models.documento import Documento, DocumentCategory, CATEGORY_LABELS
from snti.models.permiso import Permiso, DEFAULT_ESTATUS

__all__ = [
    "Seccion",
    "Trabajador",
    "Sexo",
    "SituacionSentimental",
    "Usuario",
    "Rol",
    "Documento",
    "DocumentCategory",
    "CATEGORY_LABELS",
    "Permiso",
    "DEFAULT_ESTATUS",
]
