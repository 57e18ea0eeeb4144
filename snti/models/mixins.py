"""
Database model mixins for common functionality.
"""
from datetime import datetime
from sqlalchemy import Column, Boolean, DateTime
from sqlalchemy.sql import func


class ActiveFlagMixin:
    """
    Mixin for soft delete functionality.

    Records carry an ``activo`` flag and are deactivated instead of being
    permanently removed.
    """
    activo = Column(Boolean, default=True, nullable=False, index=True)

    def deactivate(self) -> None:
        """Mark the record as inactive."""
        self.activo = False

    def reactivate(self) -> None:
        """Restore an inactive record."""
        self.activo = True


class AuditTimestampsMixin:
    """Adds fecha_registro / fecha_actualizacion columns."""
    fecha_registro = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    fecha_actualizacion = Column(DateTime(timezone=True), nullable=True)

    def touch(self) -> None:
        """Stamp the last-update time."""
        self.fecha_actualizacion = datetime.utcnow()
