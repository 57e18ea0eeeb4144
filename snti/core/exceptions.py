from typing import Any, List, Optional
from fastapi import HTTPException, status


class APIException(HTTPException):
    """
    Base class for every error the API reports on purpose.

    ``code`` tags the failure kind; ``detail`` is the user-facing message,
    ``error`` optionally carries the underlying cause and ``errors`` lists
    per-field problems.
    """

    code: str = "UNKNOWN_ERROR"
    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail_default: str = "Error del servidor"

    def __init__(
        self,
        detail: Optional[str] = None,
        error: Optional[str] = None,
        errors: Optional[List[Any]] = None
    ):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.detail_default
        )
        self.error = error
        self.errors = errors


class ValidationException(APIException):
    """Exception raised when request fields are missing or malformed."""
    code = "VALIDATION_ERROR"
    status_code_default = status.HTTP_400_BAD_REQUEST
    detail_default = "Error de validación"


class UnsupportedMediaTypeException(APIException):
    """Exception raised when an uploaded file has a MIME type outside the allow-list."""
    code = "UNSUPPORTED_MEDIA_TYPE"
    status_code_default = status.HTTP_400_BAD_REQUEST
    detail_default = (
        "Tipo de archivo no permitido. Formatos aceptados: "
        "PDF, JPEG, PNG, WEBP, DOC, DOCX, XLS, XLSX"
    )


class AuthenticationException(APIException):
    """Exception raised when the bearer token is missing, invalid or expired."""
    code = "UNAUTHORIZED"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    detail_default = "Token inválido o expirado"

    def __init__(self, detail: Optional[str] = None, error: Optional[str] = None):
        super().__init__(detail=detail, error=error)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenException(APIException):
    """Exception raised when the caller's role or ownership does not allow the action."""
    code = "FORBIDDEN"
    status_code_default = status.HTTP_403_FORBIDDEN
    detail_default = "Acceso denegado"


class NotFoundException(APIException):
    """Exception raised when a worker, document or permission does not exist."""
    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND
    detail_default = "Recurso no encontrado"


class ConflictException(APIException):
    """Exception raised when a unique field is already taken."""
    code = "CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT
    detail_default = "El recurso ya existe"


class FileTooLargeException(APIException):
    """Exception raised when an upload exceeds MAX_FILE_SIZE."""
    code = "FILE_TOO_LARGE"
    status_code_default = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    detail_default = "El archivo excede el tamaño máximo permitido"


class StorageException(APIException):
    """Exception raised when a directory or file operation fails."""
    code = "STORAGE_ERROR"
    detail_default = "Error al almacenar el archivo"


class ProcessingException(APIException):
    """Exception raised when a stored file cannot be read back for hashing."""
    code = "PROCESSING_ERROR"
    detail_default = "Error al procesar el archivo"


class DatabaseException(APIException):
    """Exception raised when a database write fails."""
    code = "DATABASE_ERROR"
    detail_default = "Error al registrar el documento en la base de datos"


class SilentFailureException(APIException):
    """Exception raised when a write reported success but the row cannot be read back."""
    code = "SILENT_FAILURE"
    detail_default = "El documento se procesó pero no se encontró en la base de datos"


class UnknownException(APIException):
    """Catch-all for failures that fit no other category."""
    code = "UNKNOWN_ERROR"
    detail_default = "Error del servidor"
