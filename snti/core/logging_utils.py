from typing import Any, Dict, Optional
from fastapi import Request
from snti.config import settings

MASK = "***MASKED***"

SECRET_KEYS = ("password", "contraseña", "contrasena", "secret", "token", "authorization", "bearer", "jwt")
PARTIAL_KEYS = ("curp", "rfc", "numero_plaza")
SENSITIVE_HEADERS = ("authorization", "cookie", "set-cookie", "x-auth-token")


def _mask_tail(value: Any) -> str:
    """Keep the last four characters visible."""
    if isinstance(value, str) and len(value) > 4:
        return "*" * (len(value) - 4) + value[-4:]
    return MASK


def _mask_email(value: Any) -> str:
    if isinstance(value, str) and "@" in value:
        local, _, domain = value.partition("@")
        if len(local) > 3:
            return local[:3] + "***@" + domain
    return MASK


def mask_sensitive_data(data: Any) -> Any:
    """
    Recursively mask credentials and personal identifiers.

    Passwords and tokens are replaced entirely, CURP/RFC keep their last four
    characters, emails keep the first three characters and the domain.
    Request IDs are never masked.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if key_lower in ("requestid", "request_id"):
                masked[key] = value
            elif any(term in key_lower for term in SECRET_KEYS):
                masked[key] = MASK
            elif key_lower in PARTIAL_KEYS:
                masked[key] = _mask_tail(value)
            elif key_lower == "email":
                masked[key] = _mask_email(value)
            else:
                masked[key] = mask_sensitive_data(value)
        return masked

    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]

    if isinstance(data, str) and data.startswith("eyJ") and len(data) > 50:
        # Looks like a JWT
        return MASK

    return data


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive HTTP headers."""
    return {
        key: MASK if any(s in key.lower() for s in SENSITIVE_HEADERS) else value
        for key, value in headers.items()
    }


def get_request_id(request: Optional[Request]) -> Optional[str]:
    """Extract request ID from request state."""
    if request is not None and hasattr(request.state, "request_id"):
        return request.state.request_id
    return None


def sanitize_log_message(message: str, **kwargs: Any) -> str:
    """
    Build "message | Key: value | ..." with sensitive values masked.

    A RequestID keyword is appended last so RequestIDFormatter can lift it
    into the line prefix.
    """
    request_id = kwargs.pop('RequestID', None) or kwargs.pop('request_id', None)

    context = mask_sensitive_data(kwargs) if settings.LOG_MASK_SENSITIVE else kwargs

    parts = []
    for key, value in context.items():
        if isinstance(value, (dict, list)):
            parts.append(f"{key}: {str(value)[:200]}")
        else:
            parts.append(f"{key}: {value}")

    formatted_message = f"{message} | {' | '.join(parts)}" if parts else message

    if request_id:
        formatted_message = f"{formatted_message} | RequestID: {request_id}"

    return formatted_message
