"""
Field formats shared by request schemas and multipart form parsing.
"""
import re
from datetime import date
from typing import Any, Optional

CURP_PATTERN = re.compile(r"^[A-Z]{4}\d{6}[HM][A-Z]{5}[A-Z0-9]\d$")
RFC_PATTERN = re.compile(r"^[A-ZÑ&]{3,4}\d{6}[A-Z0-9]{3}$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def is_valid_curp(curp: str) -> bool:
    return bool(CURP_PATTERN.match(curp or ""))


def is_valid_rfc(rfc: str) -> bool:
    return bool(RFC_PATTERN.match(rfc or ""))


def is_strong_password(password: str) -> bool:
    """At least 8 characters with a lowercase, an uppercase and a digit."""
    return len(password or "") >= 8 and bool(PASSWORD_PATTERN.match(password))


def parse_bool(value: Any) -> Optional[bool]:
    """
    Interpret boolean-ish form values.

    Booleans pass through, strings are true only for "true" (case and
    surrounding whitespace ignored), anything else is None.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return None


def parse_optional_int(value: Optional[str], field_name: str) -> Optional[int]:
    """Parse an integer form field; raises ValueError naming the field."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"El campo {field_name} debe ser un número entero.")


def parse_iso_date(value: Optional[str], field_name: str) -> Optional[date]:
    """Parse a YYYY-MM-DD form field; raises ValueError naming the field."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValueError(f"Formato de {field_name} inválido (YYYY-MM-DD).")
