"""
Tests for security functions: JWT tokens, password hashing, field validators
and record-level access rules.
"""
import pytest
from datetime import date, timedelta

from snti.core.acl import can_access_worker, has_role, require_worker_access
from snti.core.exceptions import ForbiddenException
from snti.core.security import (
    create_access_token,
    create_user_token,
    decode_access_token,
    verify_password,
    get_password_hash,
)
from snti.core.validators import (
    is_strong_password,
    is_valid_curp,
    is_valid_rfc,
    parse_bool,
    parse_iso_date,
    parse_optional_int,
)
from snti.models.usuario import Rol, Usuario


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_get_password_hash_returns_hash(self):
        """Password hashing should return a bcrypt hash."""
        password = "Secreto123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt prefix

    def test_password_hash_different_each_time(self):
        """Same password should produce different hashes (due to salt)."""
        assert get_password_hash("Secreto123") != get_password_hash("Secreto123")

    def test_verify_password_correct(self):
        hashed = get_password_hash("Secreto123")

        assert verify_password("Secreto123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("Secreto123")

        assert verify_password("secreto123", hashed) is False

    def test_password_hash_unicode(self):
        """Accented passwords should hash correctly."""
        password = "Contraseña_Año1"

        assert verify_password(password, get_password_hash(password)) is True


class TestJWTTokens:
    """Tests for JWT token creation and validation."""

    def test_create_access_token_returns_string(self):
        token = create_access_token({"sub": "1"})

        assert isinstance(token, str)
        # JWT tokens have 3 parts separated by dots
        assert token.count(".") == 2

    def test_create_access_token_with_custom_expiry(self):
        token = create_access_token({"sub": "1"}, timedelta(hours=1))

        payload = decode_access_token(token)
        assert payload is not None
        assert "exp" in payload

    def test_expired_token(self):
        token = create_access_token({"sub": "1"}, timedelta(seconds=-10))

        assert decode_access_token(token) is None

    def test_user_token_claims(self):
        """Login tokens carry the user, its worker and its role."""
        payload = decode_access_token(create_user_token(5, 42, "USUARIO"))

        assert payload["sub"] == "5"
        assert payload["id_trabajador"] == 42
        assert payload["rol"] == "USUARIO"

    def test_decode_access_token_invalid(self):
        assert decode_access_token("not.a.valid.jwt.token") is None

    def test_decode_access_token_tampered(self):
        token = create_access_token({"sub": "1"})

        # Tamper with the token
        parts = token.split(".")
        parts[1] = parts[1][:-5] + "XXXXX"

        assert decode_access_token(".".join(parts)) is None

    def test_decode_access_token_empty(self):
        assert decode_access_token("") is None


class TestValidators:
    """Tests for CURP, RFC, password and form-field parsing."""

    def test_curp(self):
        assert is_valid_curp("PELJ850520HDFRPN42") is True
        assert is_valid_curp("PELJ850520XDFRPN42") is False
        assert is_valid_curp("PELJ850520HDFRPN4") is False
        assert is_valid_curp(None) is False

    def test_rfc(self):
        assert is_valid_rfc("PELJ850520042") is True
        assert is_valid_rfc("ABC850520AB1") is True  # persona moral
        assert is_valid_rfc("PELJ85052") is False

    def test_password_strength(self):
        assert is_strong_password("Segura123") is True
        assert is_strong_password("segura123") is False
        assert is_strong_password("SEGURA123") is False
        assert is_strong_password("Segura") is False
        assert is_strong_password(None) is False

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (False, False),
        ("true", True),
        (" TRUE ", True),
        ("false", False),
        ("1", False),
        (None, None),
        (1, None),
    ])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected

    def test_parse_optional_int(self):
        assert parse_optional_int(" 42 ", "id_trabajador") == 42
        assert parse_optional_int("", "id_trabajador") is None
        assert parse_optional_int(None, "id_trabajador") is None
        with pytest.raises(ValueError, match="id_trabajador"):
            parse_optional_int("4.2", "id_trabajador")

    def test_parse_iso_date(self):
        assert parse_iso_date("2024-03-01", "fecha_inicio") == date(2024, 3, 1)
        assert parse_iso_date("2024-03-01T10:00:00Z", "fecha_inicio") == date(2024, 3, 1)
        assert parse_iso_date(None, "fecha_inicio") is None
        with pytest.raises(ValueError, match="fecha_inicio"):
            parse_iso_date("01/03/2024", "fecha_inicio")


class TestAccessRules:
    """Tests for role checks and record-level access."""

    def setup_method(self):
        """Set up one user per role, bound to different workers."""
        self.admin = Usuario(id_usuario=1, identificador="admin", rol=Rol.ADMINISTRADOR, id_trabajador=1)
        self.user = Usuario(id_usuario=2, identificador="user", rol=Rol.USUARIO, id_trabajador=42)

    def test_has_role(self):
        assert has_role(self.admin, [Rol.ADMINISTRADOR]) is True
        assert has_role(self.user, [Rol.ADMINISTRADOR]) is False
        assert has_role(self.user, [Rol.ADMINISTRADOR, Rol.USUARIO]) is True

    def test_admin_accesses_any_worker(self):
        assert can_access_worker(self.admin, 42) is True
        assert can_access_worker(self.admin, 999) is True

    def test_user_accesses_only_own_worker(self):
        assert can_access_worker(self.user, 42) is True
        assert can_access_worker(self.user, 7) is False

    def test_require_worker_access_raises(self):
        with pytest.raises(ForbiddenException) as exc_info:
            require_worker_access(self.user, 7, action="download_document")

        assert exc_info.value.status_code == 403

    def test_require_worker_access_allows_owner(self):
        require_worker_access(self.user, 42)
