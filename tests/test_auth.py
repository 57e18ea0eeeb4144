"""
Tests for login, the current-user endpoint, first-run bootstrap, user
accounts and sections.
"""
import pytest
from sqlalchemy import select
from snti.config import settings
from snti.core.security import decode_access_token
from snti.models.usuario import Usuario

LOGIN_URL = "/api/auth/login"
ME_URL = "/api/auth/me"
BOOTSTRAP_URL = "/api/bootstrap"


class TestLogin:
    """Tests for POST /api/auth/login."""

    @pytest.mark.asyncio
    async def test_login_success(self, async_client, db_session, admin_user):
        response = await async_client.post(
            LOGIN_URL, json={"identificador": "admin", "contraseña": "Admin1234"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["rol"] == "ADMINISTRADOR"
        assert data["id_trabajador"] == 1

        payload = decode_access_token(data["access_token"])
        assert payload["sub"] == str(data["id_usuario"])
        assert payload["rol"] == "ADMINISTRADOR"

        result = await db_session.execute(select(Usuario.ultimo_acceso).where(Usuario.identificador == "admin"))
        assert result.scalar_one() is not None

    @pytest.mark.asyncio
    async def test_login_accepts_unaccented_field(self, async_client, admin_user):
        response = await async_client.post(LOGIN_URL, json={"identificador": "admin", "contrasena": "Admin1234"})

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("identificador,password", [
        ("admin", "Incorrecta1"),
        ("nadie", "Admin1234"),
    ])
    async def test_invalid_credentials(self, async_client, admin_user, identificador, password):
        """Unknown users and wrong passwords get the same answer."""
        response = await async_client.post(LOGIN_URL, json={"identificador": identificador, "contraseña": password})

        assert response.status_code == 401
        assert response.json()["message"] == "Credenciales inválidas"
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_inactive_user(self, async_client, db_session, regular_user):
        regular_user.activo = False
        await db_session.commit()

        response = await async_client.post(
            LOGIN_URL, json={"identificador": "trabajador42", "contraseña": "Usuario1234"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Credenciales inválidas"

    @pytest.mark.asyncio
    async def test_missing_fields(self, async_client):
        response = await async_client.post(LOGIN_URL, json={"identificador": "admin"})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestCurrentUser:
    """Tests for GET /api/auth/me."""

    @pytest.mark.asyncio
    async def test_me(self, async_client, user_headers):
        response = await async_client.get(ME_URL, headers=user_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["identificador"] == "trabajador42"
        assert data["rol"] == "USUARIO"
        assert "contrasena_hash" not in data

    @pytest.mark.asyncio
    async def test_missing_token(self, async_client, db_session):
        response = await async_client.get(ME_URL)

        assert response.status_code == 401
        assert response.json()["message"] == "Token no proporcionado"

    @pytest.mark.asyncio
    async def test_invalid_token(self, async_client, db_session):
        response = await async_client.get(ME_URL, headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401


class TestBootstrap:
    """Tests for /api/bootstrap."""

    @staticmethod
    def first_admin_payload(make_worker_values) -> dict:
        payload = make_worker_values(5)
        payload.update({"identificador": "root", "contraseña": "Inicial123"})
        return payload

    @pytest.mark.asyncio
    async def test_status_without_admin(self, async_client, db_session):
        response = await async_client.get(f"{BOOTSTRAP_URL}/status")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["bootstrap_requerido"] is True
        assert data["admin_existente"] is False
        assert data["info_admin"] is None

    @pytest.mark.asyncio
    async def test_create_first_admin(self, async_client, db_session, make_worker_values):
        """The first admin is created with its worker and a default section."""
        response = await async_client.post(
            f"{BOOTSTRAP_URL}/first-admin", json=self.first_admin_payload(make_worker_values)
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["rol"] == "ADMINISTRADOR"
        assert decode_access_token(data["access_token"])["sub"] == str(data["id_usuario"])

        status_response = await async_client.get(f"{BOOTSTRAP_URL}/status")
        status_data = status_response.json()["data"]
        assert status_data["bootstrap_requerido"] is False
        assert status_data["info_admin"]["identificador"] == "root"
        assert status_data["info_admin"]["seccion"] == "Sección General"

        login = await async_client.post(LOGIN_URL, json={"identificador": "root", "contraseña": "Inicial123"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_only_once(self, async_client, admin_user, make_worker_values):
        response = await async_client.post(
            f"{BOOTSTRAP_URL}/first-admin", json=self.first_admin_payload(make_worker_values)
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_weak_password(self, async_client, db_session, make_worker_values):
        payload = self.first_admin_payload(make_worker_values)
        payload["contraseña"] = "debil"

        response = await async_client.post(f"{BOOTSTRAP_URL}/first-admin", json=payload)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_configured_token(self, async_client, db_session, make_worker_values, monkeypatch):
        monkeypatch.setattr(settings, "BOOTSTRAP_TOKEN", "token-de-instalacion")
        payload = self.first_admin_payload(make_worker_values)

        rejected = await async_client.post(f"{BOOTSTRAP_URL}/first-admin", json=payload)
        accepted = await async_client.post(
            f"{BOOTSTRAP_URL}/first-admin",
            json=payload,
            headers={"X-Bootstrap-Token": "token-de-instalacion"},
        )

        assert rejected.status_code == 403
        assert accepted.status_code == 201


class TestUsuarios:
    """Tests for /api/usuarios."""

    @pytest.mark.asyncio
    async def test_create_user(self, async_client, admin_headers, trabajador):
        response = await async_client.post(
            "/api/usuarios",
            headers=admin_headers,
            json={"id_trabajador": 42, "identificador": "jperez", "contraseña": "Segura123"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["rol"] == "USUARIO"
        assert data["activo"] is True

        login = await async_client.post(LOGIN_URL, json={"identificador": "jperez", "contraseña": "Segura123"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_worker_already_has_user(self, async_client, admin_headers, regular_user):
        response = await async_client.post(
            "/api/usuarios",
            headers=admin_headers,
            json={"id_trabajador": 42, "identificador": "otro", "contraseña": "Segura123"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "El trabajador ya tiene un usuario asignado"

    @pytest.mark.asyncio
    async def test_identifier_taken(self, async_client, admin_headers, trabajador):
        response = await async_client.post(
            "/api/usuarios",
            headers=admin_headers,
            json={"id_trabajador": 42, "identificador": "admin", "contraseña": "Segura123"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "El identificador ya está en uso"

    @pytest.mark.asyncio
    async def test_list_users(self, async_client, admin_headers, regular_user):
        response = await async_client.get("/api/usuarios", headers=admin_headers)

        assert response.status_code == 200
        assert [u["identificador"] for u in response.json()["data"]] == ["admin", "trabajador42"]

    @pytest.mark.asyncio
    async def test_deactivated_user_loses_access(self, async_client, admin_headers, user_headers, regular_user):
        id_usuario = regular_user.id_usuario

        response = await async_client.patch(
            f"/api/usuarios/{id_usuario}/estado", headers=admin_headers, json={"activo": False}
        )

        assert response.status_code == 200
        assert response.json()["data"]["activo"] is False
        me = await async_client.get(ME_URL, headers=user_headers)
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_self(self, async_client, admin_headers, admin_user):
        response = await async_client.patch(
            f"/api/usuarios/{admin_user.id_usuario}/estado", headers=admin_headers, json={"activo": False}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_users_cannot_manage_accounts(self, async_client, user_headers):
        response = await async_client.get("/api/usuarios", headers=user_headers)

        assert response.status_code == 403


class TestSecciones:
    """Tests for /api/secciones."""

    @pytest.mark.asyncio
    async def test_list(self, async_client, user_headers):
        response = await async_client.get("/api/secciones", headers=user_headers)

        assert response.status_code == 200
        assert [s["nombre_seccion"] for s in response.json()["data"]] == ["Sección 1"]

    @pytest.mark.asyncio
    async def test_create_and_duplicate(self, async_client, admin_headers):
        created = await async_client.post(
            "/api/secciones", headers=admin_headers, json={"nombre_seccion": "Sección 22"}
        )
        duplicate = await async_client.post(
            "/api/secciones", headers=admin_headers, json={"nombre_seccion": "Sección 22"}
        )

        assert created.status_code == 201
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_create_requires_admin(self, async_client, user_headers):
        response = await async_client.post("/api/secciones", headers=user_headers, json={"nombre_seccion": "X"})

        assert response.status_code == 403
