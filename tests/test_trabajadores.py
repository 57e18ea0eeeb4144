"""
Tests for worker records: creation, uniqueness, pagination, access and the
cascading delete.
"""
import pytest
from sqlalchemy import func, select
from snti.models.documento import Documento
from snti.models.trabajador import Trabajador

TRABAJADORES_URL = "/api/trabajadores"


class TestCreateTrabajador:
    """Tests for POST /api/trabajadores."""

    @pytest.mark.asyncio
    async def test_create(self, async_client, admin_headers, make_worker_values):
        payload = make_worker_values(110)
        payload["curp"] = payload["curp"].lower()
        payload["email"] = " Trabajador110@SNTI.mx "

        response = await async_client.post(TRABAJADORES_URL, headers=admin_headers, json=payload)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id_trabajador"] > 0
        assert data["curp"] == payload["curp"].upper()
        assert data["email"] == "trabajador110@snti.mx"
        assert data["sexo"] == "M"
        assert data["fecha_registro"] is not None

    @pytest.mark.asyncio
    async def test_duplicate_fields(self, async_client, admin_headers, trabajador, make_worker_values):
        """Reused unique fields are named in the 409 message."""
        payload = make_worker_values(110)
        payload["curp"] = trabajador.curp
        payload["email"] = trabajador.email

        response = await async_client.post(TRABAJADORES_URL, headers=admin_headers, json=payload)

        assert response.status_code == 409
        message = response.json()["message"]
        assert message.startswith("Ya existe un trabajador con los siguientes datos:")
        assert "CURP" in message
        assert "Email" in message
        assert "RFC" not in message

    @pytest.mark.asyncio
    async def test_unknown_section(self, async_client, admin_headers, make_worker_values):
        response = await async_client.post(
            TRABAJADORES_URL, headers=admin_headers, json=make_worker_values(110, id_seccion=99)
        )

        assert response.status_code == 404
        assert response.json()["message"] == "La sección especificada no existe"

    @pytest.mark.asyncio
    async def test_invalid_curp(self, async_client, admin_headers, make_worker_values):
        response = await async_client.post(
            TRABAJADORES_URL, headers=admin_headers, json=make_worker_values(110, curp="NOVALIDA")
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Error de validación"
        assert any(error["campo"] == "curp" for error in body["errors"])

    @pytest.mark.asyncio
    async def test_invalid_sexo(self, async_client, admin_headers, make_worker_values):
        response = await async_client.post(
            TRABAJADORES_URL, headers=admin_headers, json=make_worker_values(110, sexo="X")
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_admin_only(self, async_client, user_headers, make_worker_values):
        response = await async_client.post(TRABAJADORES_URL, headers=user_headers, json=make_worker_values(110))

        assert response.status_code == 403


class TestListTrabajadores:
    """Tests for GET /api/trabajadores."""

    @pytest.mark.asyncio
    async def test_pagination(self, async_client, admin_headers, make_worker_values):
        for suffix in (110, 120, 130):
            created = await async_client.post(TRABAJADORES_URL, headers=admin_headers, json=make_worker_values(suffix))
            assert created.status_code == 201

        first = await async_client.get(TRABAJADORES_URL, headers=admin_headers, params={"page": 1, "size": 3})
        second = await async_client.get(TRABAJADORES_URL, headers=admin_headers, params={"page": 2, "size": 3})

        page = first.json()["data"]
        assert page["total"] == 4  # includes the administrator's own worker
        assert page["totalPages"] == 2
        assert page["page"] == 1
        assert [t["apellido_paterno"] for t in page["data"]] == ["Perez1", "Perez110", "Perez120"]
        assert [t["apellido_paterno"] for t in second.json()["data"]["data"]] == ["Perez130"]

    @pytest.mark.asyncio
    async def test_search(self, async_client, admin_headers, make_worker_values):
        await async_client.post(TRABAJADORES_URL, headers=admin_headers, json=make_worker_values(110))
        await async_client.post(TRABAJADORES_URL, headers=admin_headers, json=make_worker_values(120))

        response = await async_client.get(TRABAJADORES_URL, headers=admin_headers, params={"search": "trabajador120@"})

        page = response.json()["data"]
        assert page["total"] == 1
        assert page["data"][0]["email"] == "trabajador120@snti.mx"

    @pytest.mark.asyncio
    async def test_invalid_page_size(self, async_client, admin_headers):
        response = await async_client.get(TRABAJADORES_URL, headers=admin_headers, params={"size": 500})

        assert response.status_code == 400


class TestGetTrabajador:
    """Tests for GET /api/trabajadores/{id}."""

    @pytest.mark.asyncio
    async def test_user_reads_own_record(self, async_client, user_headers):
        response = await async_client.get(f"{TRABAJADORES_URL}/42", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["data"]["numero_empleado"] == "E00042"

    @pytest.mark.asyncio
    async def test_user_cannot_read_other(self, async_client, user_headers, otro_trabajador):
        response = await async_client.get(f"{TRABAJADORES_URL}/7", headers=user_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown(self, async_client, admin_headers):
        response = await async_client.get(f"{TRABAJADORES_URL}/999", headers=admin_headers)

        assert response.status_code == 404


class TestUpdateTrabajador:
    """Tests for PUT /api/trabajadores/{id}."""

    @pytest.mark.asyncio
    async def test_partial_update(self, async_client, admin_headers, trabajador):
        response = await async_client.put(
            f"{TRABAJADORES_URL}/42",
            headers=admin_headers,
            json={"nombre_puesto": "Coordinador", "numero_hijos": 2, "apellido_materno": None},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["nombre_puesto"] == "Coordinador"
        assert data["numero_hijos"] == 2
        assert data["apellido_materno"] == "Lopez"
        assert data["fecha_actualizacion"] is not None

    @pytest.mark.asyncio
    async def test_update_to_taken_value(self, async_client, admin_headers, trabajador, otro_trabajador):
        response = await async_client.put(
            f"{TRABAJADORES_URL}/42",
            headers=admin_headers,
            json={"numero_plaza": otro_trabajador.numero_plaza},
        )

        assert response.status_code == 409
        assert "Número de plaza" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_update_keeps_own_values(self, async_client, admin_headers, trabajador):
        """Sending the worker's own unique values is not a conflict."""
        response = await async_client.put(
            f"{TRABAJADORES_URL}/42",
            headers=admin_headers,
            json={"curp": trabajador.curp, "email": trabajador.email},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown(self, async_client, admin_headers):
        response = await async_client.put(f"{TRABAJADORES_URL}/999", headers=admin_headers, json={"nombre": "X"})

        assert response.status_code == 404


class TestDeleteTrabajador:
    """Tests for DELETE /api/trabajadores/{id}."""

    @pytest.mark.asyncio
    async def test_delete_cascades_documents_and_files(
        self, async_client, db_session, admin_headers, trabajador, upload_dir
    ):
        uploaded = await async_client.post(
            "/api/documentos",
            headers=admin_headers,
            files={"archivo": ("acta.pdf", b"%PDF-1.4\nacta", "application/pdf")},
            data={"id_trabajador": "42", "tipo_documento": "Acta de Nacimiento"},
        )
        stored = upload_dir / uploaded.json()["data"]["ruta_almacenamiento"]
        assert stored.exists()

        response = await async_client.delete(f"{TRABAJADORES_URL}/42", headers=admin_headers)

        assert response.status_code == 200
        assert not stored.exists()
        remaining_workers = await db_session.execute(
            select(func.count(Trabajador.id_trabajador)).where(Trabajador.id_trabajador == 42)
        )
        remaining_documents = await db_session.execute(select(func.count(Documento.id_documento)))
        assert remaining_workers.scalar_one() == 0
        assert remaining_documents.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_unknown(self, async_client, admin_headers):
        response = await async_client.delete(f"{TRABAJADORES_URL}/999", headers=admin_headers)

        assert response.status_code == 404
