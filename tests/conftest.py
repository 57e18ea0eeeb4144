import os
import tempfile

# Settings are read at import time; configure the test environment first
_TEST_ROOT = tempfile.mkdtemp(prefix="snti-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_snti.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TEST_ROOT, "uploads"))
os.environ.setdefault("LOG_DIR", os.path.join(_TEST_ROOT, "logs"))

import pytest
from datetime import date
from typing import AsyncGenerator, Generator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from snti.config import settings
from snti.database import Base, get_db
from snti.core.security import create_user_token, get_password_hash
from snti.models import Seccion, Trabajador, Usuario, Rol, Sexo

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test_snti_api.db"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

ADMIN_PASSWORD = "Admin1234"
USER_PASSWORD = "Usuario1234"


def worker_values(suffix: int, **overrides) -> dict:
    """Valid, unique worker fields for the given numeric suffix."""
    values = {
        "nombre": "Juan",
        "apellido_paterno": f"Perez{suffix}",
        "apellido_materno": "Lopez",
        "fecha_nacimiento": date(1985, 5, 20),
        "sexo": Sexo.MASCULINO,
        "curp": f"PELJ850520HDFRPN{suffix % 100:02d}",
        "rfc": f"PELJ850520{suffix % 1000:03d}",
        "email": f"trabajador{suffix}@snti.mx",
        "numero_hijos": 0,
        "numero_empleado": f"E{suffix:05d}",
        "numero_plaza": f"P{suffix:05d}",
        "fecha_ingreso": date(2010, 1, 15),
        "fecha_ingreso_gobierno": date(2009, 6, 1),
        "nivel_puesto": "Operativo",
        "nombre_puesto": "Analista",
        "adscripcion": "Oficinas Centrales",
        "id_seccion": 1,
        "certificado_estudios": False,
    }
    values.update(overrides)
    return values


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    # Create tables
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    # Drop tables
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Point UPLOAD_DIR at a per-test directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture(scope="function")
def client() -> Generator:
    """Create a sync test client (doesn't require db_session)."""
    from fastapi.testclient import TestClient
    from snti.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator:
    """Create an async test client with database session override."""
    from httpx import AsyncClient, ASGITransport
    from snti.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def concurrent_client(async_client):
    """
    The async client with a fresh session per request, for tests that send
    requests in parallel.
    """
    from snti.main import app

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    return async_client


@pytest.fixture
async def seccion(db_session: AsyncSession) -> Seccion:
    seccion = Seccion(id_seccion=1, nombre_seccion="Sección 1", descripcion="Sección de pruebas")
    db_session.add(seccion)
    await db_session.commit()
    return seccion


@pytest.fixture
async def trabajador(db_session: AsyncSession, seccion: Seccion) -> Trabajador:
    """Worker 42, owner of the documents in most tests."""
    trabajador = Trabajador(id_trabajador=42, **worker_values(42))
    db_session.add(trabajador)
    await db_session.commit()
    return trabajador


@pytest.fixture
async def otro_trabajador(db_session: AsyncSession, seccion: Seccion) -> Trabajador:
    trabajador = Trabajador(id_trabajador=7, **worker_values(7, nombre="Maria", sexo=Sexo.FEMENINO))
    db_session.add(trabajador)
    await db_session.commit()
    return trabajador


@pytest.fixture
async def admin_user(db_session: AsyncSession, seccion: Seccion) -> Usuario:
    """Administrator bound to its own worker record (id 1)."""
    db_session.add(Trabajador(id_trabajador=1, **worker_values(1)))
    await db_session.flush()
    usuario = Usuario(
        identificador="admin",
        contrasena_hash=get_password_hash(ADMIN_PASSWORD),
        rol=Rol.ADMINISTRADOR,
        id_trabajador=1,
        activo=True
    )
    db_session.add(usuario)
    await db_session.commit()
    await db_session.refresh(usuario)
    return usuario


@pytest.fixture
async def regular_user(db_session: AsyncSession, trabajador: Trabajador) -> Usuario:
    """Regular user bound to worker 42."""
    usuario = Usuario(
        identificador="trabajador42",
        contrasena_hash=get_password_hash(USER_PASSWORD),
        rol=Rol.USUARIO,
        id_trabajador=trabajador.id_trabajador,
        activo=True
    )
    db_session.add(usuario)
    await db_session.commit()
    await db_session.refresh(usuario)
    return usuario


@pytest.fixture
async def other_user(db_session: AsyncSession, otro_trabajador: Trabajador) -> Usuario:
    """Regular user bound to worker 7."""
    usuario = Usuario(
        identificador="trabajador7",
        contrasena_hash=get_password_hash(USER_PASSWORD),
        rol=Rol.USUARIO,
        id_trabajador=otro_trabajador.id_trabajador,
        activo=True
    )
    db_session.add(usuario)
    await db_session.commit()
    await db_session.refresh(usuario)
    return usuario


def auth_headers(usuario: Usuario) -> dict:
    token = create_user_token(usuario.id_usuario, usuario.id_trabajador, usuario.rol.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user: Usuario) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def user_headers(regular_user: Usuario) -> dict:
    return auth_headers(regular_user)


@pytest.fixture
def other_headers(other_user: Usuario) -> dict:
    return auth_headers(other_user)


@pytest.fixture
def make_worker_values():
    """Factory for worker payloads; dates are ISO strings ready for JSON."""
    def factory(suffix: int, **overrides) -> dict:
        values = worker_values(suffix, **overrides)
        return {
            key: value.isoformat() if isinstance(value, date) else getattr(value, "value", value)
            for key, value in values.items()
        }
    return factory
