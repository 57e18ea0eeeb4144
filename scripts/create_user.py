#!/usr/bin/env python3
"""
Script to create a login for an existing worker.

Useful to recover access when the only administrator account is lost, or to
add further administrators without going through the API.

Usage:
    python scripts/create_user.py --worker-id 1 --identificador admin2 --rol ADMINISTRADOR
    python scripts/create_user.py --worker-id 7 --identificador jperez  # prompts for the password
"""

import asyncio
import argparse
import getpass
import sys
from pathlib import Path

# Add parent directory to path to import snti modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from snti.core.exceptions import APIException
from snti.core.validators import is_strong_password
from snti.database import AsyncSessionLocal, close_db, init_db
from snti.models.usuario import Rol, Usuario
from snti.services.usuario_service import UsuarioService


async def create_user(id_trabajador: int, identificador: str, password: str, rol: Rol) -> Usuario:
    async with AsyncSessionLocal() as session:
        return await UsuarioService.create(
            session,
            id_trabajador=id_trabajador,
            identificador=identificador,
            password=password,
            rol=rol
        )


async def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Create a login for an existing SNTI worker")
    parser.add_argument("--worker-id", type=int, required=True, help="id_trabajador of the worker")
    parser.add_argument("--identificador", required=True, help="Login identifier")
    parser.add_argument(
        "--rol",
        choices=[r.value for r in Rol],
        default=Rol.USUARIO.value,
        help="Role for the new user (default: USUARIO)"
    )
    parser.add_argument("--password", default=None, help="Password (prompted when omitted)")

    args = parser.parse_args()

    password = args.password or getpass.getpass("Contraseña: ")
    if not is_strong_password(password):
        print(
            "La contraseña debe tener al menos 8 caracteres, una mayúscula, una minúscula y un número",
            file=sys.stderr
        )
        sys.exit(1)

    await init_db()

    try:
        usuario = await create_user(args.worker_id, args.identificador, password, Rol(args.rol))
    except APIException as e:
        print(f"Error creating user: {e.detail}", file=sys.stderr)
        sys.exit(1)
    finally:
        await close_db()

    print("\n" + "=" * 70)
    print("USER CREATED SUCCESSFULLY")
    print("=" * 70)
    print(f"ID: {usuario.id_usuario}")
    print(f"Identificador: {usuario.identificador}")
    print(f"Rol: {usuario.rol.value}")
    print(f"Worker ID: {usuario.id_trabajador}")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
