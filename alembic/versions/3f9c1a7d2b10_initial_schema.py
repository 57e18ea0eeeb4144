"""Initial schema: secciones, trabajadores, usuarios, documentos, permisos

Revision ID: 3f9c1a7d2b10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


sexo_enum = sa.Enum('M', 'F', name='sexo')
situacion_enum = sa.Enum('Soltero', 'Casado', 'Divorciado', 'Viudo', 'UnionLibre', name='situacionsentimental')
rol_enum = sa.Enum('ADMINISTRADOR', 'USUARIO', name='rol')


def upgrade() -> None:
    op.create_table(
        'secciones',
        sa.Column('id_seccion', sa.Integer(), nullable=False),
        sa.Column('nombre_seccion', sa.String(length=100), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('fecha_creacion', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id_seccion'),
        sa.UniqueConstraint('nombre_seccion'),
    )
    op.create_index(op.f('ix_secciones_id_seccion'), 'secciones', ['id_seccion'], unique=False)

    op.create_table(
        'trabajadores',
        sa.Column('id_trabajador', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('apellido_paterno', sa.String(length=100), nullable=False),
        sa.Column('apellido_materno', sa.String(length=100), nullable=True),
        sa.Column('fecha_nacimiento', sa.Date(), nullable=False),
        sa.Column('sexo', sexo_enum, nullable=False),
        sa.Column('curp', sa.String(length=18), nullable=False),
        sa.Column('rfc', sa.String(length=13), nullable=False),
        sa.Column('email', sa.String(length=150), nullable=False),
        sa.Column('situacion_sentimental', situacion_enum, nullable=True),
        sa.Column('numero_hijos', sa.Integer(), nullable=False),
        sa.Column('numero_empleado', sa.String(length=10), nullable=False),
        sa.Column('numero_plaza', sa.String(length=8), nullable=False),
        sa.Column('fecha_ingreso', sa.Date(), nullable=False),
        sa.Column('fecha_ingreso_gobierno', sa.Date(), nullable=False),
        sa.Column('nivel_puesto', sa.String(length=50), nullable=False),
        sa.Column('nombre_puesto', sa.String(length=100), nullable=False),
        sa.Column('puesto_inpi', sa.String(length=100), nullable=True),
        sa.Column('adscripcion', sa.String(length=100), nullable=False),
        sa.Column('id_seccion', sa.Integer(), nullable=False),
        sa.Column('nivel_estudios', sa.String(length=50), nullable=True),
        sa.Column('institucion_estudios', sa.String(length=150), nullable=True),
        sa.Column('certificado_estudios', sa.Boolean(), nullable=False),
        sa.Column('plaza_base', sa.String(length=20), nullable=True),
        sa.Column('fecha_registro', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('fecha_actualizacion', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['id_seccion'], ['secciones.id_seccion']),
        sa.PrimaryKeyConstraint('id_trabajador'),
        sa.UniqueConstraint('numero_plaza'),
    )
    op.create_index(op.f('ix_trabajadores_id_trabajador'), 'trabajadores', ['id_trabajador'], unique=False)
    op.create_index(op.f('ix_trabajadores_apellido_paterno'), 'trabajadores', ['apellido_paterno'], unique=False)
    op.create_index(op.f('ix_trabajadores_curp'), 'trabajadores', ['curp'], unique=True)
    op.create_index(op.f('ix_trabajadores_rfc'), 'trabajadores', ['rfc'], unique=True)
    op.create_index(op.f('ix_trabajadores_email'), 'trabajadores', ['email'], unique=True)
    op.create_index(op.f('ix_trabajadores_numero_empleado'), 'trabajadores', ['numero_empleado'], unique=True)
    op.create_index(op.f('ix_trabajadores_id_seccion'), 'trabajadores', ['id_seccion'], unique=False)

    op.create_table(
        'usuarios',
        sa.Column('id_usuario', sa.Integer(), nullable=False),
        sa.Column('identificador', sa.String(length=150), nullable=False),
        sa.Column('contrasena_hash', sa.String(length=255), nullable=False),
        sa.Column('rol', rol_enum, nullable=False),
        sa.Column('id_trabajador', sa.Integer(), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.Column('ultimo_acceso', sa.DateTime(timezone=True), nullable=True),
        sa.Column('fecha_creacion', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['id_trabajador'], ['trabajadores.id_trabajador']),
        sa.PrimaryKeyConstraint('id_usuario'),
        sa.UniqueConstraint('id_trabajador'),
    )
    op.create_index(op.f('ix_usuarios_id_usuario'), 'usuarios', ['id_usuario'], unique=False)
    op.create_index(op.f('ix_usuarios_identificador'), 'usuarios', ['identificador'], unique=True)
    op.create_index(op.f('ix_usuarios_rol'), 'usuarios', ['rol'], unique=False)

    op.create_table(
        'documentos',
        sa.Column('id_documento', sa.Integer(), nullable=False),
        sa.Column('id_trabajador', sa.Integer(), nullable=False),
        sa.Column('tipo_documento', sa.String(length=60), nullable=False),
        sa.Column('nombre_archivo', sa.String(length=255), nullable=False),
        sa.Column('nombre_almacenado', sa.String(length=255), nullable=False),
        sa.Column('ruta_almacenamiento', sa.String(length=500), nullable=False),
        sa.Column('mimetype', sa.String(length=150), nullable=False),
        sa.Column('tipo_archivo', sa.String(length=100), nullable=True),
        sa.Column('tamano_bytes', sa.BigInteger(), nullable=False),
        sa.Column('hash_archivo', sa.String(length=64), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('es_publico', sa.Boolean(), nullable=False),
        sa.Column('metadatos', sa.JSON(), nullable=True),
        sa.Column('fecha_subida', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['id_trabajador'], ['trabajadores.id_trabajador']),
        sa.PrimaryKeyConstraint('id_documento'),
        sa.UniqueConstraint('ruta_almacenamiento'),
        sqlite_autoincrement=True,
    )
    op.create_index(op.f('ix_documentos_id_documento'), 'documentos', ['id_documento'], unique=False)
    op.create_index(op.f('ix_documentos_id_trabajador'), 'documentos', ['id_trabajador'], unique=False)
    op.create_index(op.f('ix_documentos_tipo_documento'), 'documentos', ['tipo_documento'], unique=False)
    op.create_index(op.f('ix_documentos_hash_archivo'), 'documentos', ['hash_archivo'], unique=False)
    op.create_index(op.f('ix_documentos_activo'), 'documentos', ['activo'], unique=False)

    op.create_table(
        'permisos',
        sa.Column('id_permiso', sa.Integer(), nullable=False),
        sa.Column('id_trabajador', sa.Integer(), nullable=False),
        sa.Column('tipo_permiso', sa.String(length=20), nullable=True),
        sa.Column('fecha_inicio', sa.Date(), nullable=False),
        sa.Column('fecha_fin', sa.Date(), nullable=False),
        sa.Column('motivo', sa.Text(), nullable=False),
        sa.Column('estatus', sa.String(length=20), nullable=False),
        sa.Column('documento_aprobacion_id', sa.Integer(), nullable=True),
        sa.Column('fecha_registro', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('fecha_actualizacion', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['id_trabajador'], ['trabajadores.id_trabajador']),
        sa.ForeignKeyConstraint(['documento_aprobacion_id'], ['documentos.id_documento'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id_permiso'),
        sqlite_autoincrement=True,
    )
    op.create_index(op.f('ix_permisos_id_permiso'), 'permisos', ['id_permiso'], unique=False)
    op.create_index(op.f('ix_permisos_id_trabajador'), 'permisos', ['id_trabajador'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_permisos_id_trabajador'), table_name='permisos')
    op.drop_index(op.f('ix_permisos_id_permiso'), table_name='permisos')
    op.drop_table('permisos')

    op.drop_index(op.f('ix_documentos_activo'), table_name='documentos')
    op.drop_index(op.f('ix_documentos_hash_archivo'), table_name='documentos')
    op.drop_index(op.f('ix_documentos_tipo_documento'), table_name='documentos')
    op.drop_index(op.f('ix_documentos_id_trabajador'), table_name='documentos')
    op.drop_index(op.f('ix_documentos_id_documento'), table_name='documentos')
    op.drop_table('documentos')

    op.drop_index(op.f('ix_usuarios_rol'), table_name='usuarios')
    op.drop_index(op.f('ix_usuarios_identificador'), table_name='usuarios')
    op.drop_index(op.f('ix_usuarios_id_usuario'), table_name='usuarios')
    op.drop_table('usuarios')

    op.drop_index(op.f('ix_trabajadores_id_seccion'), table_name='trabajadores')
    op.drop_index(op.f('ix_trabajadores_numero_empleado'), table_name='trabajadores')
    op.drop_index(op.f('ix_trabajadores_email'), table_name='trabajadores')
    op.drop_index(op.f('ix_trabajadores_rfc'), table_name='trabajadores')
    op.drop_index(op.f('ix_trabajadores_curp'), table_name='trabajadores')
    op.drop_index(op.f('ix_trabajadores_apellido_paterno'), table_name='trabajadores')
    op.drop_index(op.f('ix_trabajadores_id_trabajador'), table_name='trabajadores')
    op.drop_table('trabajadores')

    op.drop_index(op.f('ix_secciones_id_seccion'), table_name='secciones')
    op.drop_table('secciones')

    rol_enum.drop(op.get_bind(), checkfirst=True)
    situacion_enum.drop(op.get_bind(), checkfirst=True)
    sexo_enum.drop(op.get_bind(), checkfirst=True)
