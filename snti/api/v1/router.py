from fastapi import APIRouter
from snti.api.v1.endpoints import auth, bootstrap, documentos, permisos, secciones, trabajadores, usuarios

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(bootstrap.router, prefix="/bootstrap", tags=["bootstrap"])
api_router.include_router(trabajadores.router, prefix="/trabajadores", tags=["trabajadores"])
api_router.include_router(documentos.router, prefix="/documentos", tags=["documentos"])
api_router.include_router(permisos.router, prefix="/permisos", tags=["permisos"])
api_router.include_router(usuarios.router, prefix="/usuarios", tags=["usuarios"])
api_router.include_router(secciones.router, prefix="/secciones", tags=["secciones"])
