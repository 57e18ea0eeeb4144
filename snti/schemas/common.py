from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Envelope returned by every successful endpoint."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    """Envelope returned on failure."""
    success: bool = False
    message: str
    error: Optional[str] = None
    errors: Optional[List[Any]] = None
