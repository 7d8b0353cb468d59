from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
