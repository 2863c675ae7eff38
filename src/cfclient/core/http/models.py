"""Pydantic models for the Cloudflare v4 response envelope.

Every response body has the shape
``{success, errors, messages, result, result_info}``. ``result_info``
carries either offset paging metadata or a cursor, depending on the
endpoint.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ApiError(BaseModel):
    """One entry of the envelope's ``errors`` array."""

    model_config = ConfigDict(extra="allow")

    code: int = 0
    message: str = ""


class ApiMessage(BaseModel):
    """One entry of the envelope's ``messages`` array."""

    model_config = ConfigDict(extra="allow")

    code: int = 0
    message: str = ""


class ResultInfo(BaseModel):
    """Offset paging metadata."""

    model_config = ConfigDict(extra="allow")

    page: int = 1
    per_page: int = 0
    count: int = 0
    total_count: Optional[int] = None
    total_pages: Optional[int] = None


class CursorResultInfo(BaseModel):
    """Cursor paging metadata. ``cursor`` is absent on the last page."""

    model_config = ConfigDict(extra="allow")

    count: int = 0
    per_page: int = 0
    cursor: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every API result."""

    model_config = ConfigDict(extra="allow")

    success: bool
    errors: List[ApiError] = Field(default_factory=list)
    messages: List[ApiMessage] = Field(default_factory=list)
    result: Optional[T] = None
    result_info: Optional[Dict[str, Any]] = None


class PagePaginatedResult(BaseModel, Generic[T]):
    """One offset page: its items and the server's paging metadata."""

    items: List[T] = Field(default_factory=list)
    page_info: Optional[ResultInfo] = None


class CursorPaginatedResult(BaseModel, Generic[T]):
    """One cursor page: its items and the cursor for the next one."""

    items: List[T] = Field(default_factory=list)
    cursor_info: Optional[CursorResultInfo] = None

    @property
    def next_cursor(self) -> Optional[str]:
        if self.cursor_info is None:
            return None
        return self.cursor_info.cursor or None
