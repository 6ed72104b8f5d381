"""Small response shapes shared across routers."""

from __future__ import annotations

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class DeleteResponse(BaseModel):
    success: bool
    message: str


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total: int
    has_next: bool = False
    has_prev: bool = False

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> Pagination:
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class HealthResponse(BaseModel):
    db: bool
