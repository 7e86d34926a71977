# models/api.py
import math
from pydantic import BaseModel


class PaginationMeta(BaseModel):
    currentPage: int
    totalPages: int
    total: int
    limit: int
    hasNextPage: bool
    hasPrevPage: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            currentPage=page,
            totalPages=total_pages,
            total=total,
            limit=limit,
            hasNextPage=page < total_pages,
            hasPrevPage=page > 1,
        )
