import math
from typing import List, TypeVar, Generic
from pydantic import BaseModel, Field, computed_field


T = TypeVar("T")


class Page(BaseModel):
    """
    Page descriptor for offset pagination

    Built from the requested page index and size; ``total`` is filled in by
    the listing once the count query has run.

    Attributes:
        index: Requested page number, starting at 1
        size: Number of items per page
        total: Total number of matching items
    """

    index: int = Field(default=1, ge=1)
    size: int = Field(default=10, ge=1)
    total: int = Field(default=0, ge=0)

    @computed_field
    @property
    def offset(self) -> int:
        return (self.index - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size

    @computed_field
    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.size) if self.total else 0

    @property
    def is_empty(self) -> bool:
        return self.offset >= self.total


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic model for paginated responses

    Attributes:
        page: Page descriptor with total set
        items: Items in the current page
    """

    page: Page
    items: List[T]
