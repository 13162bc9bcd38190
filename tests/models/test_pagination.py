import pytest
from pydantic import ValidationError

from blogapi.models.pagination import Page, PaginatedResponse


class TestPage:
    def test_first_page(self):
        page = Page(index=1, size=10)

        assert page.offset == 0
        assert page.limit == 10

    def test_offset_from_index(self):
        page = Page(index=3, size=10, total=100)

        assert page.offset == 20
        assert page.pages == 10
        assert not page.is_empty

    def test_pages_round_up(self):
        assert Page(index=1, size=10, total=21).pages == 3
        assert Page(index=1, size=10, total=0).pages == 0

    def test_empty_when_offset_reaches_total(self):
        assert Page(index=2, size=10, total=10).is_empty
        assert Page(index=1, size=10, total=0).is_empty
        assert not Page(index=2, size=10, total=11).is_empty

    @pytest.mark.parametrize("field", ["index", "size"])
    def test_rejects_values_below_one(self, field):
        with pytest.raises(ValidationError):
            Page(**{field: 0})

    def test_serializes_derived_fields(self):
        data = Page(index=2, size=5, total=12).model_dump()

        assert data == {"index": 2, "size": 5, "total": 12, "offset": 5, "pages": 3}


class TestPaginatedResponse:
    def test_wraps_items(self):
        response = PaginatedResponse[int](page=Page(total=2), items=[1, 2])

        assert response.items == [1, 2]
        assert response.page.total == 2
