from sqlmodel import Session
from blogapi.models.db_models import Categories


class CategoryRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, category_id: int) -> Categories | None:
        return self.session.get(Categories, category_id)
