from sqlmodel import Session, select
from blogapi.models.db_models import Users


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: int) -> Users | None:
        return self.session.get(Users, user_id)

    def get_by_email(self, email: str) -> Users | None:
        return self.session.exec(select(Users).where(Users.email == email)).first()
