from sqlmodel import Session
from blogapi.models.db_models import Attachments


class AttachmentRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, attachment: Attachments) -> Attachments:
        """Flush the attachment, the article write that uses it commits both"""
        self.session.add(attachment)
        self.session.flush()
        self.session.refresh(attachment)
        return attachment

    def get_by_id(self, attachment_id: int) -> Attachments | None:
        return self.session.get(Attachments, attachment_id)
