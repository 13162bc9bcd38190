from datetime import datetime
from typing import Any, Dict, List
from sqlalchemy import func
from sqlmodel import select, col, Session
from blogapi.models.db_models import Articles, Texts, utcnow


class ArticleRepository:
    def __init__(self, session: Session):
        self.session = session

    def _published(self, query, now: datetime, category_id: int | None):
        query = query.where(Articles.publish_at < now)
        if category_id is not None:
            query = query.where(Articles.category_id == category_id)
        return query

    @staticmethod
    def _newest_first(query):
        return query.order_by(col(Articles.publish_at).desc(), col(Articles.id).asc())

    def count_published(self, now: datetime, category_id: int | None = None) -> int:
        """
        Count articles published before ``now``

        Args:
            now: Reference time, articles with publish_at >= now are excluded
            category_id: Optional category filter

        Returns:
            Number of matching articles
        """
        query = self._published(select(func.count(Articles.id)), now, category_id)
        return self.session.exec(query).one()

    def find_published(
        self,
        now: datetime,
        category_id: int | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> List[Articles]:
        """
        Get a slice of published articles, newest first

        Args:
            now: Reference time, articles with publish_at >= now are excluded
            category_id: Optional category filter
            offset: Number of rows to skip
            limit: Maximum number of rows to return

        Returns:
            List of Articles ordered by publish_at descending, then insertion order
        """
        query = self._newest_first(
            self._published(select(Articles), now, category_id)
        )
        return self.session.exec(query.offset(offset).limit(limit)).all()

    def count_all(self) -> int:
        return self.session.exec(select(func.count(Articles.id))).one()

    def find_all(self, offset: int = 0, limit: int = 20) -> List[Articles]:
        """All articles including unpublished ones, newest first"""
        query = self._newest_first(select(Articles))
        return self.session.exec(query.offset(offset).limit(limit)).all()

    def get_by_id(self, article_id: int) -> Articles | None:
        return self.session.get(Articles, article_id)

    def get_text(self, text_id: int | None) -> Texts | None:
        if text_id is None:
            return None
        return self.session.get(Texts, text_id)

    def create_with_content(self, article: Articles, content: str) -> Articles:
        """
        Insert an article and its first content text in one transaction

        The article is flushed first so the text can reference its id, then
        the article is pointed at the text.
        """
        self.session.add(article)
        self.session.flush()

        text = Texts(ref_id=article.id, value=content)
        self.session.add(text)
        self.session.flush()

        article.content_id = text.id
        self.session.add(article)
        self.session.commit()
        self.session.refresh(article)
        return article

    def update(self, article: Articles, fields: Dict[str, Any]) -> Articles:
        """Apply ``fields`` to the article and bump updated_at"""
        for name, value in fields.items():
            setattr(article, name, value)
        article.updated_at = utcnow()
        self.session.add(article)
        self.session.commit()
        self.session.refresh(article)
        return article

    def replace_content(self, article: Articles, content: str) -> Texts:
        """
        Store new content for the article and delete the text it replaces

        The caller still has to point the article at the returned text via
        ``update``; the new text is flushed but not committed.
        """
        previous_id = article.content_id
        text = Texts(ref_id=article.id, value=content)
        self.session.add(text)
        self.session.flush()

        previous = self.get_text(previous_id)
        if previous is not None:
            self.session.delete(previous)
        return text

    def destroy(self, article: Articles) -> None:
        """Delete the article and every text that references it"""
        texts = self.session.exec(select(Texts).where(Texts.ref_id == article.id))
        for text in texts.all():
            self.session.delete(text)
        self.session.delete(article)
        self.session.commit()
