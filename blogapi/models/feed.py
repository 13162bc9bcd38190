from datetime import datetime
from typing import List
from pydantic import BaseModel


class FeedItem(BaseModel):
    """One <item> of the RSS document"""

    title: str
    link: str
    guid: str
    author: str
    pub_date: str
    description: str


class FeedChannel(BaseModel):
    title: str
    link: str
    description: str
    last_build_date: datetime
    generator: str
    ttl: int
    items: List[FeedItem] = []
