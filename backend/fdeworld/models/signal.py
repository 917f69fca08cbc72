from sqlalchemy import Column, Integer, Text, Index
from sqlalchemy.sql import func

from fdeworld.database import Base


class HiringSignal(Base):
    """A public post announcing a hire, pushed in by the signal scraper.

    ``url`` is the natural key; re-ingesting a post refreshes its row.
    """

    __tablename__ = "hiring_signals"

    id = Column(Integer, primary_key=True, index=True)
    tweet_id = Column(Text, nullable=False)
    author_username = Column(Text, nullable=False)
    author_name = Column(Text, nullable=True)
    author_followers = Column(Integer, default=0, server_default="0")
    text = Column(Text, nullable=False)
    created_at = Column(Text, nullable=True)
    url = Column(Text, unique=True, nullable=False)
    score = Column(Integer, default=0, server_default="0")
    company_name = Column(Text, nullable=True)
    role_extracted = Column(Text, nullable=True)
    # 1 when the company is at a funding stage the board targets
    is_target_stage = Column(Integer, default=0, server_default="0")
    discovered_at = Column(Text, server_default=func.now())

    __table_args__ = (
        Index("ix_hiring_signals_discovered_at", "discovered_at"),
    )
