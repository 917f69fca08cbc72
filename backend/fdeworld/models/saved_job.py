from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fdeworld.database import Base


class SavedJob(Base):
    """A candidate's bookmark of a job, keyed by the job URL rather than its id.

    Job rows are replaced wholesale by the scraper sync, so ids are not stable
    across syncs while URLs are.
    """

    __tablename__ = "candidate_saved_jobs"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False)
    job_url = Column(Text, nullable=False)
    saved_at = Column(Text, server_default=func.now())

    candidate = relationship("Candidate", back_populates="saved_jobs")

    __table_args__ = (
        UniqueConstraint("candidate_id", "job_url", name="uq_candidate_job_url"),
    )
