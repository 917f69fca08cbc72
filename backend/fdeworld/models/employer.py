from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fdeworld.database import Base


class Employer(Base):
    __tablename__ = "employers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    company_name = Column(Text, nullable=False)
    created_at = Column(Text, server_default=func.now())

    submissions = relationship("EmployerSubmission", back_populates="employer")


class EmployerSubmission(Base):
    """A job URL put forward by an employer, awaiting moderation.

    ``job_id`` points at the job row the URL resolved to, which may have
    existed before the submission.
    """

    __tablename__ = "employer_submissions"

    id = Column(Integer, primary_key=True, index=True)
    employer_id = Column(Integer, ForeignKey("employers.id"), nullable=False)
    job_url = Column(Text, nullable=False)
    scraped_title = Column(Text, nullable=True)
    scraped_company = Column(Text, nullable=True)
    scraped_location = Column(Text, nullable=True)
    scraped_description = Column(Text, nullable=True)
    job_id = Column(Integer, nullable=True)
    # 1 when the submission inserted the job row rather than matching one
    created_job = Column(Integer, default=0, server_default="0")
    status = Column(String(20), default="pending", server_default="pending")
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(Text, server_default=func.now())
    reviewed_at = Column(Text, nullable=True)

    employer = relationship("Employer", back_populates="submissions")

    __table_args__ = (
        Index("ix_employer_submissions_status", "status"),
    )
