from fdeworld.schemas.auth import MessageResponse, SignupResponse
from fdeworld.schemas.candidate import (
    AccountResponse,
    CandidateListResponse,
    CandidateResponse,
    ProfileUpdate,
    SavedJobRequest,
    SigninRequest,
    SignupRequest,
)
from fdeworld.schemas.employer import (
    JobUrlSubmission,
    RejectRequest,
    SubmissionCreated,
    SubmissionResponse,
)
from fdeworld.schemas.job import (
    AdminJobListResponse,
    CompanyCount,
    JobListResponse,
    JobRecord,
    JobSearchParams,
    JobStatsResponse,
    JobUpdate,
    RoleSummary,
)
from fdeworld.schemas.signal import IngestResult, SignalIn, SignalRecord

__all__ = [
    "MessageResponse",
    "SignupResponse",
    "AccountResponse",
    "CandidateListResponse",
    "CandidateResponse",
    "ProfileUpdate",
    "SavedJobRequest",
    "SigninRequest",
    "SignupRequest",
    "JobUrlSubmission",
    "RejectRequest",
    "SubmissionCreated",
    "SubmissionResponse",
    "AdminJobListResponse",
    "CompanyCount",
    "JobListResponse",
    "JobRecord",
    "JobSearchParams",
    "JobStatsResponse",
    "JobUpdate",
    "RoleSummary",
    "IngestResult",
    "SignalIn",
    "SignalRecord",
]
