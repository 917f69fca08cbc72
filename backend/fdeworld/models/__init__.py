from fdeworld.models.job import Job, CompanyEnrichment
from fdeworld.models.candidate import Candidate
from fdeworld.models.saved_job import SavedJob
from fdeworld.models.employer import Employer, EmployerSubmission
from fdeworld.models.signal import HiringSignal

__all__ = [
    "Job",
    "CompanyEnrichment",
    "Candidate",
    "SavedJob",
    "Employer",
    "EmployerSubmission",
    "HiringSignal",
]
