"""Job lifecycle for LocalPro.

Services:
- JobService: job board and client job-post actions
- AwardService: award an applicant (job -> booking)
- ApplicantService: applicant listing with ratings
- JobAdminService: admin overrides with audit logging
"""

from localpro.jobs.admin import JobAdminService
from localpro.jobs.applicants import Applicant, ApplicantService, applicant_stats
from localpro.jobs.awards import AwardService
from localpro.jobs.service import JobService, job_stats, matches_term

__all__ = [
    "Applicant",
    "ApplicantService",
    "AwardService",
    "JobAdminService",
    "JobService",
    "applicant_stats",
    "job_stats",
    "matches_term",
]
