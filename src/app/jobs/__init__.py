"""Jobs diferidos por transação (lembrete e expiração)."""

from app.jobs.models import JOB_ID_PREFIXES, JobKind, ScheduledJob, build_job_id

__all__ = ["JOB_ID_PREFIXES", "JobKind", "ScheduledJob", "build_job_id"]
