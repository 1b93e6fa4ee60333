from ingest_console.models.files import SourceFile
from ingest_console.models.jobs import IngestionJob, JobStatus
from ingest_console.models.organizations import Organization
from ingest_console.models.profiles import Profile

__all__ = [
    "IngestionJob",
    "JobStatus",
    "Organization",
    "Profile",
    "SourceFile",
]
