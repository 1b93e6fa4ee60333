from typing import Any


class QueueError(Exception):
    pass


class NotFound(QueueError):
    pass


class JobNotFound(NotFound):
    def __init__(self, key: str) -> None:
        super().__init__(f"Job {key} not found in queue")
        self.key = key


class SourceFileNotFound(NotFound):
    def __init__(self, file_id: str) -> None:
        super().__init__(f"File {file_id} not found")
        self.file_id = file_id


class Conflict(QueueError):
    pass


class JobCompleted(Conflict):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} is completed and cannot be modified")
        self.job_id = job_id


class RetryNotAllowed(Conflict):
    def __init__(self, file_id: str, status: str) -> None:
        super().__init__(f"Job for file {file_id} is {status}; only failed or queued jobs can be retried")
        self.file_id = file_id
        self.status = status


class UpstreamError(QueueError):
    """The trigger call failed after the job had already been reset to queued."""

    def __init__(self, file_id: str, cause: Exception, job: Any = None) -> None:
        super().__init__(f"Job for file {file_id} was reset but the worker trigger failed: {cause}")
        self.file_id = file_id
        self.cause = cause
        self.job = job


class FileMismatch(Conflict):
    def __init__(self, job_id: str, file_id: str) -> None:
        super().__init__(f"File {file_id} does not belong to job {job_id}")
        self.job_id = job_id
        self.file_id = file_id
