"""File registry entity.

Rows are owned by the upload path; the queue reads them to rebuild trigger
payloads and only writes the processing status mirror.
"""

import time
from typing import Any, Dict

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class SourceFile(SQLModel, table=True):
    __tablename__ = "source_files"

    id: str = Field(primary_key=True)
    original_filename: str
    storage_bucket: str
    storage_path: str
    mime_type: str | None = Field(default=None)
    layer: str = Field(default="project")
    org_id: str | None = Field(default=None, index=True)
    app_id: str | None = Field(default=None, index=True)
    project_id: str | None = Field(default=None)
    created_by: str | None = Field(default=None)
    processing_status: str = Field(default="pending")
    processing_error: str | None = Field(default=None)
    meta: Dict[str, Any] | None = Field(default=None, sa_column=Column("metadata", JSON, nullable=True))
    file_size: int | None = Field(default=None)
    created_at: int = Field(default_factory=lambda: int(time.time()))
    updated_at: int | None = Field(default=None)
