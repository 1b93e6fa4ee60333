from yoyo import step

__depends__: set[str] = set()

steps = [
    step(
        """
        CREATE TABLE source_files (
            id VARCHAR NOT NULL,
            original_filename VARCHAR NOT NULL,
            storage_bucket VARCHAR NOT NULL,
            storage_path VARCHAR NOT NULL,
            mime_type VARCHAR,
            layer VARCHAR NOT NULL,
            org_id VARCHAR,
            app_id VARCHAR,
            project_id VARCHAR,
            created_by VARCHAR,
            processing_status VARCHAR NOT NULL,
            processing_error VARCHAR,
            metadata JSON,
            file_size INTEGER,
            created_at INTEGER NOT NULL,
            updated_at INTEGER,
            PRIMARY KEY (id)
        )
        """,
        "DROP TABLE source_files",
    ),
    step(
        "CREATE INDEX ix_source_files_org_id ON source_files (org_id)",
        "DROP INDEX ix_source_files_org_id",
    ),
    step(
        "CREATE INDEX ix_source_files_app_id ON source_files (app_id)",
        "DROP INDEX ix_source_files_app_id",
    ),
    step(
        """
        CREATE TABLE profiles (
            id VARCHAR NOT NULL,
            email VARCHAR,
            full_name VARCHAR,
            PRIMARY KEY (id)
        )
        """,
        "DROP TABLE profiles",
    ),
    step(
        """
        CREATE TABLE ingestion_jobs (
            id VARCHAR NOT NULL,
            file_id VARCHAR NOT NULL,
            status VARCHAR NOT NULL,
            attempts INTEGER NOT NULL,
            max_attempts INTEGER NOT NULL,
            last_attempt_at INTEGER,
            next_retry_at INTEGER,
            error_message VARCHAR,
            worker_response JSON,
            created_at INTEGER NOT NULL,
            completed_at INTEGER,
            PRIMARY KEY (id),
            CHECK ((status = 'completed') = (completed_at IS NOT NULL))
        )
        """,
        "DROP TABLE ingestion_jobs",
    ),
    step(
        "CREATE UNIQUE INDEX ix_ingestion_jobs_file_id ON ingestion_jobs (file_id)",
        "DROP INDEX ix_ingestion_jobs_file_id",
    ),
    step(
        "CREATE INDEX ix_ingestion_jobs_status ON ingestion_jobs (status)",
        "DROP INDEX ix_ingestion_jobs_status",
    ),
    step(
        "CREATE INDEX ix_ingestion_jobs_created_at ON ingestion_jobs (created_at)",
        "DROP INDEX ix_ingestion_jobs_created_at",
    ),
]
