from yoyo import step

__depends__ = {"20261017_01_qA7rT-ingestion-queue"}

steps = [
    step(
        """
        CREATE TABLE organizations (
            id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT 1,
            PRIMARY KEY (id)
        )
        """,
        "DROP TABLE organizations",
    ),
]
