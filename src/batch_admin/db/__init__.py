from batch_admin.db.definitions import load_job_definitions, parse_job_definition
from batch_admin.db.memory import RUN_ID_KEY, InMemoryJobRepository

__all__ = [
    "RUN_ID_KEY",
    "InMemoryJobRepository",
    "load_job_definitions",
    "parse_job_definition",
]
