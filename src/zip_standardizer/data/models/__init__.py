"""ORM models package for database tables.

- RebuildJob: state and progress of archive rebuilds run in the background
"""

from zip_standardizer.data.db import Base
from zip_standardizer.data.models.rebuild_job import RebuildJob, RebuildStatus

__all__ = ["Base", "RebuildJob", "RebuildStatus"]
