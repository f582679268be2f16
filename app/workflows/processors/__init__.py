"""One processor per request type."""

from app.workflows.processors.allow_publish import AllowPublishProcessor
from app.workflows.processors.allow_schedule import AllowScheduleProcessor
from app.workflows.processors.delete_entry import DeleteEntryProcessor
from app.workflows.processors.delete_project import DeleteProjectProcessor
from app.workflows.processors.delete_tag import DeleteTagProcessor

__all__ = [
    "AllowPublishProcessor",
    "AllowScheduleProcessor",
    "DeleteEntryProcessor",
    "DeleteProjectProcessor",
    "DeleteTagProcessor",
]
