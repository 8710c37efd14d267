from worklog.models.project import Project, ProjectAssignment, Task
from worklog.models.time_entry import TimeEntry
from worklog.models.user import User

__all__ = [
    "Project",
    "ProjectAssignment",
    "Task",
    "TimeEntry",
    "User",
]
