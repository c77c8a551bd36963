from teamdesk.models.activity import ActivityEvent
from teamdesk.models.notifications import Notification
from teamdesk.models.org import User
from teamdesk.models.projects import Project, TeamProject
from teamdesk.models.teams import Team, TeamMember, TeamUpdate
from teamdesk.models.work import Issue, Task, TeamTask

__all__ = [
    "User",
    "Project",
    "TeamProject",
    "Team",
    "TeamMember",
    "TeamUpdate",
    "Task",
    "TeamTask",
    "Issue",
    "ActivityEvent",
    "Notification",
]
