"""
Exceptions raised by the team board.

Operations keyed by an unknown task/member id report a failure value
(None/False). NotFoundError is raised when a task being created or edited
references a member that does not exist.
"""


class TaskBoardError(Exception):
    """Base class for all team board errors."""
    pass


class ValidationError(TaskBoardError):
    """Raised when a task or member is missing a required field or has an invalid one."""
    pass


class NotFoundError(TaskBoardError):
    """Raised when a referenced task or team member does not exist."""
    pass


class PersistenceError(TaskBoardError):
    """Raised when the board document cannot be read or written."""
    pass
