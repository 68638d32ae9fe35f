"""Exceptions raised by the trainer when a request breaks a precondition."""


class TrainerError(Exception):
    """Base class for trainer errors surfaced to the caller."""


class InvalidDay(TrainerError):
    def __init__(self, day):
        super().__init__(f"Invalid day: {day}")
        self.day = day


class DuplicateResponse(TrainerError):
    def __init__(self, email_id):
        super().__init__("Already responded to this email")
        self.email_id = email_id


class IncompleteDay(TrainerError):
    def __init__(self, day, remaining: int):
        super().__init__(f"Not all emails have been reviewed ({remaining} remaining on day {day})")
        self.day = day
        self.remaining = remaining


class SessionNotFound(TrainerError):
    def __init__(self, session_id):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class EmailNotFound(TrainerError):
    def __init__(self, email_id):
        super().__init__(f"Email not found: {email_id}")
        self.email_id = email_id
