"""Business errors raised by the attempt engine.

Each error carries a stable ``code`` and the HTTP status it is rendered with,
so a client can tell "not found" apart from "forbidden" or "already
completed" without parsing the message.
"""


class AttemptError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(AttemptError):
    code = "not_found"
    status_code = 404


class Forbidden(AttemptError):
    code = "forbidden"
    status_code = 403


class InvalidState(AttemptError):
    code = "invalid_state"
    status_code = 400


class ValidationError(AttemptError):
    code = "validation_error"
    status_code = 400
