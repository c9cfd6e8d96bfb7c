"""
Typed failures for loading the sheet and forwarding row updates.

Each error knows the HTTP status the update endpoint answers with, so views
can turn any of them into a JSON body without a lookup table.
"""


class SheetError(Exception):
    status_code = 500
    default_message = "Unknown error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_response_body(self):
        return {"success": False, "error": self.message}


class NetworkError(SheetError):
    default_message = "Failed to fetch sheet data"


class ParseError(SheetError):
    default_message = "Invalid response from script"


class ValidationError(SheetError):
    status_code = 400
    default_message = "Missing required fields"


class AuthError(SheetError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(SheetError):
    status_code = 403
    default_message = "You can only edit rows with your email address"


class UnknownError(SheetError):
    pass
