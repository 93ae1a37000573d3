class CertChainError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class InvalidInput(CertChainError):
    status_code = 400
    message = "Invalid input"

    def __init__(self, issues: list, message: str = None):
        super().__init__(message)
        self.issues = issues

    def to_dict(self) -> dict:
        return {"message": self.message, "issues": self.issues}


class MalformedPayload(CertChainError):
    status_code = 400
    message = "Invalid QR data format"


class UnsupportedType(CertChainError):
    status_code = 400
    message = "Unsupported QR type"


class Unauthorized(CertChainError):
    status_code = 401
    message = "Unauthorized"


class NotApproved(CertChainError):
    status_code = 403
    message = "Issuer not approved"


class Forbidden(CertChainError):
    status_code = 403
    message = "Forbidden"


class NotFound(CertChainError):
    status_code = 404
    message = "Not found"


class Conflict(CertChainError):
    status_code = 409
    message = "Already exists"


class AlreadyRevoked(CertChainError):
    status_code = 409
    message = "Certificate already revoked"


class InvalidTransition(CertChainError):
    status_code = 409
    message = "Transition not allowed"
