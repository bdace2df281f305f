"""Error taxonomy shared by the services and the HTTP layer.

Each error carries the HTTP status the blueprint answers with, so callers can
tell user-correctable conditions (bad upload, malformed document, wrong state)
from operational ones (model or storage down). Nothing here is retried.
"""


class CvflowError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message=None, **details):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.details = details

    def to_dict(self):
        body = {"success": False, "error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(CvflowError):
    """Candidate not found"""
    status_code = 404
    code = "not_found"


class FormNotFound(CvflowError):
    """Recruitment form not found in the document"""
    status_code = 400
    code = "form_not_found"


class InvalidPayload(CvflowError):
    """Invalid request data"""
    status_code = 400
    code = "invalid_payload"


class SchemaError(CvflowError):
    """Model response could not be parsed"""
    status_code = 422
    code = "schema_error"


class InvalidTransition(CvflowError):
    """Transition not allowed from the current state"""
    status_code = 409
    code = "invalid_transition"


class RenderError(CvflowError):
    """PDF rendering failed"""
    status_code = 500
    code = "render_error"


class UploadError(CvflowError):
    """Object storage upload failed"""
    status_code = 502
    code = "upload_error"


class ModelError(CvflowError):
    """Inference service unavailable"""
    status_code = 503
    code = "model_error"
