# Exception classes
#
# Store errors (sqlalchemy.exc.SQLAlchemyError) are not wrapped, they propagate to the caller
#
# The exceptions carry an http status code and a message so the http layer can format them, for example:
# {
#      "title": "Validation Error: ",
#      "detail": "Validation Error: Invalid type people != authors",
#      "code": 403
# }
#
import sara
from sqlalchemy.exc import DontWrapMixin
from http import HTTPStatus


class JsonapiError(Exception, DontWrapMixin):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""

    def __str__(self):
        return self.message


class ConfigurationError(JsonapiError):
    """
    This exception is raised when an adapter has been set up incorrectly,
    for example when paging is requested but no paging strategy was configured.
    These errors are not retried, the message should identify the adapter.
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value  # 500
    message = "Configuration Error: "

    def __init__(self, message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value):
        Exception.__init__(self)
        self.status_code = status_code
        sara.log.error("Configuration Error: %s", message)
        self.message += str(message)


class ValidationError(JsonapiError):
    """
    This exception is raised when invalid input has been detected (client side input)
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Validation Error: "

    def __init__(self, message="", status_code=HTTPStatus.BAD_REQUEST.value):
        Exception.__init__(self)
        self.status_code = status_code
        sara.log.warning("ValidationError: %s", message)
        self.message += message
