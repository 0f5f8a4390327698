from rest_framework import status
from rest_framework.exceptions import APIException


class UpstreamError(APIException):
    """A database or third-party call failed; the upstream message is passed through."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Upstream service failed."
    default_code = "upstream_error"
