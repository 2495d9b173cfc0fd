class RelayError(Exception):
    """Terminal failure for one relay request, carrying the HTTP status to report."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    status_code = 500


class ValidationError(RelayError):
    status_code = 400


class UpstreamError(RelayError):
    status_code = 500
