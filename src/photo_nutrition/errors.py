"""Error taxonomy shared by the pipeline and the HTTP layer."""

from http import HTTPStatus


class PipelineError(Exception):
    """Base error that knows how it should be reported to the caller."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "UNEXPECTED_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        retry_after: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_payload(self) -> dict[str, object]:
        """Return the JSON error body."""
        payload: dict[str, object] = {"error": self.message, "code": self.code}
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        return payload


class ClientInputError(PipelineError):
    status_code = HTTPStatus.BAD_REQUEST
    code = "MISSING_INPUT"
    default_message = "Image data is required (base64 JPEG)"


class ClientRateLimited(PipelineError):
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    code = "RATE_LIMITED"
    default_message = "Too many requests. Please try again in a few minutes."


class UpstreamRateLimited(PipelineError):
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    code = "API_RATE_LIMITED"
    default_message = "AI service rate limited. Please wait."


class UpstreamAuthError(PipelineError):
    status_code = HTTPStatus.UNAUTHORIZED
    code = "AUTH_ERROR"
    default_message = "Authentication failed"


class UpstreamMalformed(PipelineError):
    status_code = HTTPStatus.BAD_GATEWAY
    code = "PARSE_ERROR"
    default_message = "Could not parse the AI service response"


class UpstreamEmpty(PipelineError):
    status_code = HTTPStatus.BAD_GATEWAY
    code = "EMPTY_RESPONSE"
    default_message = "AI returned empty response"


class UpstreamServiceError(PipelineError):
    status_code = HTTPStatus.BAD_GATEWAY
    code = "API_ERROR"
    default_message = "AI service error"


class PipelineTimeout(PipelineError):
    status_code = HTTPStatus.GATEWAY_TIMEOUT
    code = "TIMEOUT"
    default_message = "Request timed out"


class ServerConfigError(PipelineError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "SERVER_CONFIG_ERROR"
    default_message = "Server configuration error"


class UnexpectedError(PipelineError):
    """Catch-all for failures that have no better classification."""
