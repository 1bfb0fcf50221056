"""Exception taxonomy for the knowledge base pipeline.

Services raise these exceptions and the API layer maps them to HTTP
responses. Summarization and categorization catch the upstream and parse
failures themselves and return degraded results instead.
"""


class KnowledgeBaseError(Exception):
    """Base class for all pipeline errors."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFound(KnowledgeBaseError):
    """An entity looked up by id does not exist."""

    status_code = 404


class InvalidInput(KnowledgeBaseError):
    """A required field is missing or an identifier/URL is malformed."""

    status_code = 400


class Conflict(KnowledgeBaseError):
    """A video with the same YouTube id already exists."""

    status_code = 409


class UpstreamUnavailable(KnowledgeBaseError):
    """The caption source or the completion provider failed."""

    status_code = 502


class NoTranscript(UpstreamUnavailable):
    """Captions are disabled or absent for a video."""

    status_code = 400


class ProviderNotConfigured(UpstreamUnavailable):
    """The selected completion provider lacks credentials or connection info."""


class ProviderError(UpstreamUnavailable):
    """The completion provider call failed or returned a malformed response."""


class ParseFailure(KnowledgeBaseError):
    """A provider response is not valid JSON in the expected shape."""

    status_code = 502

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response
