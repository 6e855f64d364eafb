"""Domain exceptions.

Provider adapters translate transport-level failures into these so that the
service layer can recover without knowing which provider is configured.
"""


class ContinuityError(Exception):
    """Base class for all Continuity errors."""


class SearchProviderError(ContinuityError):
    """The comics metadata search provider failed or returned an error payload."""


class LLMServiceError(ContinuityError):
    """The generative-AI text or image provider failed."""


class ComicNotFoundError(ContinuityError):
    def __init__(self, comic_id: str):
        super().__init__(f"Comic not found: {comic_id}")
        self.comic_id = comic_id
