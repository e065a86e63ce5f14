from __future__ import annotations


class PosterFinderError(RuntimeError):
    pass


class NetworkError(PosterFinderError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyPayloadError(PosterFinderError):
    pass


class UnsupportedTargetError(PosterFinderError):
    pass


class NoCandidateError(PosterFinderError):
    pass
