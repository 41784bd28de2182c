"""Exception hierarchy for the rating engine."""


class SafetyRatingError(Exception):
    """Base exception for rating engine errors."""


class LinkageError(SafetyRatingError):
    """Raised on an invalid employer link transition."""

    def __init__(self, message: str, technician_id: str) -> None:
        super().__init__(message)
        self.technician_id = technician_id


class RatingUnavailableError(SafetyRatingError):
    """Raised when a PSR cannot be computed and no earlier snapshot exists."""

    def __init__(self, technician_id: str) -> None:
        super().__init__(f"No safety rating available for technician {technician_id}")
        self.technician_id = technician_id
