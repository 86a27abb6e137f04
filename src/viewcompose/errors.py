__all__ = ["CompositionError"]


class CompositionError(Exception):
    """Raised when a relation is declared with missing or invalid parts."""

    pass
