"""Domain errors raised by the assets services."""


class ConflictError(Exception):
    """A write would violate a uniqueness or referential rule."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field
