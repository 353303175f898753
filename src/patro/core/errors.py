class PatroError(Exception):
    """Base error."""

class CalendarTableError(PatroError):
    """Raised when a month-length table is structurally inconsistent."""

class ConversionError(PatroError):
    """Raised by strict conversions when a date is outside the table range."""

class TransportError(PatroError):
    """Raised when an external calendar create/update/delete fails."""

class ValidationError(PatroError):
    """Raised when a logical event is missing required fields."""
