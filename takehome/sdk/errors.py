"""Rule-data error taxonomy.

Only DataUnavailable escapes the calculators. The other errors are raised
inside the rule-data stack and recovered there (discard, invalidate, or stay
on the current tier).
"""

from typing import List, Optional


class TaxDataError(Exception):
    """Base class for rule-data problems."""
    pass


class DataUnavailable(TaxDataError):
    """No schedule or config exists for the requested year/filing status."""

    def __init__(self, message: str, year: Optional[int] = None):
        super().__init__(message)
        self.year = year


class ValidationFailure(TaxDataError):
    """A non-embedded payload failed structural checks."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("Rule data failed validation: " + "; ".join(self.problems))


class CacheCorruption(TaxDataError):
    """A cache entry's stored checksum does not match its content."""
    pass


class NetworkFailure(TaxDataError):
    """The remote rule-data endpoint could not be reached or timed out."""
    pass
