"""Take Home - after-tax income calculation and scenario comparison."""

__version__ = "0.3.0"
