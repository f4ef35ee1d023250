"""Requirements Clarifier — confidence-scored requirements analysis with grounded conflict detection."""

__version__ = "0.1.0"
