"""callcheck - verification of call/value graph snapshots."""

__version__ = "0.1.0"
