"""Configuration constants.

Values here are format constraints of the snapshot and hard limits. They are
not user-configurable. For configurable values, see models.py.
"""

# =============================================================================
# Chain Walking
# =============================================================================

DEFAULT_MAX_CHAIN_HOPS = 20
"""Default bound on receiver chain walks."""

MAX_CHAIN_HOPS_LIMIT = 1000
"""Hard cap for the configurable bound."""

# =============================================================================
# Snapshot Format
# =============================================================================

VERSION_PATTERN = r"^\d+\.\d+(\.\d+)?$"
"""Snapshot version string, e.g. 3.2 or 3.2.1."""

LOCATION_ID_PATTERN = r"^[^:]+:\d+:\d+$"
"""Node id: {file}:{line}:{col}, file without colons."""

SYNTHETIC_THIS_ID = "__synthetic_this__"
"""Id of the stand-in value used when no node exists for an implicit receiver."""

# =============================================================================
# Reporting
# =============================================================================

MESSAGE_ID_LIMIT = 10
"""Maximum ids listed inline in a failure message. Details keep the full list."""
