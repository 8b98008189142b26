"""Custom exception hierarchy for ifcwire."""

from __future__ import annotations


class IfcWireError(Exception):
    """Base exception for all ifcwire-specific errors."""
    
    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(IfcWireError):
    """Raised when configuration is invalid or missing."""
    pass


class GeometryError(IfcWireError):
    """Raised when geometry operations fail."""
    pass


class CurveConversionError(GeometryError):
    """Raised when a curve description cannot be turned into a segment."""
    pass


class DegenerateSegmentError(CurveConversionError):
    """Raised when a converted segment collapses below the tolerance level."""
    pass


class SegmentError(GeometryError):
    """Raised when a segment is constructed without edges."""
    pass


class InconsistentSegmentsError(GeometryError):
    """Raised when a junction between segments has more than one candidate edge."""
    pass


class InsufficientPointsError(GeometryError):
    """Raised when a point loop keeps too few points after cleaning."""
    pass
