"""Validators - Input validation for field mapper actions.

Validators return Optional[ToastMessage]:
- None if valid
- A message object if invalid (caller displays it)

No exceptions for expected validation failures.
"""

from fieldmapper.core.elevation_analyzer import ElevationAnalyzer
from fieldmapper.model.boundary import BoundaryModel
from fieldmapper.model.message import (
    AnalysisBusyMessage,
    MissingApiKeyMessage,
    NoFieldMessage,
    NotEnoughShapeMessage,
    ToastMessage,
)


def validate_has_field(boundary: BoundaryModel, action: str) -> ToastMessage | None:
    """Validate that the boundary encloses an area.

    Returns:
        None if there are 3+ corners, NoFieldMessage for an empty ring,
        NotEnoughShapeMessage for 1-2 corners.
    """
    if boundary.is_empty:
        return NoFieldMessage(action=action)
    if not boundary.has_polygon:
        return NotEnoughShapeMessage(corner_count=boundary.corner_count, action=action)
    return None


def validate_api_key(api_key: str | None) -> ToastMessage | None:
    """Validate that an elevation API key is present."""
    if not api_key or not api_key.strip():
        return MissingApiKeyMessage()
    return None


def validate_analyzer_idle(analyzer: ElevationAnalyzer) -> ToastMessage | None:
    """Validate that no analysis is in flight."""
    if analyzer.is_busy:
        return AnalysisBusyMessage()
    return None
