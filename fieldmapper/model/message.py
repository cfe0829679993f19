"""Message - User-facing messages for the field mapper UI.

Architecture:
- LEFT (sidebar): ONE blue info message showing the current mode and what clicks do
- CENTER (under map): Loading / failure messages for elevation analysis
- Toasts: Transient feedback for refused actions (no field drawn, analysis busy)

Validators and controller operations return these objects instead of raising;
the caller decides when to display() them.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class MessageLevel(Enum):
    """Display level for UI messages."""

    INFO = "info"  # Blue - context/status/loading
    WARNING = "warning"  # Yellow - action instructions
    ERROR = "error"  # Red - failures


@dataclass(frozen=True)
class Message(ABC):
    """Abstract base class for messages displayed inline (sidebar/panels).

    Rendered as st.info/st.warning/st.error blocks that persist until replaced.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Formatted message for display in Streamlit."""
        raise NotImplementedError

    @property
    @abstractmethod
    def level(self) -> MessageLevel:
        """Display level."""
        raise NotImplementedError

    def display(self) -> None:
        """Render this message using the appropriate Streamlit function."""
        import streamlit as st

        render_fn = {
            MessageLevel.INFO: st.info,
            MessageLevel.WARNING: st.warning,
            MessageLevel.ERROR: st.error,
        }[self.level]
        render_fn(self.message)


@dataclass(frozen=True)
class ToastMessage(ABC):
    """Abstract base class for transient popup notifications.

    Good for: refused actions, quick confirmations
    Bad for: mode context, statistics
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Formatted message for the toast notification."""
        raise NotImplementedError

    @property
    @abstractmethod
    def icon(self) -> str:
        """Icon to show in toast. Override in subclasses."""
        raise NotImplementedError

    def display(self) -> None:
        """Show this message as a toast notification and log it."""
        import streamlit as st

        logger = logging.getLogger(__name__)
        logger.info(f"[TOAST] {self.icon} {self.message}")
        st.toast(f"{self.icon} {self.message}")


# =============================================================================
# TOAST MESSAGES
# =============================================================================


@dataclass(frozen=True)
class NoFieldMessage(ToastMessage):
    """Action needs a drawn field but the ring is empty."""

    action: str = "continue"

    @property
    def icon(self) -> str:
        return "🌾"

    @property
    def message(self) -> str:
        return f"Please draw a field first to {self.action}."


@dataclass(frozen=True)
class NotEnoughShapeMessage(ToastMessage):
    """Ring exists but has fewer than 3 corners."""

    corner_count: int
    action: str = "continue"

    @property
    def icon(self) -> str:
        return "📐"

    @property
    def message(self) -> str:
        return f"Need at least 3 corners to {self.action} (have {self.corner_count})."


@dataclass(frozen=True)
class AnalysisBusyMessage(ToastMessage):
    """Elevation analysis requested while one is running."""

    @property
    def icon(self) -> str:
        return "⏳"

    @property
    def message(self) -> str:
        return "Elevation analysis already in progress."


@dataclass(frozen=True)
class MissingApiKeyMessage(ToastMessage):
    """No elevation API key entered or configured."""

    @property
    def icon(self) -> str:
        return "🔑"

    @property
    def message(self) -> str:
        return "Enter a Google Maps API key to analyze elevation."


@dataclass(frozen=True)
class ExportReadyMessage(ToastMessage):
    """Export file was prepared."""

    filename: str

    @property
    def icon(self) -> str:
        return "💾"

    @property
    def message(self) -> str:
        return f"Exported {self.filename}"


@dataclass(frozen=True)
class StaleVertexMessage(ToastMessage):
    """Picked corner no longer exists (ring changed since the pick)."""

    index: int

    @property
    def icon(self) -> str:
        return "⚠️"

    @property
    def message(self) -> str:
        return f"Corner {self.index + 1} no longer exists. Pick a corner again."


# =============================================================================
# INLINE MESSAGES
# =============================================================================


@dataclass(frozen=True)
class ElevationFailedMessage(Message):
    """Elevation analysis failed; overlay stays cleared."""

    error: str

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.ERROR

    @property
    def message(self) -> str:
        return f"Failed to analyze elevation: {self.error}. Please check your API key and try again."


@dataclass(frozen=True)
class AnalyzingMessage(Message):
    """Shown while batches are in flight."""

    point_count: int

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        return f"Analyzing elevation at {self.point_count} points..."


@dataclass(frozen=True)
class StaleAnalysisMessage(Message):
    """The boundary changed after the overlay was computed."""

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.WARNING

    @property
    def message(self) -> str:
        return "The field changed since this analysis. Run it again for current values."


@dataclass(frozen=True)
class SelfIntersectionMessage(Message):
    """Edges of the ring cross each other. Shown, never enforced."""

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.WARNING

    @property
    def message(self) -> str:
        return "The boundary crosses itself, so the area shown may not match the field."


@dataclass(frozen=True)
class ModeContextMessage(Message):
    """Sidebar context: current mode and what a map click does."""

    mode: str
    corner_count: int
    dragging_index: int | None = None
    gps_tracking: bool = False

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        if self.mode == "drawing":
            text = f"✏️ **Drawing** ({self.corner_count} corners)\n\nClick the map to add corners."
            if self.gps_tracking:
                text += " GPS fixes are added as corners."
            return text
        if self.mode == "editing_vertices":
            if self.dragging_index is not None:
                return f"✋ **Moving corner {self.dragging_index + 1}**\n\nClick the new position on the map."
            return "🔧 **Editing corners**\n\nClick a corner to pick it up, then click where it should go."
        if self.corner_count == 0:
            return "🗺️ **Ready**\n\nPress *Draw Field* and click the map to mark the corners."
        return (
            f"✅ **Field with {self.corner_count} corners**\n\n"
            "Click near an edge to insert a corner, or enable corner editing."
        )
