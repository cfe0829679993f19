"""Right control panel: field measurements and elevation summary."""

import logging

import streamlit as st

from fieldmapper.constants import ElevationConfig
from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.core.unit_converter import UnitConverter
from fieldmapper.model.boundary import BoundaryModel
from fieldmapper.model.elevation import ElevationAnalysis
from fieldmapper.model.message import SelfIntersectionMessage, StaleAnalysisMessage

logger = logging.getLogger(__name__)


class FieldStatsPanel:
    """Area, perimeter and corner count of the current field."""

    def __init__(self, boundary: BoundaryModel, unit: str) -> None:
        self.boundary = boundary
        self.unit = unit

    def render(self) -> None:
        st.subheader("📏 Field")
        area = UnitConverter.to_display_unit(area_m2=self.boundary.area_m2, unit=self.unit)
        st.metric("Area", f"{area} {UnitConverter.label(self.unit)}")
        st.metric("Perimeter", UnitConverter.format_distance(self.boundary.perimeter_m))
        st.metric("Corners", self.boundary.corner_count)
        if self.boundary.has_polygon and not GeoCalculator.is_simple_ring(self.boundary.vertices):
            SelfIntersectionMessage().display()


class ElevationStatsPanel:
    """Elevation summary with the overlay legend."""

    def __init__(self, analysis: ElevationAnalysis, current_revision: int) -> None:
        self.analysis = analysis
        self.current_revision = current_revision

    def render(self) -> None:
        summary = self.analysis.summary
        st.subheader("⛰️ Elevation")
        if self.analysis.revision != self.current_revision:
            StaleAnalysisMessage().display()

        col_min, col_max = st.columns(2)
        col_min.metric("Min", f"{summary.min_m:.1f} m")
        col_max.metric("Max", f"{summary.max_m:.1f} m")
        col_mean, col_slope = st.columns(2)
        col_mean.metric("Average", f"{summary.mean_m:.1f} m")
        col_slope.metric("Slope", f"{summary.range_slope_pct:.1f} %", help="Elevation range over north-south extent")
        st.caption(f"Range {summary.range_m:.1f} m over {summary.sample_count} samples")
        st.markdown(self.legend_html(summary.min_m, summary.max_m), unsafe_allow_html=True)

    @staticmethod
    def legend_html(min_m: float, max_m: float) -> str:
        """Gradient bar from the overlay ramp with min/max labels."""
        gradient = ", ".join(ElevationConfig.COLOR_RAMP)
        return (
            f'<div style="height:12px;border-radius:3px;background:linear-gradient(to right, {gradient});"></div>'
            f'<div style="display:flex;justify-content:space-between;font-size:0.8em;">'
            f"<span>{min_m:.0f} m</span><span>{max_m:.0f} m</span></div>"
        )


def render_control_panel(boundary: BoundaryModel, unit: str, analysis: ElevationAnalysis | None) -> None:
    """Render the right column."""
    FieldStatsPanel(boundary=boundary, unit=unit).render()
    if analysis is not None:
        st.divider()
        ElevationStatsPanel(analysis=analysis, current_revision=boundary.revision).render()
