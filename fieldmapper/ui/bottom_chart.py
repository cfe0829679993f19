"""ElevationHistogram - Plotly chart of sampled elevations.

Shows the distribution of grid sample elevations below the map, with the
mean marked. Bars are colored with the same ramp as the map overlay.
"""

import logging

import numpy as np
import plotly.graph_objects as go

from fieldmapper.constants import ChartConfig
from fieldmapper.core.elevation_analyzer import ElevationAnalyzer
from fieldmapper.model.elevation import ElevationAnalysis

logger = logging.getLogger(__name__)


class ElevationHistogram:
    """Renders elevation distributions using Plotly.

    Example:
        chart = ElevationHistogram()
        fig = chart.render(analysis=analysis)
        st.plotly_chart(fig)
    """

    def __init__(self, height: int = ChartConfig.HISTOGRAM_HEIGHT, bins: int = ChartConfig.HISTOGRAM_BINS) -> None:
        self.height = height
        self.bins = bins

    def render(self, analysis: ElevationAnalysis) -> go.Figure:
        """Histogram of resolved sample elevations.

        Args:
            analysis: Completed elevation analysis

        Returns:
            Plotly Figure object.
        """
        elevations = np.array([s.elevation for s in analysis.samples if not s.is_pending], dtype=float)
        if elevations.size == 0:
            raise ValueError("Analysis must have resolved samples to render")

        summary = analysis.summary
        if summary.max_m == summary.min_m:
            counts = np.array([elevations.size])
            edges = np.array([summary.min_m - 0.5, summary.max_m + 0.5])
        else:
            counts, edges = np.histogram(elevations, bins=self.bins, range=(summary.min_m, summary.max_m))
        centers = (edges[:-1] + edges[1:]) / 2
        colors = [ElevationAnalyzer.color_for(c, summary.min_m, summary.max_m) for c in centers]

        fig = go.Figure(
            go.Bar(
                x=centers,
                y=counts,
                width=np.diff(edges),
                marker_color=colors,
                hovertemplate="%{x:.1f} m: %{y} samples<extra></extra>",
            )
        )
        fig.add_vline(
            x=summary.mean_m,
            line_dash="dash",
            line_color="#333",
            annotation_text=f"mean {summary.mean_m:.1f} m",
        )
        fig.update_layout(
            height=self.height,
            margin=dict(l=40, r=20, t=30, b=40),
            xaxis_title="Elevation (m)",
            yaxis_title="Samples",
            bargap=0.05,
            showlegend=False,
        )
        return fig
