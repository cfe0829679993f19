"""Area and distance display formatting.

Stored values are always square meters / meters. Conversion happens only
at display time, so switching units never alters the boundary.
"""

from fieldmapper.constants import UnitConfig


class UnitConverter:
    """Static conversions from square meters to display units.

    Example:
        UnitConverter.to_display_unit(area_m2=10000, unit="ha")  # "1.00"
    """

    @staticmethod
    def _conversion(unit: str) -> dict:
        conversion = UnitConfig.UNIT_CONVERSIONS.get(unit)
        if conversion is None:
            raise ValueError(f"Unknown area unit '{unit}'. Supported: {UnitConfig.UNITS}")
        return conversion

    @staticmethod
    def convert(area_m2: float, unit: str) -> float:
        """Convert square meters to the given unit."""
        return area_m2 * UnitConverter._conversion(unit)["from_sq_meters"]

    @staticmethod
    def to_display_unit(area_m2: float, unit: str) -> str:
        """Convert and format with the unit's fixed decimal count.

        Args:
            area_m2: Area in square meters
            unit: One of "ha", "sqm", "acre", "sqft"

        Returns:
            Formatted number without unit label.
        """
        decimals = UnitConverter._conversion(unit)["decimals"]
        return f"{UnitConverter.convert(area_m2, unit):.{decimals}f}"

    @staticmethod
    def label(unit: str) -> str:
        """Short display label, e.g. "m²" for sqm."""
        return UnitConverter._conversion(unit)["label"]

    @staticmethod
    def format_distance(distance_m: float) -> str:
        """Edge length label: "57 m" below 1 km, "1.23 km" above."""
        if distance_m >= UnitConfig.KM_THRESHOLD_M:
            return f"{distance_m / 1000:.2f} km"
        return f"{round(distance_m)} m"
