from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

DEFAULT_THRESHOLDS = {
    "PEAK_WARNING": 150,
    "PEAK_CRITICAL": 200,
    "CONTACT_WARNING": 20,     # 낮을수록 위험
    "CONTACT_CRITICAL": 10,
    "MIN_WARNING": 10,         # 낮을수록 위험
    "MIN_CRITICAL": 5,
}


class AlertLevel(IntEnum):
    NONE = 0
    WARNING = 1
    CRITICAL = 2


@dataclass(frozen=True)
class AlertLevels:
    peak_pressure: AlertLevel
    contact_area: AlertLevel
    minimum_pressure: AlertLevel

    @property
    def worst(self) -> AlertLevel:
        return max(self.peak_pressure, self.contact_area, self.minimum_pressure)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "peak_pressure": self.peak_pressure.name.lower(),
            "contact_area": self.contact_area.name.lower(),
            "minimum_pressure": self.minimum_pressure.name.lower(),
            "worst": self.worst.name.lower(),
        }


def _higher_is_worse(value: float, warning: float, critical: float) -> AlertLevel:
    if value >= critical:
        return AlertLevel.CRITICAL
    if value >= warning:
        return AlertLevel.WARNING
    return AlertLevel.NONE


def _lower_is_worse(value: float, warning: float, critical: float) -> AlertLevel:
    if value <= critical:
        return AlertLevel.CRITICAL
    if value <= warning:
        return AlertLevel.WARNING
    return AlertLevel.NONE


def evaluate(metrics, thresholds: Optional[Mapping[str, float]] = None) -> AlertLevels:
    """
    프레임 지표 → 지표별 경보 단계.
    metrics 는 MetricsRecord 또는 PressureFrame (peak_pressure / contact_area_percentage / min 값).
    """
    t = {**DEFAULT_THRESHOLDS, **(thresholds or {})}
    minimum = getattr(metrics, "min_value", None)
    if minimum is None:
        minimum = metrics.min
    return AlertLevels(
        peak_pressure=_higher_is_worse(metrics.peak_pressure, t["PEAK_WARNING"], t["PEAK_CRITICAL"]),
        contact_area=_lower_is_worse(metrics.contact_area_percentage, t["CONTACT_WARNING"], t["CONTACT_CRITICAL"]),
        minimum_pressure=_lower_is_worse(minimum, t["MIN_WARNING"], t["MIN_CRITICAL"]),
    )


__all__ = ["AlertLevel", "AlertLevels", "DEFAULT_THRESHOLDS", "evaluate"]
