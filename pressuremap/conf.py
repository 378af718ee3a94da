from typing import Any, Dict

from django.conf import settings

from .alerts import DEFAULT_THRESHOLDS
from .ingest import FRAMES_PER_SECOND
from .metrics import CONTACT_THRESHOLD
from .regions import MIN_REGION_AREA

DEFAULTS: Dict[str, Any] = {
    "CONTACT_THRESHOLD": CONTACT_THRESHOLD,
    "MIN_REGION_AREA": MIN_REGION_AREA,
    "FRAMES_PER_SECOND": FRAMES_PER_SECOND,
    "GRAPH_BUCKET_SECONDS": 60,
    "REPORT_BUCKET_SECONDS": 900,
    "REPORT_TOP_REGIONS": 10,
    "ALERTS": DEFAULT_THRESHOLDS,
}


def get_setting(name: str) -> Any:
    """settings.PRESSUREMAP[name], 없으면 DEFAULTS."""
    user = getattr(settings, "PRESSUREMAP", None) or {}
    if name == "ALERTS":
        return {**DEFAULTS["ALERTS"], **(user.get("ALERTS") or {})}
    return user.get(name, DEFAULTS[name])
