"""Host metrics agent that reports to statsd over UDP."""

from .delta import DeltaTracker
from .models import InvalidMetricType, MetricType, Sample, Tag
from .statsd import StatsdEncoder, tag

__version__ = "0.1.0"

__all__ = [
    "DeltaTracker",
    "InvalidMetricType",
    "MetricType",
    "Sample",
    "StatsdEncoder",
    "Tag",
    "tag",
]
