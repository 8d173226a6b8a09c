"""
statsd line encoding.

Every line carries the host it came from as its last tag, so a single
aggregation endpoint can serve any number of agents:

    cpu_usage._t_cpu.0._t_hostname.h1:42|c
"""

from typing import Iterable, Optional

from .config import NODE_ID, TAG_PREFIX
from .models import InvalidMetricType, MetricType, Sample, Tag

__all__ = ["InvalidMetricType", "MetricType", "StatsdEncoder", "tag"]

HOST_TAG = "hostname"


def tag(name, value) -> Tag:
    return Tag(name=name, value=value)


class StatsdEncoder:
    def __init__(self, hostname: str = NODE_ID, prefix: str = TAG_PREFIX):
        self.prefix = prefix
        self.host_tag = tag(HOST_TAG, hostname)

    def sample(self, metric: str, value, metric_type, tags: Optional[Iterable[Tag]] = None) -> Sample:
        # type is checked first so a bad type never produces a partial sample
        metric_type = MetricType.parse(metric_type)
        all_tags = [t for t in (tags or []) if t.name != HOST_TAG]
        all_tags.append(self.host_tag)
        return Sample(metric=metric, value=value, type=metric_type, tags=all_tags)

    def encode(self, metric: str, value, metric_type, tags: Optional[Iterable[Tag]] = None) -> str:
        """
        Format one metric for statsd.

        Raises InvalidMetricType when metric_type is not one of 'c', 's', 'g', 'ms'.
        """
        return self.sample(metric, value, metric_type, tags).line(self.prefix)
