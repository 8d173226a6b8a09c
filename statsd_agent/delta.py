from typing import Dict, Hashable, Optional

from .models import format_number


class DeltaTracker:
    """
    Remembers the last absolute reading per key and reports changes instead.

    A first observation (and the first one after reset()) reports the absolute
    value so downstream gauges get a baseline; after that a non-negative change
    is reported as "+N" and a negative one as the plain number.
    """

    def __init__(self):
        self._last: Dict[Hashable, float] = {}

    def track(self, key: Hashable, value, baseline=None, ndigits: Optional[int] = None):
        previous = self._last.get(key)
        self._last[key] = value

        if previous is None:
            return value if baseline is None else baseline

        delta = value - previous
        if ndigits is not None:
            delta = round(delta, ndigits)
        if delta >= 0:
            return f"+{format_number(delta)}"
        return delta

    def reset(self):
        self._last.clear()

    def __contains__(self, key):
        return key in self._last

    def __len__(self):
        return len(self._last)
