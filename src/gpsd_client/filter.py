"""Report filtering by class and device.

Filter chain (evaluated in order)::

    1. ``report_class`` in ``drop_classes``                          → drop
    2. ``keep_classes`` non-empty AND class not in list              → drop
    3. ``keep_devices`` non-empty AND the report names a device
       that is not in the list                                       → drop
    4. Otherwise                                                     → pass

Reports that carry no device (VERSION, RAW, ...) are never dropped by
rule 3.
"""

from __future__ import annotations

import logging
from typing import Optional

from gpsd_client.config import FilterConfig
from gpsd_client.models import Report

logger = logging.getLogger(__name__)


class ReportFilter:
    """Stateless filter that decides whether a report is passed on."""

    def __init__(self, config: FilterConfig) -> None:
        self._drop_classes: set[str] = set(config.drop_classes)
        self._keep_classes: set[str] = set(config.keep_classes)
        self._keep_devices: set[str] = set(config.keep_devices)

    def __call__(self, report: Report) -> Optional[Report]:
        """Return *report* if it passes all filters, else ``None``."""
        return self.apply(report)

    def apply(self, report: Report) -> Optional[Report]:
        cls = report.report_class

        if cls in self._drop_classes:
            logger.debug("Filtered %s report: in drop_classes", cls)
            return None

        if self._keep_classes and cls not in self._keep_classes:
            logger.debug("Filtered %s report: not in keep_classes", cls)
            return None

        device = _get_device(report)
        if self._keep_devices and device is not None and device not in self._keep_devices:
            logger.debug("Filtered %s report from %s: not in keep_devices", cls, device)
            return None

        return report


def _get_device(report: Report) -> Optional[str]:
    """The device a report refers to (``device``, or ``path`` for DEVICE)."""
    device = getattr(report, "device", None)
    if isinstance(device, str):
        return device
    path = getattr(report, "path", None)
    return path if isinstance(path, str) else None
