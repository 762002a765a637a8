"""
Dose arithmetic shared by every forecasting method.

All rates are decimals (0.15 = 15%). The wastage identity is the only
place administered doses are inflated to procured doses.
"""

import logging
from typing import Any, Hashable, Mapping, Sequence

logger = logging.getLogger(__name__)

MISSING_VALUE = 0.0


def doses_with_wastage(doses_administered: float, wastage_rate: float) -> float:
    """
    doses_with_wastage = doses_administered / (1 - wastage_rate)

    - no administered doses -> 0
    - wastage_rate >= 1 cannot be inverted; the unadjusted figure is kept
    """
    if doses_administered <= 0:
        return 0.0
    if wastage_rate >= 1:
        logger.debug("wastage_rate=%s >= 1, keeping unadjusted doses", wastage_rate)
        return float(doses_administered)
    return doses_administered / (1 - wastage_rate)


def lookup(data: Mapping, key: Sequence[Hashable], default: Any = MISSING_VALUE) -> Any:
    """
    Walk nested mappings along a composite key.

    Any missing level (or a None value) yields `default`. This is the one
    default policy for absent leaf data points: they contribute 0.
    """
    node: Any = data
    for part in key:
        if node is None:
            return default
        if isinstance(node, Mapping):
            node = node.get(part)
        else:
            node = getattr(node, str(part), None)
    return default if node is None else node
