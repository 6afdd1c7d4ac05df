"""Access strategy selection.

The strategy is chosen once per process by the default descriptor cache;
callers that build their own cache may pick one explicitly.
"""

from __future__ import annotations

import logging
import warnings
from typing import Literal

from graphclone.core.access.direct import DirectAccessorFactory, direct_access_available
from graphclone.core.access.portable import PortableAccessorFactory
from graphclone.core.access.protocol import ClassAccessorFactory

logger = logging.getLogger(__name__)

AccessStrategy = Literal["auto", "portable", "direct"]


def select_accessor_factory(strategy: AccessStrategy = "auto") -> ClassAccessorFactory:
    """Create the accessor factory for a strategy name.

    Args:
        strategy: "portable", "direct", or "auto" (direct when available).

    Returns:
        A fresh accessor factory. Falls back to portable when direct access
        is unavailable; a warning is issued only if direct was requested.

    Raises:
        ValueError: If the strategy name is unknown.
    """
    if strategy not in ("auto", "portable", "direct"):
        raise ValueError(f"Unknown access strategy: {strategy!r}")

    if strategy == "portable":
        factory: ClassAccessorFactory = PortableAccessorFactory()
    elif direct_access_available():
        factory = DirectAccessorFactory()
    else:
        if strategy == "direct":
            warnings.warn(
                "Direct field access is not available on this interpreter; "
                "falling back to portable access",
                RuntimeWarning,
                stacklevel=2,
            )
        factory = PortableAccessorFactory()

    logger.debug("Access strategy %r resolved to %s", strategy, factory.name)
    return factory
