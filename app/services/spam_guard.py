"""
Decoy-field ("honeypot") check applied before anything is persisted.

Public forms carry a field that real users never see or fill. Any content in
it marks the submission as automated; callers then answer with a normal
success response and store nothing, so bots cannot probe for the check.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def is_decoy_filled(value: Optional[str], *, source: str = "unknown") -> bool:
    """True when the decoy field holds non-whitespace content."""
    if value is None or not value.strip():
        return False
    logger.info("Decoy field tripped; dropping submission", extra={"spam.source": source})
    return True
