"""
Category exclusion module.

Temporarily removes a category's contribution from the ledger and restores it
later without losing its accumulated value. A category is always either
active or excluded, never both.
"""

import logging
from enum import Enum
from typing import List, Optional

from classification import normalize_category
from ledger import Ledger

# Configure logging
logger = logging.getLogger(__name__)


class ExclusionOutcome(Enum):
    """Result of an exclude/include request."""
    EXCLUDED = "excluded"
    RESTORED = "restored"
    ALREADY_EXCLUDED = "already_excluded"
    ALREADY_ACTIVE = "already_active"
    NOT_FOUND = "not_found"

    @property
    def changed(self) -> bool:
        """True if the request changed ledger state."""
        return self in (ExclusionOutcome.EXCLUDED, ExclusionOutcome.RESTORED)


class CategoryExclusionManager:
    """Moves categories between a ledger's active totals and its exclusion set."""

    def __init__(self, ledger: Ledger):
        """
        Initialize the manager.

        Args:
            ledger: Ledger whose categories are managed
        """
        self.ledger = ledger

    def _locate(self, category: Optional[str]) -> Optional[str]:
        key = normalize_category(category)
        if self.ledger.find_category(key) is not None or self.ledger.is_excluded(key):
            return key
        return None

    def exclude(self, category: Optional[str]) -> ExclusionOutcome:
        """
        Remove a category from active aggregation.

        Args:
            category: Category name (case-insensitive)

        Returns:
            EXCLUDED, ALREADY_EXCLUDED (logged no-op) or NOT_FOUND.
        """
        key = self._locate(category)
        if key is None:
            logger.warning("Category '%s' not found; nothing to exclude", category)
            return ExclusionOutcome.NOT_FOUND

        if self.ledger.is_excluded(key):
            logger.info("Category '%s' is already excluded; no change", key)
            return ExclusionOutcome.ALREADY_EXCLUDED

        entry = self.ledger.detach_category(key)
        logger.info("Category '%s' removed from tracking (value %s)", key, entry.total)
        return ExclusionOutcome.EXCLUDED

    def include(self, category: Optional[str]) -> ExclusionOutcome:
        """
        Restore a previously excluded category.

        Args:
            category: Category name (case-insensitive)

        Returns:
            RESTORED, ALREADY_ACTIVE (logged no-op) or NOT_FOUND.
        """
        key = self._locate(category)
        if key is None:
            logger.warning("Category '%s' not found; nothing to restore", category)
            return ExclusionOutcome.NOT_FOUND

        if not self.ledger.is_excluded(key):
            logger.info("Category '%s' is already active; no change", key)
            return ExclusionOutcome.ALREADY_ACTIVE

        entry = self.ledger.attach_category(key)
        logger.info("Category '%s' added back to tracking (value %s)", key, entry.total)
        return ExclusionOutcome.RESTORED

    def is_excluded(self, category: Optional[str]) -> bool:
        return self.ledger.is_excluded(category)

    def excluded(self) -> List[str]:
        """Sorted names of excluded categories."""
        return sorted(self.ledger.excluded)
