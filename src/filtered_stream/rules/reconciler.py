"""
Rule reconciliation run once at startup, before streaming.
"""

import logging
from dataclasses import asdict

from ..core.models import RuleSet
from .rule_store import RuleStore


logger = logging.getLogger(__name__)


class RuleReconciler:
    """
    Apply the desired rules, optionally clearing existing ones first.

    The desired rules are always added. Without ``delete_existing`` the
    existing rules are kept, so repeated runs add duplicates upstream.
    """

    def __init__(self, store: RuleStore):
        self.store = store

    def reconcile(self, desired: RuleSet, delete_existing: bool) -> RuleSet:
        """
        Reconcile upstream rules with ``desired``.

        Returns:
            The rules that were active before reconciliation
        """
        existing = self.store.list_rules()
        logger.info(
            f"Found existing rules on the stream: {[asdict(r) for r in existing]}",
            extra={"rule_count": len(existing)},
        )

        if delete_existing:
            self.store.delete_rules(existing)
            logger.info("Deleted all existing rules")
        else:
            logger.info("Rerun with the '--delete' option to delete existing rules")
            logger.info("Keeping existing rules and adding new ones")

        self.store.add_rules(desired)
        return existing
