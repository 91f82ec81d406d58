"""
Rule management for the stream.
"""

from .rule_store import RuleStore
from .reconciler import RuleReconciler

__all__ = ["RuleStore", "RuleReconciler"]
