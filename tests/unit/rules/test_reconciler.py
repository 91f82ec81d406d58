"""
Unit tests for rule reconciliation.
"""

import logging

import pytest

from filtered_stream.connectors.memory_transport import InMemoryTransport
from filtered_stream.core.exceptions import UpstreamError
from filtered_stream.rules.reconciler import RuleReconciler
from filtered_stream.rules.rule_store import RuleStore

from conftest import RULES_URL


def make_reconciler(transport):
    return RuleReconciler(RuleStore(transport, RULES_URL, bearer_token="t"))


class TestRuleReconciler:
    
    def test_delete_existing_then_add(self, memory_transport, desired_rules, caplog):
        with caplog.at_level(logging.INFO, logger="filtered_stream"):
            existing = make_reconciler(memory_transport).reconcile(desired_rules, delete_existing=True)
        
        active = list(memory_transport.rules.values())
        assert {r.id for r in existing} == {"1", "2"}
        assert [(r["value"], r["tag"]) for r in active] == [(r.value, r.tag) for r in desired_rules]
        assert "Deleted all existing rules" in caplog.text
    
    def test_keep_existing_then_add(self, memory_transport, desired_rules, caplog):
        with caplog.at_level(logging.INFO, logger="filtered_stream"):
            make_reconciler(memory_transport).reconcile(desired_rules, delete_existing=False)
        
        assert len(memory_transport.rules) == 4
        assert "--delete" in caplog.text
        assert "Keeping existing rules" in caplog.text
    
    def test_existing_rules_are_logged(self, memory_transport, desired_rules, caplog):
        with caplog.at_level(logging.INFO, logger="filtered_stream"):
            make_reconciler(memory_transport).reconcile(desired_rules, delete_existing=False)
        
        assert "dog has:images" in caplog.text
    
    def test_running_twice_without_delete_duplicates(self, memory_transport, desired_rules):
        reconciler = make_reconciler(memory_transport)
        
        reconciler.reconcile(desired_rules, delete_existing=False)
        reconciler.reconcile(desired_rules, delete_existing=False)
        
        assert len(memory_transport.rules) == 2 + 2 * len(desired_rules)
    
    def test_running_twice_with_delete_is_stable(self, memory_transport, desired_rules):
        reconciler = make_reconciler(memory_transport)
        
        reconciler.reconcile(desired_rules, delete_existing=True)
        reconciler.reconcile(desired_rules, delete_existing=True)
        
        assert len(memory_transport.rules) == len(desired_rules)
    
    def test_list_failure_aborts_before_any_change(self, existing_rules, desired_rules):
        transport = InMemoryTransport(rules=existing_rules, rules_status={"list": 403})
        
        with pytest.raises(UpstreamError):
            make_reconciler(transport).reconcile(desired_rules, delete_existing=True)
        
        assert len(transport.request_history) == 1
        assert len(transport.rules) == 2
