"""
Services for the ticket filter engine.

These services implement the business logic layer:
- RuleGroupManager: Audited administration of rule groups
- FilterRuleManager: Audited administration of filter rules
- RuleEvaluator: Group gating and rule cascade
- FilterEngine: Evaluation driver for ticket events (CRITICAL)
- MatchHistory: Match record storage
"""

from ticketfilter.services.audited_manager import OperationResult
from ticketfilter.services.rule_group_manager import RuleGroupManager
from ticketfilter.services.filter_rule_manager import FilterRuleManager
from ticketfilter.services.rule_evaluator import GroupCheck, RuleEvaluator
from ticketfilter.services.filter_engine import EvaluationOutcome, FilterEngine
from ticketfilter.services.match_history import MatchHistory

__all__ = [
    "OperationResult",
    "RuleGroupManager",
    "FilterRuleManager",
    "GroupCheck",
    "RuleEvaluator",
    "EvaluationOutcome",
    "FilterEngine",
    "MatchHistory",
]
