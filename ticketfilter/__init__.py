"""
Ticket filter rules engine.

Classifies ticket lifecycle events against administrator-defined rule
groups and dispatches the resulting actions.
"""

__version__ = "0.1.0"
