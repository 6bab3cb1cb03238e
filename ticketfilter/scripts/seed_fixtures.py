"""
Seed script for the example filter rule setup.

Creates a "General inbound message filtering" group that applies to
tickets created in the General queue, with rules that escalate technical
messages to the Technical queue and tag urgent ones.

Usage:
    python -m ticketfilter.scripts.seed_fixtures [--create-tables]
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parents[2]))

from sqlalchemy.orm import Session

from ticketfilter.database import Base, SessionLocal, engine
from ticketfilter.domain import Action, ActionKind, Condition, ConditionKind, TriggerType
from ticketfilter.domain.registry import build_default_registry
from ticketfilter.models import FilterRuleGroup
from ticketfilter.services import FilterRuleManager, OperationResult, RuleGroupManager

SEED_ACTOR = "seed_fixtures"
GROUP_NAME = "General inbound message filtering"


def _check(result: OperationResult, what: str) -> int:
    if not result.ok:
        raise RuntimeError(f"Failed to create {what}: {result.message}")
    print(f"  ✓ {result.message} ({what})")
    return result.item_id


def seed_general_filtering(db: Session) -> None:
    """Create the General queue group, its group condition and rules."""
    existing = db.query(FilterRuleGroup).filter(FilterRuleGroup.name == GROUP_NAME).first()
    if existing:
        print(f"  - Group '{GROUP_NAME}' already exists (id {existing.id}), skipping")
        return

    groups = RuleGroupManager(db)
    rules = FilterRuleManager(db, build_default_registry())

    group_id = _check(groups.create_group(
        GROUP_NAME,
        SEED_ACTOR,
        can_match_queues=["General"],
        can_transfer_queues=["General", "Technical"],
        can_use_groups=["Support Team"]
    ), "rule group")

    _check(rules.add_group_condition(
        group_id,
        "New tickets in General",
        SEED_ACTOR,
        trigger_type=TriggerType.CREATE.value,
        requirements=[Condition(ConditionKind.IN_QUEUE, ("General",))]
    ), "group condition")

    _check(rules.add_filter_rule(
        group_id,
        "Escalate technical messages",
        SEED_ACTOR,
        trigger_type=TriggerType.CREATE.value,
        stop_if_matched=True,
        requirements=[
            Condition(ConditionKind.SUBJECT_OR_BODY_CONTAINS, ("server", "network", "outage")),
        ],
        conflicts=[
            Condition(ConditionKind.SUBJECT_CONTAINS, ("out of office",)),
        ],
        actions=[
            Action(ActionKind.QUEUE_SET, "Technical"),
            Action(ActionKind.PRIORITY_ADD, "10"),
            Action(
                ActionKind.NOTIFY_GROUP,
                "Ticket {{ ticket.id }} was moved to {{ ticket.queue }}: {{ ticket.subject }}",
                notify="Support Team"
            ),
        ]
    ), "filter rule")

    _check(rules.add_filter_rule(
        group_id,
        "Tag urgent messages",
        SEED_ACTOR,
        requirements=[Condition(ConditionKind.SUBJECT_CONTAINS, ("urgent",))],
        actions=[
            Action(ActionKind.SUBJECT_PREFIX, "[URGENT]"),
            Action(ActionKind.PRIORITY_SET, "50"),
        ]
    ), "filter rule")


def main():
    """Main entry point."""
    if "--help" in sys.argv or "-h" in sys.argv:
        print(__doc__)
        return

    if "--create-tables" in sys.argv:
        print("Creating tables...")
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        print("=" * 60)
        print("Seeding filter rules...")
        seed_general_filtering(db)
        print("=" * 60)
        print("Seeding completed successfully!")
        print()
        print("Next steps:")
        print("  1. Browse rules: GET /api/v1/rule-groups")
        print("  2. Preview an event: POST /api/v1/evaluations/preview")
        print("=" * 60)

    except Exception as e:
        print(f"Error during seeding: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
