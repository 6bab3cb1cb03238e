"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

AUDIT_EVENT_TYPES = (
    'filter_rule_group_created', 'filter_rule_group_updated',
    'filter_rule_group_disabled', 'filter_rule_group_enabled',
    'filter_rule_group_deleted',
    'filter_rule_created', 'filter_rule_updated',
    'filter_rule_disabled', 'filter_rule_enabled',
    'filter_rule_deleted',
)


def upgrade() -> None:
    # Rule groups
    op.create_table(
        'filter_rule_groups',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('can_match_queues', sa.JSON(), nullable=False),
        sa.Column('can_transfer_queues', sa.JSON(), nullable=False),
        sa.Column('can_use_groups', sa.JSON(), nullable=False),
        sa.Column('disabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by', sa.String(255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_filter_rule_groups_sort_order', 'filter_rule_groups', ['sort_order'])

    # Filter rules (group conditions and processing rules)
    op.create_table(
        'filter_rules',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('filter_rule_groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_group_condition', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('trigger_type', sa.String(50), nullable=True),
        sa.Column('stop_if_matched', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('conflicts', sa.Text(), nullable=False, server_default=''),
        sa.Column('requirements', sa.Text(), nullable=False, server_default=''),
        sa.Column('actions', sa.Text(), nullable=False, server_default=''),
        sa.Column('disabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by', sa.String(255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_filter_rules_scope', 'filter_rules', ['group_id', 'is_group_condition', 'sort_order'])

    # Match history
    op.create_table(
        'filter_rule_matches',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('filter_rule_id', sa.Integer(), sa.ForeignKey('filter_rules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ticket_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_filter_rule_matches_rule', 'filter_rule_matches', ['filter_rule_id', 'created_at'])
    op.create_index('idx_filter_rule_matches_ticket', 'filter_rule_matches', ['ticket_id', 'created_at'])

    # Audit trail (append-only, outlives the objects it describes)
    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_type', sa.Enum(*AUDIT_EVENT_TYPES, name='audit_event_type'), nullable=False),
        sa.Column('aggregate_type', sa.String(50), nullable=False),
        sa.Column('aggregate_id', sa.Integer(), nullable=False),
        sa.Column('event_data', sa.JSON(), nullable=False),
        sa.Column('actor', sa.String(255), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_audit_events_aggregate', 'audit_events', ['aggregate_type', 'aggregate_id', 'occurred_at'])


def downgrade() -> None:
    op.drop_index('idx_audit_events_aggregate', table_name='audit_events')
    op.drop_table('audit_events')
    sa.Enum(name='audit_event_type').drop(op.get_bind(), checkfirst=True)

    op.drop_index('idx_filter_rule_matches_ticket', table_name='filter_rule_matches')
    op.drop_index('idx_filter_rule_matches_rule', table_name='filter_rule_matches')
    op.drop_table('filter_rule_matches')

    op.drop_index('idx_filter_rules_scope', table_name='filter_rules')
    op.drop_table('filter_rules')

    op.drop_index('idx_filter_rule_groups_sort_order', table_name='filter_rule_groups')
    op.drop_table('filter_rule_groups')
