"""create dandy tables

Revision ID: 3f8a1c2d9b70
Revises:
Create Date: 2026-10-18 10:12:41.218734

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f8a1c2d9b70'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. user_profiles
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(length=512), nullable=True),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('stripe_customer_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # 2. wishes
    op.create_table(
        'wishes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('wish_text', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_visible', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('milestones', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='[]'),
        sa.Column('support_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_wishes_progress_range')
    )
    op.create_index('ix_wishes_user_id', 'wishes', ['user_id'])
    op.create_index('ix_wishes_category', 'wishes', ['category'])
    op.create_index('ix_wishes_is_private', 'wishes', ['is_private'])
    op.create_index('ix_wishes_created_at', 'wishes', ['created_at'])

    # 3. wish_supports
    op.create_table(
        'wish_supports',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('wish_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'wish_id', name='uq_wish_support_user_wish')
    )
    op.create_index('ix_wish_supports_wish_id', 'wish_supports', ['wish_id'])

    # 4. wish_reports
    op.create_table(
        'wish_reports',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wish_id', sa.String(length=36), nullable=False),
        sa.Column('reporter_id', sa.String(length=36), nullable=False),
        sa.Column('reason', sa.String(length=64), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_wish_reports_wish_id', 'wish_reports', ['wish_id'])

    # 5. wish_amplifications
    op.create_table(
        'wish_amplifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wish_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('objective', sa.String(length=16), nullable=False),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('amplified_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_wish_amplifications_wish_id', 'wish_amplifications', ['wish_id'])
    op.create_index('ix_wish_amplifications_user_id', 'wish_amplifications', ['user_id'])
    op.create_index('ix_wish_amplifications_expires_at', 'wish_amplifications', ['expires_at'])
    op.create_index('ix_amplification_user_time', 'wish_amplifications', ['user_id', 'amplified_at'])

    # 6. conversations
    op.create_table(
        'conversations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wish_id', sa.String(length=36), nullable=False),
        sa.Column('participant1_id', sa.String(length=36), nullable=False),
        sa.Column('participant2_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('wish_id', 'participant1_id', 'participant2_id', name='uq_conversation_wish_pair'),
        sa.CheckConstraint('participant1_id < participant2_id', name='ck_conversation_sorted_pair')
    )
    op.create_index('ix_conversations_wish_id', 'conversations', ['wish_id'])

    # 7. wish_messages
    op.create_table(
        'wish_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wish_id', sa.String(length=36), nullable=False),
        sa.Column('conversation_id', sa.String(length=36), nullable=False),
        sa.Column('sender_id', sa.String(length=36), nullable=False),
        sa.Column('recipient_id', sa.String(length=36), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_wish_messages_wish_id', 'wish_messages', ['wish_id'])
    op.create_index('ix_wish_messages_conversation_id', 'wish_messages', ['conversation_id'])
    op.create_index('ix_wish_message_sender', 'wish_messages', ['wish_id', 'sender_id'])
    op.create_index('ix_wish_message_conversation_time', 'wish_messages', ['conversation_id', 'created_at'])

    # 8. message_pauses
    op.create_table(
        'message_pauses',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wish_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('wish_id', name='uq_message_pauses_wish_id')
    )

    # 9. subscription_plans
    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('tier', sa.String(length=16), nullable=False),
        sa.Column('features', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('stripe_price_id', sa.String(length=64), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_subscription_plans_name')
    )

    # 10. user_subscriptions
    op.create_table(
        'user_subscriptions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('plan_id', sa.String(length=36), nullable=False),
        sa.Column('stripe_subscription_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('current_period_start', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_subscription_id', name='uq_user_subscriptions_stripe_id')
    )
    op.create_index('ix_user_subscriptions_user_id', 'user_subscriptions', ['user_id'])

    # 11. subscription_events
    op.create_table(
        'subscription_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_subscription_id', sa.String(length=36), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('event_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_subscription_events_user_subscription_id', 'subscription_events', ['user_subscription_id'])

    # 12. user_stats
    op.create_table(
        'user_stats',
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('login_streak', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_login', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('user_id')
    )

    # Default free plan
    op.execute(
        "INSERT INTO subscription_plans (id, name, tier, features, price_cents) VALUES "
        "('00000000-0000-0000-0000-000000000001', 'Free Tier', 'free', "
        "'{\"amplifications_per_month\": 1, \"messages_per_wish\": 20}', 0)"
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('user_stats')
    op.drop_index('ix_subscription_events_user_subscription_id', table_name='subscription_events')
    op.drop_table('subscription_events')
    op.drop_index('ix_user_subscriptions_user_id', table_name='user_subscriptions')
    op.drop_table('user_subscriptions')
    op.drop_table('subscription_plans')
    op.drop_table('message_pauses')
    op.drop_index('ix_wish_message_conversation_time', table_name='wish_messages')
    op.drop_index('ix_wish_message_sender', table_name='wish_messages')
    op.drop_index('ix_wish_messages_conversation_id', table_name='wish_messages')
    op.drop_index('ix_wish_messages_wish_id', table_name='wish_messages')
    op.drop_table('wish_messages')
    op.drop_index('ix_conversations_wish_id', table_name='conversations')
    op.drop_table('conversations')
    op.drop_index('ix_amplification_user_time', table_name='wish_amplifications')
    op.drop_index('ix_wish_amplifications_expires_at', table_name='wish_amplifications')
    op.drop_index('ix_wish_amplifications_user_id', table_name='wish_amplifications')
    op.drop_index('ix_wish_amplifications_wish_id', table_name='wish_amplifications')
    op.drop_table('wish_amplifications')
    op.drop_index('ix_wish_reports_wish_id', table_name='wish_reports')
    op.drop_table('wish_reports')
    op.drop_index('ix_wish_supports_wish_id', table_name='wish_supports')
    op.drop_table('wish_supports')
    op.drop_index('ix_wishes_created_at', table_name='wishes')
    op.drop_index('ix_wishes_is_private', table_name='wishes')
    op.drop_index('ix_wishes_category', table_name='wishes')
    op.drop_index('ix_wishes_user_id', table_name='wishes')
    op.drop_table('wishes')
    op.drop_table('user_profiles')
