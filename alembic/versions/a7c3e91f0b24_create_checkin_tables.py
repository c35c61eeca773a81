"""create_checkin_tables

Revision ID: a7c3e91f0b24
Revises:
Create Date: 2025-11-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7c3e91f0b24'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Directory tables mirror the club system; this service only reads them
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('club_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
    )
    op.create_index('ix_events_club_id', 'events', ['club_id'])

    op.create_table(
        'club_memberships',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('club_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.UniqueConstraint('user_id', 'club_id', name='uq_membership_user_club'),
    )
    op.create_index('idx_memberships_club', 'club_memberships', ['club_id'])

    op.create_table(
        'check_in_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('passcode', sa.String(length=6), nullable=False),
        sa.Column('qr_token', sa.String(length=200), nullable=False, unique=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('regenerate_on_checkin', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('idx_sessions_event_active', 'check_in_sessions', ['event_id', 'is_active'])
    op.create_index('idx_sessions_passcode_active', 'check_in_sessions', ['passcode', 'is_active'])

    # UNIQUE(event_id, user_id) is what makes a check-in at-most-once
    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column(
            'session_id', sa.Integer(),
            sa.ForeignKey('check_in_sessions.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_checkin_event_user'),
    )
    op.create_index('idx_checkins_event_time', 'check_ins', ['event_id', 'check_in_time'])


def downgrade():
    op.drop_index('idx_checkins_event_time', table_name='check_ins')
    op.drop_table('check_ins')
    op.drop_index('idx_sessions_passcode_active', table_name='check_in_sessions')
    op.drop_index('idx_sessions_event_active', table_name='check_in_sessions')
    op.drop_table('check_in_sessions')
    op.drop_index('idx_memberships_club', table_name='club_memberships')
    op.drop_table('club_memberships')
    op.drop_index('ix_events_club_id', table_name='events')
    op.drop_table('events')
