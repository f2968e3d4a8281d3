"""Create leads, interactions and tasks tables

Revision ID: 001_create_lead_tables
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_create_lead_tables'
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    'persona': ('HOMEOWNER', 'ARCHITECT', 'CONTRACTOR', 'DEALER', 'UNKNOWN'),
    'intent': (
        'PRICE_INQUIRY', 'SAMPLE_REQUEST', 'TECHNICAL_SPECS', 'DESIGN_HELP',
        'INSTALLATION_QUERY', 'DEALER_LOCATOR', 'COMPLAINT', 'GENERAL_INQUIRY',
    ),
    'leadstatus': ('NEW', 'CONTACTED', 'QUALIFIED', 'NURTURING', 'HOT', 'CONVERTED', 'LOST', 'SPAM'),
    'priority': ('LOW', 'MEDIUM', 'HIGH', 'URGENT'),
    'interactiontype': ('INITIAL_RESPONSE', 'TECHNICAL_INFO', 'FOLLOW_UP', 'NURTURE'),
    'channel': ('WHATSAPP', 'EMAIL'),
    'direction': ('INBOUND', 'OUTBOUND'),
    'interactionstatus': ('SENT', 'DELIVERED', 'FAILED'),
    'tasktype': (
        'CALL_LEAD', 'SEND_QUOTE', 'SCHEDULE_MEETING', 'SEND_SAMPLES',
        'FOLLOW_UP', 'APPROVE_DISCOUNT', 'REVIEW_LEAD',
    ),
    'taskstatus': ('PENDING', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED'),
}


def _enum(name):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade():
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(op.get_bind(), checkfirst=True)

    op.create_table(
        'leads',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('inquiry', sa.Text(), nullable=False),
        sa.Column('material_type', sa.String(length=255), nullable=True),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('persona', _enum('persona'), nullable=True),
        sa.Column('intent', _enum('intent'), nullable=True),
        sa.Column('lead_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('classification_reasoning', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('project_size', sa.String(length=255), nullable=True),
        sa.Column('budget', sa.String(length=255), nullable=True),
        sa.Column('urgency', sa.String(length=20), nullable=True),
        sa.Column('status', _enum('leadstatus'), nullable=False, server_default='NEW'),
        sa.Column('priority', _enum('priority'), nullable=False, server_default='LOW'),
        sa.Column('nurture_stage', sa.Integer(), nullable=True),
        sa.Column('assigned_to', sa.String(length=255), nullable=True),
        sa.Column('whatsapp_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('engagement_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('last_contacted_at', sa.DateTime(), nullable=True),
        sa.Column('linkedin_url', sa.String(length=500), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('years_experience', sa.Integer(), nullable=True),
        sa.Column('crm_id', sa.String(length=255), nullable=True),
        sa.Column('crm_synced_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    for column in ('email', 'phone', 'persona', 'intent', 'status', 'priority', 'created_at'):
        op.create_index(op.f(f'ix_leads_{column}'), 'leads', [column], unique=False)

    op.create_table(
        'interactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('lead_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', _enum('interactiontype'), nullable=False),
        sa.Column('channel', _enum('channel'), nullable=False),
        sa.Column('direction', _enum('direction'), nullable=False),
        sa.Column('subject', sa.String(length=500), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', _enum('interactionstatus'), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_interactions_lead_id'), 'interactions', ['lead_id'], unique=False)
    op.create_index(op.f('ix_interactions_channel'), 'interactions', ['channel'], unique=False)

    op.create_table(
        'tasks',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('lead_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', _enum('tasktype'), nullable=False),
        sa.Column('priority', _enum('priority'), nullable=False, server_default='MEDIUM'),
        sa.Column('status', _enum('taskstatus'), nullable=False, server_default='PENDING'),
        sa.Column('assigned_to', sa.String(length=255), nullable=True),
        sa.Column('due_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tasks_lead_id'), 'tasks', ['lead_id'], unique=False)
    op.create_index(op.f('ix_tasks_status'), 'tasks', ['status'], unique=False)
    op.create_index(op.f('ix_tasks_assigned_to'), 'tasks', ['assigned_to'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_tasks_assigned_to'), table_name='tasks')
    op.drop_index(op.f('ix_tasks_status'), table_name='tasks')
    op.drop_index(op.f('ix_tasks_lead_id'), table_name='tasks')
    op.drop_table('tasks')

    op.drop_index(op.f('ix_interactions_channel'), table_name='interactions')
    op.drop_index(op.f('ix_interactions_lead_id'), table_name='interactions')
    op.drop_table('interactions')

    for column in ('email', 'phone', 'persona', 'intent', 'status', 'priority', 'created_at'):
        op.drop_index(op.f(f'ix_leads_{column}'), table_name='leads')
    op.drop_table('leads')

    # Drop enums
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).drop(op.get_bind(), checkfirst=True)
