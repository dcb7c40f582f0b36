"""Initial schema: recipes, imports, meal plan weeks and smart lists

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'recipes',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('source_url', sa.String(), nullable=True),
        sa.Column('source_name', sa.String(), nullable=True),
        sa.Column('prep_time_minutes', sa.Integer(), nullable=True),
        sa.Column('cook_time_minutes', sa.Integer(), nullable=True),
        sa.Column('total_time_minutes', sa.Integer(), nullable=True),
        sa.Column('servings', sa.String(), nullable=True),
        sa.Column('yields', sa.String(), nullable=True),
        sa.Column('directions', sa.Text(), nullable=True),
        sa.Column('is_draft', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recipes_id', 'recipes', ['id'])
    op.create_index('ix_recipes_workspace_id', 'recipes', ['workspace_id'])

    op.create_table(
        'ingredient_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recipe_id', sa.String(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('recipe_id', 'position', name='uq_ingredient_line_position'),
    )
    op.create_index('ix_ingredient_lines_recipe_id', 'ingredient_lines', ['recipe_id'])

    op.create_table(
        'recipe_imports',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), nullable=False),
        sa.Column('source_url', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('recipe_id', sa.String(), nullable=True),
        sa.Column('raw_payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recipe_imports_id', 'recipe_imports', ['id'])
    op.create_index('ix_recipe_imports_workspace_id', 'recipe_imports', ['workspace_id'])

    op.create_table(
        'plan_weeks',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'week_start', name='uq_plan_week_start'),
    )
    op.create_index('ix_plan_weeks_id', 'plan_weeks', ['id'])
    op.create_index('ix_plan_weeks_workspace_id', 'plan_weeks', ['workspace_id'])

    op.create_table(
        'meal_plan_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('week_id', sa.String(), nullable=False),
        sa.Column('recipe_id', sa.String(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['week_id'], ['plan_weeks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meal_plan_items_week_id', 'meal_plan_items', ['week_id'])
    op.create_index('ix_meal_plan_items_recipe_id', 'meal_plan_items', ['recipe_id'])

    op.create_table(
        'smart_lists',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), nullable=False),
        sa.Column('week_id', sa.String(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('model', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['week_id'], ['plan_weeks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'week_id', 'version', name='uq_smart_list_week_version'),
    )
    op.create_index('ix_smart_lists_id', 'smart_lists', ['id'])
    op.create_index('ix_smart_lists_workspace_id', 'smart_lists', ['workspace_id'])

    op.create_table(
        'smart_list_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('smart_list_id', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('display_text', sa.String(), nullable=False),
        sa.Column('quantity_value', sa.Numeric(10, 4), nullable=True),
        sa.Column('quantity_unit', sa.String(), nullable=True),
        sa.Column('is_estimated', sa.Boolean(), nullable=False),
        sa.Column('is_merged', sa.Boolean(), nullable=False),
        sa.Column('sort_key', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['smart_list_id'], ['smart_lists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_smart_list_items_smart_list_id', 'smart_list_items', ['smart_list_id'])

    op.create_table(
        'smart_list_item_sources',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('source_text', sa.Text(), nullable=False),
        sa.Column('source_recipe_id', sa.String(), nullable=True),
        sa.Column('source_count', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['item_id'], ['smart_list_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_recipe_id'], ['recipes.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_smart_list_item_sources_item_id', 'smart_list_item_sources', ['item_id'])

    op.create_table(
        'smart_list_jobs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), nullable=False),
        sa.Column('week_id', sa.String(), nullable=False),
        sa.Column('shopping_list_id', sa.String(), nullable=False),
        sa.Column('shopping_list_name', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column('smart_list_id', sa.String(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['week_id'], ['plan_weeks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['smart_list_id'], ['smart_lists.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_smart_list_jobs_id', 'smart_list_jobs', ['id'])
    op.create_index('ix_smart_list_jobs_workspace_id', 'smart_list_jobs', ['workspace_id'])
    op.create_index('ix_smart_list_jobs_workspace_updated', 'smart_list_jobs', ['workspace_id', 'updated_at'])


def downgrade() -> None:
    op.drop_table('smart_list_jobs')
    op.drop_table('smart_list_item_sources')
    op.drop_table('smart_list_items')
    op.drop_table('smart_lists')
    op.drop_table('meal_plan_items')
    op.drop_table('plan_weeks')
    op.drop_table('recipe_imports')
    op.drop_table('ingredient_lines')
    op.drop_table('recipes')
