"""world core schema

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f2a9c1d7e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('user_id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('handle', sa.String()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_login_at', sa.DateTime()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_handle', 'users', ['handle'], unique=True)

    op.create_table(
        'character',
        sa.Column('character_id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.user_id'), nullable=False),
        sa.Column('name', sa.String(length=40), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('experience', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('gold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_health', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('max_health', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('base_attack', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('base_defense', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('world_x', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('world_y', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('home_x', sa.Integer()),
        sa.Column('home_y', sa.Integer()),
        sa.Column('travel_target_x', sa.Integer()),
        sa.Column('travel_target_y', sa.Integer()),
        sa.Column('travel_start_time', sa.DateTime()),
        sa.Column('travel_end_time', sa.DateTime()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('current_health >= 0', name='ck_character_health'),
        sa.CheckConstraint('gold >= 0', name='ck_character_gold'),
    )
    op.create_index('ix_character_user_id', 'character', ['user_id'])
    op.create_index('ix_character_name', 'character', ['name'])
    op.create_index('ix_character_travel_end_time', 'character', ['travel_end_time'])

    op.create_table(
        'items',
        sa.Column('item_id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=128)),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='material'),
        sa.Column('rarity', sa.String(length=16), nullable=False, server_default='common'),
        sa.Column('description', sa.Text()),
    )
    op.create_index('ix_items_name', 'items', ['name'], unique=True)

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('character_id', sa.String(), sa.ForeignKey('character.character_id'), nullable=False),
        sa.Column('item_id', sa.String(length=64), sa.ForeignKey('items.item_id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.UniqueConstraint('character_id', 'item_id', name='uq_inventory_character_item'),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_quantity'),
    )
    op.create_index('ix_inventory_items_character_id', 'inventory_items', ['character_id'])
    op.create_index('ix_inventory_items_item_id', 'inventory_items', ['item_id'])

    op.create_table(
        'world_npcs',
        sa.Column('npc_id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('entity_type', sa.String(length=16), nullable=False, server_default='monster'),
        sa.Column('world_x', sa.Integer(), nullable=False),
        sa.Column('world_y', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('current_health', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('max_health', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('attack', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('defense', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_boss', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('respawn_minutes', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('last_killed_at', sa.DateTime()),
        sa.Column('loot_table', sa.String(length=64)),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('current_health >= 0', name='ck_world_npc_health'),
    )
    op.create_index('ix_world_npcs_loot_table', 'world_npcs', ['loot_table'])

    op.create_table(
        'monster_loot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('loot_table', sa.String(length=64), nullable=False),
        sa.Column('item_id', sa.String(length=64), sa.ForeignKey('items.item_id')),
        sa.Column('drop_chance', sa.Float(), nullable=False, server_default='0'),
        sa.Column('min_quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('max_quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('gold_min', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('gold_max', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_monster_loot_loot_table', 'monster_loot', ['loot_table'])

    op.create_table(
        'shop_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('npc_id', sa.String(length=64), sa.ForeignKey('world_npcs.npc_id'), nullable=False),
        sa.Column('item_id', sa.String(length=64), sa.ForeignKey('items.item_id'), nullable=False),
        sa.Column('buy_price', sa.Integer()),
        sa.Column('sell_price', sa.Integer()),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='-1'),
        sa.UniqueConstraint('npc_id', 'item_id', name='uq_shop_npc_item'),
    )
    op.create_index('ix_shop_items_npc_id', 'shop_items', ['npc_id'])

    op.create_table(
        'combat_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('attacker_character_id', sa.String(), sa.ForeignKey('character.character_id'), nullable=False),
        sa.Column('world_npc_id', sa.String(length=64), sa.ForeignKey('world_npcs.npc_id')),
        sa.Column('defender_character_id', sa.String(), sa.ForeignKey('character.character_id')),
        sa.Column('winner', sa.String(length=16), nullable=False),
        sa.Column('rounds', sa.Integer(), nullable=False),
        sa.Column('damage_dealt', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('damage_taken', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('gold_gained', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('experience_gained', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('seed', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_combat_log_attacker_character_id', 'combat_log', ['attacker_character_id'])
    op.create_index('ix_combat_log_created_at', 'combat_log', ['created_at'])


def downgrade():
    op.drop_index('ix_combat_log_created_at', table_name='combat_log')
    op.drop_index('ix_combat_log_attacker_character_id', table_name='combat_log')
    op.drop_table('combat_log')
    op.drop_index('ix_shop_items_npc_id', table_name='shop_items')
    op.drop_table('shop_items')
    op.drop_index('ix_monster_loot_loot_table', table_name='monster_loot')
    op.drop_table('monster_loot')
    op.drop_index('ix_world_npcs_loot_table', table_name='world_npcs')
    op.drop_table('world_npcs')
    op.drop_index('ix_inventory_items_item_id', table_name='inventory_items')
    op.drop_index('ix_inventory_items_character_id', table_name='inventory_items')
    op.drop_table('inventory_items')
    op.drop_index('ix_items_name', table_name='items')
    op.drop_table('items')
    op.drop_index('ix_character_travel_end_time', table_name='character')
    op.drop_index('ix_character_name', table_name='character')
    op.drop_index('ix_character_user_id', table_name='character')
    op.drop_table('character')
    op.drop_index('ix_users_handle', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
