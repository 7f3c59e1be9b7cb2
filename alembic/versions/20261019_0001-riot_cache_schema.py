"""Riot cache schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the cache tables."""
    op.create_table(
        'riot_accounts',
        sa.Column('game_name', sa.String(), nullable=False),
        sa.Column('tag_line', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=False),
        sa.Column('puuid', sa.String(), nullable=False),
        sa.Column('json', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('game_name', 'tag_line', 'region')
    )
    op.create_index('ix_riot_accounts_puuid', 'riot_accounts', ['puuid'])

    op.create_table(
        'summoners',
        sa.Column('puuid', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=False),
        sa.Column('summoner_id', sa.String(), nullable=True),
        sa.Column('json', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('puuid', 'region')
    )

    op.create_table(
        'match_id_lists',
        sa.Column('puuid', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=False),
        sa.Column('match_ids', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('puuid', 'region')
    )
    op.create_index('ix_match_id_lists_created_at', 'match_id_lists', ['created_at'])

    op.create_table(
        'matches',
        sa.Column('match_id', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=False),
        sa.Column('json', sa.JSON(), nullable=False),
        sa.Column('game_datetime', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('match_id')
    )
    op.create_index('ix_matches_game_datetime', 'matches', ['game_datetime'])

    op.create_table(
        'league_entries',
        sa.Column('summoner_id', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=False),
        sa.Column('json', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('summoner_id', 'region')
    )


def downgrade() -> None:
    """Drop the cache tables."""
    op.drop_table('league_entries')
    op.drop_index('ix_matches_game_datetime', 'matches')
    op.drop_table('matches')
    op.drop_index('ix_match_id_lists_created_at', 'match_id_lists')
    op.drop_table('match_id_lists')
    op.drop_table('summoners')
    op.drop_index('ix_riot_accounts_puuid', 'riot_accounts')
    op.drop_table('riot_accounts')
