from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("nickname", sa.String(), nullable=False),
        sa.Column("avatar_data", sa.LargeBinary(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "tournament",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False, unique=True),
        sa.Column("state", sa.String(), nullable=False, server_default="draft"),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint(
            "state IN ('draft', 'active', 'closed')", name="ck_tournament_state"
        ),
    )
    op.create_table(
        "game",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "tournament_id",
            sa.String(),
            sa.ForeignKey("tournament.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("photo_data", sa.LargeBinary(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_game_tournament_id", "game", ["tournament_id"])
    op.create_index("ix_game_created_at", "game", ["created_at"])
    op.create_table(
        "score_event",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "game_id",
            sa.String(),
            sa.ForeignKey("game.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "player_id", sa.String(), sa.ForeignKey("player.id"), nullable=False
        ),
        sa.Column("type", sa.String(length=1), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("type IN ('I', 'X')", name="ck_score_event_type"),
    )
    op.create_index("ix_score_event_game_id", "score_event", ["game_id"])
    op.create_index("ix_score_event_player_id", "score_event", ["player_id"])


def downgrade():
    op.drop_index("ix_score_event_player_id", table_name="score_event")
    op.drop_index("ix_score_event_game_id", table_name="score_event")
    op.drop_table("score_event")
    op.drop_index("ix_game_created_at", table_name="game")
    op.drop_index("ix_game_tournament_id", table_name="game")
    op.drop_table("game")
    op.drop_table("tournament")
    op.drop_table("player")
