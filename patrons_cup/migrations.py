import logging
from typing import Callable, Tuple

import psycopg
from psycopg.rows import dict_row

from patrons_cup.match_play import is_match_complete
from patrons_cup.models import MatchStatus
from patrons_cup.rows import match_from_row

logger = logging.getLogger(__name__)

MigrationTask = Tuple[str, str, Callable[[psycopg.Cursor], None]]


def _add_three_way_columns(cursor: psycopg.Cursor) -> None:
    cursor.execute(
        """
        alter table matches
        add column if not exists team_c_id integer references teams(id);
        """
    )
    cursor.execute(
        """
        alter table holes
        add column if not exists team_c_score integer;
        """
    )


def _add_stroke_index(cursor: psycopg.Cursor) -> None:
    cursor.execute(
        """
        alter table holes
        add column if not exists stroke_index integer;
        """
    )


def _drop_scores_table(cursor: psycopg.Cursor) -> None:
    # standings are recomputed from matches on every read
    cursor.execute("drop table if exists scores;")


def _drop_players_table(cursor: psycopg.Cursor) -> None:
    cursor.execute("drop table if exists players;")


def _backfill_completed_matches(cursor: psycopg.Cursor) -> None:
    cursor.execute(
        """
        select id, division, match_date, session, match_type,
               team_a_id, team_b_id, team_c_id, status
        from matches
        where status <> %s
        order by id;
        """,
        (MatchStatus.COMPLETED.value,),
    )
    matches = cursor.fetchall()
    completed: list[int] = []
    for row in matches:
        cursor.execute(
            """
            select hole_number, par, stroke_index, team_a_score, team_b_score, team_c_score
            from holes
            where match_id = %s
            order by hole_number;
            """,
            (row["id"],),
        )
        if is_match_complete(match_from_row(row, cursor.fetchall())):
            completed.append(row["id"])
    if completed:
        cursor.execute(
            """
            update matches
            set status = %s,
                updated_at = now()
            where id = any(%s);
            """,
            (MatchStatus.COMPLETED.value, completed),
        )
    logger.info("Marked %d decided matches as completed", len(completed))


def _scope_team_names_to_tournament(cursor: psycopg.Cursor) -> None:
    cursor.execute("alter table teams drop constraint if exists teams_name_key;")
    cursor.execute(
        """
        create unique index if not exists teams_tournament_id_name_key
        on teams (tournament_id, name);
        """
    )


def _ensure_migrations_table(cursor: psycopg.Cursor) -> None:
    cursor.execute(
        """
        create table if not exists schema_migrations (
            id text primary key,
            description text not null,
            applied_at timestamptz not null default now()
        );
        """
    )


MIGRATIONS: list[MigrationTask] = [
    (
        "20250912_three_way_columns",
        "Store a third team and its hole scores for three-way matches",
        _add_three_way_columns,
    ),
    (
        "20250912_hole_stroke_index",
        "Record stroke index per hole for Stableford rounds",
        _add_stroke_index,
    ),
    (
        "20250919_drop_scores_table",
        "Remove the denormalised scores table; standings are derived from matches",
        _drop_scores_table,
    ),
    (
        "20250919_backfill_completed_matches",
        "Complete matches whose hole scores already decide them",
        _backfill_completed_matches,
    ),
    (
        "20251003_team_names_per_tournament",
        "Allow the same team name in more than one tournament",
        _scope_team_names_to_tournament,
    ),
    (
        "20251003_drop_players_table",
        "Remove the unused players table",
        _drop_players_table,
    ),
]


def apply_migrations(database_url: str) -> list[str]:
    applied: list[str] = []
    with psycopg.connect(database_url, row_factory=dict_row) as connection:
        with connection.cursor() as cursor:
            _ensure_migrations_table(cursor)
        connection.commit()
        for migration_id, description, task in MIGRATIONS:
            with connection.cursor() as cursor:
                cursor.execute(
                    "select 1 from schema_migrations where id = %s;",
                    (migration_id,),
                )
                if cursor.fetchone():
                    continue
                logger.info("Applying migration %s: %s", migration_id, description)
                task(cursor)
                cursor.execute(
                    """
                    insert into schema_migrations (id, description)
                    values (%s, %s);
                    """,
                    (migration_id, description),
                )
            connection.commit()
            applied.append(migration_id)
    return applied


if __name__ == "__main__":
    from patrons_cup.settings import load_settings

    logging.basicConfig(level=logging.INFO)
    apply_migrations(load_settings().database_url)
