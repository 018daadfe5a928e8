from typing import Optional

import psycopg
from psycopg.rows import dict_row

from patrons_cup.models import Hole, Match, MatchStatus, Team, empty_holes
from patrons_cup.rows import hole_from_row, hole_to_row, match_from_row, match_to_row, team_from_row

SCHEMA_STATEMENTS = [
    """
    create table if not exists tournaments (
        id serial primary key,
        name text not null unique,
        start_date date,
        format text not null default 'match_play',
        created_at timestamptz not null default now()
    );
    """,
    """
    create table if not exists teams (
        id serial primary key,
        tournament_id integer references tournaments(id) on delete cascade,
        name text not null,
        division text not null,
        seed integer not null default 0,
        unique (tournament_id, name)
    );
    """,
    """
    create table if not exists matches (
        id serial primary key,
        tournament_id integer references tournaments(id) on delete cascade,
        game_number integer,
        division text not null,
        match_date date,
        tee_time text,
        session text,
        match_type text,
        team_a_id integer references teams(id),
        team_b_id integer references teams(id),
        team_c_id integer references teams(id),
        status text not null default 'scheduled',
        updated_at timestamptz not null default now()
    );
    """,
    """
    create table if not exists holes (
        id serial primary key,
        match_id integer not null references matches(id) on delete cascade,
        hole_number integer not null check (hole_number between 1 and 18),
        par integer not null default 4,
        stroke_index integer,
        team_a_score integer,
        team_b_score integer,
        team_c_score integer,
        updated_at timestamptz not null default now(),
        unique (match_id, hole_number)
    );
    """,
]

MATCH_COLUMNS = """
    id,
    game_number,
    division,
    match_date,
    tee_time,
    session,
    match_type,
    team_a_id,
    team_b_id,
    team_c_id,
    status
"""

HOLE_COLUMNS = """
    match_id,
    hole_number,
    par,
    stroke_index,
    team_a_score,
    team_b_score,
    team_c_score
"""


def ensure_schema(database_url: str) -> None:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)


def _where(clauses: list[str]) -> str:
    return f"where {' and '.join(clauses)}" if clauses else ""


def fetch_teams(
    database_url: str,
    division: Optional[str] = None,
    tournament_id: Optional[int] = None,
) -> list[Team]:
    clauses = []
    params: list = []
    if division:
        clauses.append("division = %s")
        params.append(division)
    if tournament_id is not None:
        clauses.append("tournament_id = %s")
        params.append(tournament_id)
    with psycopg.connect(database_url, row_factory=dict_row) as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"select id, name, division, seed from teams {_where(clauses)} order by division, seed, name;",
                tuple(params),
            )
            return [team_from_row(row) for row in cur.fetchall()]


def _attach_holes(cur: psycopg.Cursor, match_rows: list[dict]) -> list[Match]:
    if not match_rows:
        return []
    ids = [row["id"] for row in match_rows]
    cur.execute(
        f"""
        select {HOLE_COLUMNS}
        from holes
        where match_id = any(%s)
        order by match_id, hole_number;
        """,
        (ids,),
    )
    holes_by_match: dict[int, list[dict]] = {match_id: [] for match_id in ids}
    for row in cur.fetchall():
        holes_by_match[row["match_id"]].append(row)
    return [match_from_row(row, holes_by_match[row["id"]]) for row in match_rows]


def fetch_matches(
    database_url: str,
    status: Optional[MatchStatus] = None,
    division: Optional[str] = None,
    tournament_id: Optional[int] = None,
) -> list[Match]:
    clauses = []
    params: list = []
    if status is not None:
        clauses.append("status = %s")
        params.append(status.value)
    if division:
        clauses.append("division = %s")
        params.append(division)
    if tournament_id is not None:
        clauses.append("tournament_id = %s")
        params.append(tournament_id)
    with psycopg.connect(database_url, row_factory=dict_row) as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"""
                select {MATCH_COLUMNS}
                from matches
                {_where(clauses)}
                order by match_date, session, game_number, id;
                """,
                tuple(params),
            )
            return _attach_holes(cur, cur.fetchall())


def fetch_match(database_url: str, match_id: int) -> Optional[Match]:
    with psycopg.connect(database_url, row_factory=dict_row) as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"select {MATCH_COLUMNS} from matches where id = %s;",
                (match_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return _attach_holes(cur, [row])[0]


def upsert_hole_score(
    database_url: str,
    match_id: int,
    hole_number: int,
    team_a_score: Optional[int],
    team_b_score: Optional[int],
    team_c_score: Optional[int] = None,
) -> Optional[Hole]:
    """
    Write one hole's scores. A side passed as ``None`` keeps whatever is stored,
    so each team's scorer can post independently. Par and stroke index are kept.
    """
    with psycopg.connect(database_url, row_factory=dict_row) as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"""
                insert into holes (match_id, hole_number, team_a_score, team_b_score, team_c_score)
                values (%s, %s, %s, %s, %s)
                on conflict (match_id, hole_number) do update
                    set team_a_score = coalesce(excluded.team_a_score, holes.team_a_score),
                        team_b_score = coalesce(excluded.team_b_score, holes.team_b_score),
                        team_c_score = coalesce(excluded.team_c_score, holes.team_c_score),
                        updated_at = now()
                returning {HOLE_COLUMNS};
                """,
                (match_id, hole_number, team_a_score, team_b_score, team_c_score),
            )
            row = cur.fetchone()
            return hole_from_row(row) if row else None


def update_match_status(database_url: str, match_id: int, status: MatchStatus) -> int:
    return update_match_statuses(database_url, [match_id], status)


def update_match_statuses(database_url: str, match_ids: list[int], status: MatchStatus) -> int:
    if not match_ids:
        return 0
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                update matches
                set status = %s,
                    updated_at = now()
                where id = any(%s);
                """,
                (status.value, list(match_ids)),
            )
            return cur.rowcount


def reset_match_scores(database_url: str, match_id: int) -> int:
    """Clear every hole score for the match and put it back to scheduled. Returns holes cleared."""
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                update holes
                set team_a_score = null,
                    team_b_score = null,
                    team_c_score = null,
                    updated_at = now()
                where match_id = %s;
                """,
                (match_id,),
            )
            cleared = cur.rowcount
            cur.execute(
                """
                update matches
                set status = %s,
                    updated_at = now()
                where id = %s;
                """,
                (MatchStatus.SCHEDULED.value, match_id),
            )
            return cleared


def upsert_tournament(database_url: str, name: str, start_date=None, scoring_format: str = "match_play") -> int:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into tournaments (name, start_date, format)
                values (%s, %s, %s)
                on conflict (name) do update
                    set start_date = excluded.start_date,
                        format = excluded.format
                returning id;
                """,
                (name, start_date, scoring_format),
            )
            row = cur.fetchone()
            return row[0] if row else 0


def upsert_team(database_url: str, team: Team, tournament_id: Optional[int] = None) -> int:
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into teams (tournament_id, name, division, seed)
                values (%s, %s, %s, %s)
                on conflict (tournament_id, name) do update
                    set division = excluded.division,
                        seed = excluded.seed
                returning id;
                """,
                (
                    tournament_id,
                    team.name,
                    team.division.value if team.division else None,
                    team.seed,
                ),
            )
            row = cur.fetchone()
            return row[0] if row else 0


def insert_match(database_url: str, match: Match, tournament_id: Optional[int] = None) -> int:
    """Create a match with its full card. Missing holes are filled in as unplayed par 4s."""
    row = match_to_row(match)
    holes = {hole.number: hole for hole in empty_holes()}
    holes.update({hole.number: hole for hole in match.holes if 1 <= hole.number <= 18})
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                insert into matches (
                    tournament_id,
                    game_number,
                    division,
                    match_date,
                    tee_time,
                    session,
                    match_type,
                    team_a_id,
                    team_b_id,
                    team_c_id,
                    status
                )
                values (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                returning id;
                """,
                (
                    tournament_id,
                    row["game_number"],
                    row["division"],
                    row["match_date"],
                    row["tee_time"],
                    row["session"],
                    row["match_type"],
                    row["team_a_id"],
                    row["team_b_id"],
                    row["team_c_id"],
                    row["status"],
                ),
            )
            match_id = cur.fetchone()[0]
            for number in sorted(holes):
                hole_row = hole_to_row(match_id, holes[number])
                cur.execute(
                    """
                    insert into holes (
                        match_id,
                        hole_number,
                        par,
                        stroke_index,
                        team_a_score,
                        team_b_score,
                        team_c_score
                    )
                    values (%s, %s, %s, %s, %s, %s, %s);
                    """,
                    (
                        hole_row["match_id"],
                        hole_row["hole_number"],
                        hole_row["par"],
                        hole_row["stroke_index"],
                        hole_row["team_a_score"],
                        hole_row["team_b_score"],
                        hole_row["team_c_score"],
                    ),
                )
            return match_id
