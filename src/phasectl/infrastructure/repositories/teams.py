"""Teams, memberships, and workspaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from phasectl.infrastructure.database.schema import team_members, teams, workspaces

if TYPE_CHECKING:
    from sqlalchemy import Connection


def insert_team(conn: Connection, *, team_id: str, name: str, owner_id: str, created: str) -> None:
    conn.execute(insert(teams).values(id=team_id, name=name, owner_id=owner_id, created=created))


def load_team(conn: Connection, *, team_id: str) -> dict[str, Any] | None:
    row = conn.execute(select(teams).where(teams.c.id == team_id)).mappings().first()
    return dict(row) if row is not None else None


# --- Membership ---


def insert_member(
    conn: Connection, *, team_id: str, user_id: str, role: str, joined: str
) -> None:
    """Add *user_id* to the team. The unique constraint rejects duplicates."""
    conn.execute(
        insert(team_members).values(team_id=team_id, user_id=user_id, role=role, joined=joined)
    )


def load_membership_role(conn: Connection, *, team_id: str, user_id: str) -> str | None:
    """The member's role, or None when *user_id* is not in the team."""
    return conn.execute(
        select(team_members.c.role).where(
            team_members.c.team_id == team_id,
            team_members.c.user_id == user_id,
        )
    ).scalar_one_or_none()


def update_member_role(conn: Connection, *, team_id: str, user_id: str, role: str) -> bool:
    result = conn.execute(
        update(team_members)
        .where(team_members.c.team_id == team_id, team_members.c.user_id == user_id)
        .values(role=role)
    )
    return result.rowcount == 1


def delete_member(conn: Connection, *, team_id: str, user_id: str) -> bool:
    result = conn.execute(
        delete(team_members).where(
            team_members.c.team_id == team_id,
            team_members.c.user_id == user_id,
        )
    )
    return result.rowcount == 1


def list_members(conn: Connection, *, team_id: str) -> list[dict[str, Any]]:
    rows = conn.execute(
        select(team_members.c.team_id, team_members.c.user_id, team_members.c.role, team_members.c.joined)
        .where(team_members.c.team_id == team_id)
        .order_by(team_members.c.id)
    ).mappings()
    return [dict(row) for row in rows]


# --- Workspaces ---


def insert_workspace(
    conn: Connection, *, team_id: str, workspace_id: str, name: str, created: str
) -> None:
    conn.execute(
        insert(workspaces).values(id=workspace_id, team_id=team_id, name=name, created=created)
    )


def load_workspace(conn: Connection, *, team_id: str, workspace_id: str) -> dict[str, Any] | None:
    row = (
        conn.execute(
            select(workspaces).where(
                workspaces.c.id == workspace_id,
                workspaces.c.team_id == team_id,
            )
        )
        .mappings()
        .first()
    )
    return dict(row) if row is not None else None


def list_workspaces(conn: Connection, *, team_id: str) -> list[dict[str, Any]]:
    rows = conn.execute(
        select(workspaces).where(workspaces.c.team_id == team_id).order_by(workspaces.c.id)
    ).mappings()
    return [dict(row) for row in rows]
