"""Command group: review gate."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from phasectl.commands._base import PhaseGroup
from phasectl.services.review import ReviewService

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext

_REVIEW_EXAMPLES = """\
  phasectl --as alice review enable TEAM-0001 WI-0001
  phasectl --as bob review request TEAM-0001 WI-0001
  phasectl --as carol review approve TEAM-0001 WI-0001
  phasectl --as carol review reject TEAM-0001 WI-0001 --reason "missing rollout plan"
  phasectl --as bob review cancel TEAM-0001 WI-0001"""


@click.group(cls=PhaseGroup, examples=_REVIEW_EXAMPLES)
@click.pass_obj
def review(app: AppContext) -> None:
    """Request and decide reviews that gate phase entry."""


@review.command(examples="  phasectl --as bob review request TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def request(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Ask for a review of the item's current phase."""
    app.emit(ReviewService(app.store).request(team_id, work_item_id, actor=app.actor))


@review.command(examples="  phasectl --as carol review approve TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def approve(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Approve a pending review (phase lead or admin)."""
    app.emit(ReviewService(app.store).approve(team_id, work_item_id, actor=app.actor))


@review.command(
    examples='  phasectl --as carol review reject TEAM-0001 WI-0001 --reason "needs tests"'
)
@click.argument("team_id")
@click.argument("work_item_id")
@click.option("--reason", default=None, help="Why the review was rejected (required).")
@click.pass_obj
def reject(app: AppContext, team_id: str, work_item_id: str, reason: str | None) -> None:
    """Reject a pending review with a reason."""
    app.emit(ReviewService(app.store).reject(team_id, work_item_id, reason, actor=app.actor))


@review.command(examples="  phasectl --as bob review cancel TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def cancel(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Withdraw a pending review request."""
    app.emit(ReviewService(app.store).cancel(team_id, work_item_id, actor=app.actor))


@review.command(examples="  phasectl --as alice review enable TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def enable(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Turn the review gate on for an item (owners and admins)."""
    app.emit(ReviewService(app.store).set_enabled(team_id, work_item_id, True, actor=app.actor))


@review.command(examples="  phasectl --as alice review disable TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def disable(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Turn the review gate off for an item (owners and admins)."""
    app.emit(ReviewService(app.store).set_enabled(team_id, work_item_id, False, actor=app.actor))
