import logging

from django.db import transaction
from django.db.models import Q

from ..exceptions import ConflictError, ValidationError
from ..models import Tournament, Team, Group, Match
from ..permissions import ensure_can_manage
from .common import get_or_not_found

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = [Match.STATUS_SCHEDULED, Match.STATUS_IN_PROGRESS]


def create_match(tournament_id, home_team_id, away_team_id, date, time, venue,
                 group_id=None, actor=None) -> Match:
    """Schedule a single match by hand"""
    ensure_can_manage(actor)
    if home_team_id == away_team_id:
        raise ValidationError("A team cannot play against itself")

    if Team.objects.filter(pk__in=[home_team_id, away_team_id]).count() != 2:
        raise ValidationError("One or more teams do not exist")

    tournament = Tournament.objects.filter(pk=tournament_id).first()
    if not tournament:
        raise ValidationError("Tournament does not exist")

    group = None
    if group_id:
        group = Group.objects.filter(pk=group_id, tournament=tournament).first()
        if not group:
            raise ValidationError("Group does not exist in this tournament")

    with transaction.atomic():
        if group:
            duplicate = Match.objects.select_for_update().filter(
                Q(home_team_id=home_team_id, away_team_id=away_team_id) |
                Q(home_team_id=away_team_id, away_team_id=home_team_id),
                group=group
            )
            if duplicate.exists():
                raise ConflictError("These teams already have a fixture in this group")

        match = Match.objects.create(
            tournament=tournament,
            group=group,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            date=date,
            time=time,
            venue=venue,
            stage=Match.STAGE_GROUP,
            status=Match.STATUS_SCHEDULED
        )

    logger.info(f"Created match {match.id} in tournament {tournament.id}")
    return match


def list_matches(tournament_id=None, group_id=None, status=None, date=None):
    matches = Match.objects.select_related(
        'home_team', 'away_team', 'group', 'tournament'
    )
    if tournament_id:
        matches = matches.filter(tournament_id=tournament_id)
    if group_id:
        matches = matches.filter(group_id=group_id)
    if status:
        matches = matches.filter(status=status)
    if date:
        matches = matches.filter(date=date)
    return matches.order_by('date', 'time', 'id')


def update_match(match_id, actor=None, date=None, time=None, venue=None, status=None) -> Match:
    """Administrative edit of schedule fields; results go through scoring"""
    ensure_can_manage(actor)
    match = get_or_not_found(Match.objects.all(), match_id, "Match not found")

    if status:
        if status not in EDITABLE_STATUSES:
            raise ValidationError("Use the score update to complete a match")
        if match.is_completed:
            raise ConflictError("A completed match cannot change status")
        match.status = status
    if date:
        match.date = date
    if time:
        match.time = time
    if venue:
        match.venue = venue
    match.save()
    return match


def delete_match(match_id, actor=None):
    ensure_can_manage(actor)
    match = get_or_not_found(Match.objects.all(), match_id, "Match not found")
    if match.is_completed:
        raise ValidationError("Cannot delete a completed match")
    match.delete()
    logger.info(f"Deleted match {match_id}")
