"""Match results and the statistics derived from them.

Team and group aggregates are incremented with ``F()`` expressions inside
one transaction, so a result is either fully recorded or not at all.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Team, GroupTeam, Match
from ..permissions import ensure_can_manage
from ..standings import POINTS_FOR_WIN, POINTS_FOR_DRAW
from .common import get_or_not_found
from .knockout import KnockoutService
from .notification import notify_match_completed

logger = logging.getLogger(__name__)

SCORE_STATUSES = [Match.STATUS_IN_PROGRESS, Match.STATUS_COMPLETED]


def _outcome(goals_for, goals_against):
    """Counter to bump and points earned, from one team's perspective"""
    if goals_for > goals_against:
        return 'wins', POINTS_FOR_WIN
    elif goals_for == goals_against:
        return 'draws', POINTS_FOR_DRAW
    return 'losses', 0


def _validate_score(value, label):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer")
    if not 0 <= value <= settings.MATCHDAY_MAX_SCORE:
        raise ValidationError(
            f"{label} must be between 0 and {settings.MATCHDAY_MAX_SCORE}"
        )


def _set_score(match, home_score, away_score, home_penalties, away_penalties, status):
    _validate_score(home_score, "Home score")
    _validate_score(away_score, "Away score")

    has_penalties = home_penalties is not None or away_penalties is not None
    if has_penalties:
        if not match.is_knockout:
            raise ValidationError("Penalties only apply to knockout matches")
        if home_score != away_score:
            raise ValidationError("Penalties are only taken after a level score")
        if home_penalties is None or away_penalties is None:
            raise ValidationError("Both penalty scores are required")
        _validate_score(home_penalties, "Home penalties")
        _validate_score(away_penalties, "Away penalties")
        if home_penalties == away_penalties:
            raise ValidationError("A penalty shoot-out cannot end level")

    if (match.is_knockout and status == Match.STATUS_COMPLETED and
            home_score == away_score and not has_penalties):
        raise ValidationError("A knockout match needs a winner, add the penalty scores")

    match.home_score = home_score
    match.away_score = away_score
    match.home_penalties = home_penalties
    match.away_penalties = away_penalties
    match.status = status


def _apply_team_stats(team_id, goals_for, goals_against, sign):
    outcome, _ = _outcome(goals_for, goals_against)
    Team.objects.filter(pk=team_id).update(**{
        'matches_played': F('matches_played') + sign,
        'goals_scored': F('goals_scored') + sign * goals_for,
        outcome: F(outcome) + sign,
    })


def _apply_group_stats(group_team_id, goals_for, goals_against, sign):
    outcome, points = _outcome(goals_for, goals_against)
    GroupTeam.objects.filter(pk=group_team_id).update(**{
        'played': F('played') + sign,
        'goals_for': F('goals_for') + sign * goals_for,
        'goals_against': F('goals_against') + sign * goals_against,
        'points': F('points') + sign * points,
        outcome: F(outcome) + sign,
    })


def _record_result(match, sign=1):
    """Add (sign=1) or take back (sign=-1) a completed match's statistics"""
    home_id, away_id = match.home_team_id, match.away_team_id
    _apply_team_stats(home_id, match.home_score, match.away_score, sign)
    _apply_team_stats(away_id, match.away_score, match.home_score, sign)

    if not match.group_id:
        return

    memberships = dict(
        GroupTeam.objects.filter(
            group_id=match.group_id,
            team_id__in=[home_id, away_id]
        ).values_list('team_id', 'id')
    )
    for team_id in (home_id, away_id):
        if team_id not in memberships:
            raise NotFoundError(
                f"Team {team_id} is not a member of group {match.group_id}"
            )
    _apply_group_stats(memberships[home_id], match.home_score, match.away_score, sign)
    _apply_group_stats(memberships[away_id], match.away_score, match.home_score, sign)


def update_match_score(match_id, home_score, away_score, actor=None, status=None,
                       home_penalties=None, away_penalties=None) -> Match:
    """
    Record the result of a match.
    Writes the score, then updates team and group statistics once the match
    is completed. A completed match cannot be scored again.
    """
    ensure_can_manage(actor)
    status = status or Match.STATUS_COMPLETED
    if status not in SCORE_STATUSES:
        raise ValidationError(f"Invalid status for a score update: {status}")

    with transaction.atomic():
        match = get_or_not_found(
            Match.objects.select_for_update(),
            match_id,
            "Match not found"
        )
        if match.is_completed:
            raise ConflictError("Match is already completed, its score is final")
        if not match.home_team_id or not match.away_team_id:
            raise ValidationError("Both teams must be known before the match is scored")

        _set_score(match, home_score, away_score, home_penalties, away_penalties, status)
        match.save()

        if match.is_completed:
            _record_result(match)
            if match.is_knockout:
                KnockoutService.advance_winner(match)

    if match.is_completed:
        match.log_match_result()
        notify_match_completed(match)
    return match


def correct_match_score(match_id, home_score, away_score, actor=None,
                        home_penalties=None, away_penalties=None) -> Match:
    """Replace the result of a completed match, statistics included"""
    ensure_can_manage(actor)

    with transaction.atomic():
        match = get_or_not_found(
            Match.objects.select_for_update(),
            match_id,
            "Match not found"
        )
        if not match.is_completed:
            raise ValidationError("Only completed matches can be corrected")

        previous = f"{match.home_score}-{match.away_score}"
        if match.is_knockout:
            KnockoutService.retract_winner(match)
        _record_result(match, sign=-1)

        _set_score(match, home_score, away_score, home_penalties, away_penalties,
                   Match.STATUS_COMPLETED)
        match.save()

        _record_result(match)
        if match.is_knockout:
            KnockoutService.advance_winner(match)

    logger.warning(
        f"Score of match {match.id} corrected from {previous} "
        f"to {match.home_score}-{match.away_score}"
    )
    match.log_match_result('SCORE_CORRECTED')
    return match
