"""Groups and the teams in them.

A team is in at most one group per tournament. The ``GroupTeam`` unique
constraint backs this up at the database level; the functions here report
the violation as a ConflictError before it gets that far.
"""
from string import ascii_uppercase
import logging
import random

from django.db import IntegrityError, transaction
from django.db.models import Q

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Tournament, TournamentTeam, Team, Group, GroupTeam, Match
from ..permissions import ensure_can_manage
from ..schemas import DrawSummary
from .common import get_or_not_found
from .knockout import KnockoutService

logger = logging.getLogger(__name__)


def _validate_name(name):
    name = (name or '').strip()
    if not name:
        raise ValidationError("Group name is required")
    if len(name) > Group._meta.get_field('name').max_length:
        raise ValidationError("Group name is too long")
    return name


def _ensure_no_bracket(tournament):
    # The bracket size is fixed by the number of groups it was built for
    if KnockoutService(tournament).bracket_exists():
        raise ConflictError("Groups cannot change once the final phase matches exist")


def create_group(name, tournament_id, actor=None) -> Group:
    ensure_can_manage(actor)
    name = _validate_name(name)
    tournament = get_or_not_found(Tournament.objects.all(), tournament_id, "Tournament not found")
    _ensure_no_bracket(tournament)
    if Group.objects.filter(tournament=tournament, name=name).exists():
        raise ConflictError(f"{name} already exists in this tournament")
    return Group.objects.create(tournament=tournament, name=name)


def update_group(group_id, name, actor=None) -> Group:
    ensure_can_manage(actor)
    name = _validate_name(name)
    group = get_or_not_found(Group.objects.all(), group_id, "Group not found")
    clash = Group.objects.filter(
        tournament_id=group.tournament_id,
        name=name
    ).exclude(pk=group.pk)
    if clash.exists():
        raise ConflictError(f"{name} already exists in this tournament")
    group.name = name
    group.save()
    return group


def delete_group(group_id, actor=None):
    """Delete a group with its memberships and unplayed fixtures"""
    ensure_can_manage(actor)
    group = get_or_not_found(Group.objects.all(), group_id, "Group not found")
    _ensure_no_bracket(group.tournament)
    if group.matches.filter(status=Match.STATUS_COMPLETED).exists():
        raise ConflictError("Cannot delete a group with completed matches")
    group.delete()
    logger.info(f"Deleted group {group_id}")


def _add_membership(group, team):
    if GroupTeam.objects.filter(group=group, team=team).exists():
        raise ConflictError(f"{team.name} is already in {group.name}")
    other = GroupTeam.objects.filter(
        tournament_id=group.tournament_id,
        team=team
    ).select_related('group').first()
    if other:
        raise ConflictError(f"{team.name} is already in {other.group.name}")

    TournamentTeam.objects.get_or_create(tournament_id=group.tournament_id, team=team)
    try:
        # Savepoint so a lost race does not break the caller's transaction
        with transaction.atomic():
            return GroupTeam.objects.create(group=group, team=team)
    except IntegrityError:
        raise ConflictError(f"{team.name} already belongs to a group of this tournament")


def add_team_to_group(group_id, team_id, actor=None) -> GroupTeam:
    ensure_can_manage(actor)
    group = get_or_not_found(Group.objects.all(), group_id, "Group not found")
    team = get_or_not_found(Team.objects.all(), team_id, "Team not found")
    with transaction.atomic():
        membership = _add_membership(group, team)
    logger.info(f"Added team {team.id} to group {group.id}")
    return membership


def _drop_membership(group, team):
    """Take a team out of a group together with its unplayed group fixtures.

    A team with completed matches in the group stays, since removing it would
    rewrite the standings of the other teams.
    """
    fixtures = Match.objects.filter(
        Q(home_team=team) | Q(away_team=team),
        group=group
    )
    if fixtures.filter(status=Match.STATUS_COMPLETED).exists():
        raise ConflictError(f"{team.name} has already played in {group.name}")

    deleted, _ = GroupTeam.objects.filter(group=group, team=team).delete()
    if not deleted:
        raise NotFoundError(f"{team.name} is not in {group.name}")
    dropped, _ = fixtures.delete()
    return dropped


def remove_team_from_group(group_id, team_id, actor=None):
    ensure_can_manage(actor)
    group = get_or_not_found(Group.objects.all(), group_id, "Group not found")
    team = get_or_not_found(Team.objects.all(), team_id, "Team not found")
    with transaction.atomic():
        dropped = _drop_membership(group, team)
    logger.info(f"Removed team {team.id} from group {group.id} with {dropped} fixtures")


def move_team_to_group(team_id, from_group_id, to_group_id, actor=None) -> GroupTeam:
    """Remove a team from one group and add it to another, as one unit"""
    ensure_can_manage(actor)
    if str(from_group_id) == str(to_group_id):
        raise ValidationError("Source and target group are the same")
    source = get_or_not_found(Group.objects.all(), from_group_id, "Source group not found")
    target = get_or_not_found(Group.objects.all(), to_group_id, "Target group not found")
    team = get_or_not_found(Team.objects.all(), team_id, "Team not found")
    if source.tournament_id != target.tournament_id:
        raise ValidationError("Teams can only move between groups of the same tournament")

    with transaction.atomic():
        _drop_membership(source, team)
        membership = _add_membership(target, team)

    source.tournament.log_state_change(
        'TEAM_MOVED',
        f"{team.name} moved from {source.name} to {target.name}"
    )
    return membership


def perform_draw(tournament_id, actor=None, number_of_groups=None, seed=None) -> DrawSummary:
    """Create the groups of a tournament and deal its teams into them at random"""
    ensure_can_manage(actor)
    tournament = get_or_not_found(Tournament.objects.all(), tournament_id, "Tournament not found")
    if tournament.draw_completed:
        raise ConflictError("The draw has already been made for this tournament")
    _ensure_no_bracket(tournament)

    number_of_groups = number_of_groups or tournament.number_of_groups
    if not 1 <= number_of_groups <= len(ascii_uppercase):
        raise ValidationError(f"Number of groups must be between 1 and {len(ascii_uppercase)}")

    team_ids = list(
        TournamentTeam.objects.filter(tournament=tournament).order_by('id').values_list('team_id', flat=True)
    )
    if len(team_ids) < 2 * number_of_groups:
        raise ValidationError(
            f"Need at least {2 * number_of_groups} teams for {number_of_groups} groups, "
            f"but got {len(team_ids)}"
        )

    random.Random(seed).shuffle(team_ids)

    with transaction.atomic():
        if GroupTeam.objects.filter(tournament=tournament).exists():
            raise ConflictError("Teams are already assigned to groups")
        Group.objects.filter(tournament=tournament).delete()

        groups = [
            Group.objects.create(tournament=tournament, name=f"Group {ascii_uppercase[i]}")
            for i in range(number_of_groups)
        ]
        assignment = {group.name: [] for group in groups}
        for i, team_id in enumerate(team_ids):
            group = groups[i % number_of_groups]
            GroupTeam.objects.create(group=group, team_id=team_id)
            assignment[group.name].append(team_id)

        tournament.number_of_groups = number_of_groups
        tournament.teams_per_group = max(len(ids) for ids in assignment.values())
        tournament.draw_completed = True
        tournament.save()

    tournament.log_state_change('DRAW_COMPLETED', assignment)
    return DrawSummary(groups=assignment)
