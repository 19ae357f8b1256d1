from celery import shared_task
from django.db import transaction

from .models import Group, GroupTeam
from .standings import group_standings


@shared_task
def rebuild_group_table(group_id):
    """Recompute a group's stored table from its completed matches.

    Returns the number of memberships that were out of date.
    """
    with transaction.atomic():
        group = Group.objects.select_for_update().get(id=group_id)
        rows = {row.team_id: row for row in group_standings(group)}
        changed = 0
        for membership in GroupTeam.objects.select_for_update().filter(group=group):
            row = rows[membership.team_id]
            fields = {
                'played': row.played,
                'wins': row.wins,
                'draws': row.draws,
                'losses': row.losses,
                'goals_for': row.goals_for,
                'goals_against': row.goals_against,
                'points': row.points,
            }
            if any(getattr(membership, name) != value for name, value in fields.items()):
                for name, value in fields.items():
                    setattr(membership, name, value)
                membership.save()
                changed += 1
    return changed
