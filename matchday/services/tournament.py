from typing import Dict, List, Optional
import logging

from django.db.models import Q

from ..exceptions import ConflictError, NotFoundError
from ..models import Tournament, TournamentTeam, Team, GroupTeam, Match
from ..permissions import ensure_can_manage
from ..standings import group_standings
from .common import get_or_not_found
from .knockout import KnockoutService

logger = logging.getLogger(__name__)


class TournamentService:
    def __init__(self, tournament: Tournament):
        self.tournament = tournament
        self.knockout_service = KnockoutService(tournament)
        self.group_service = self.knockout_service.group_service

    def register_team(self, team_id, actor=None) -> TournamentTeam:
        ensure_can_manage(actor)
        team = get_or_not_found(Team.objects.all(), team_id, "Team not found")
        entry, created = TournamentTeam.objects.get_or_create(
            tournament=self.tournament,
            team=team
        )
        if not created:
            raise ConflictError(f"{team.name} is already registered in this tournament")
        logger.info(f"Registered team {team.id} in tournament {self.tournament.id}")
        return entry

    def unregister_team(self, team_id, actor=None):
        """Withdraw a team that has not played yet, group membership included"""
        ensure_can_manage(actor)
        entry = TournamentTeam.objects.filter(
            tournament=self.tournament,
            team_id=team_id
        ).first()
        if not entry:
            raise NotFoundError("Team is not registered in this tournament")
        has_matches = Match.objects.filter(
            Q(home_team_id=team_id) | Q(away_team_id=team_id),
            tournament=self.tournament
        ).exists()
        if has_matches:
            raise ConflictError("Cannot withdraw a team that already has fixtures")
        GroupTeam.objects.filter(tournament=self.tournament, team_id=team_id).delete()
        entry.delete()

    def get_standings(self) -> List[Dict]:
        """Standings of every group, computed from match history"""
        return [
            {
                'group': group.id,
                'name': group.name,
                'standings': [row.as_dict() for row in group_standings(group)]
            }
            for group in self.group_service.groups
        ]

    def get_champion(self) -> Optional[Team]:
        return self.knockout_service.get_champion()
