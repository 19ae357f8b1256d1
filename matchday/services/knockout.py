from datetime import timedelta
from typing import List, Optional
import logging

from django.conf import settings
from django.db import transaction

from ..exceptions import ConflictError, ValidationError
from ..models import Tournament, TournamentTeam, Team, Match
from ..permissions import ensure_can_manage
from ..schemas import FinalPhaseSummary, QualificationSummary, QualifiedTeam
from ..standings import group_standings
from .notification import notify_team_qualified
from .scheduling import GroupStageService

logger = logging.getLogger(__name__)


class KnockoutService:
    # Teams entering a round -> stage of that round
    STAGE_BY_SIZE = {
        16: 'RO16',
        8: 'QUARTER',
        4: 'SEMI',
        2: 'FINAL'
    }

    def __init__(self, tournament: Tournament):
        self.tournament = tournament
        self.group_service = GroupStageService(tournament)

    def qualifier_count(self) -> int:
        return len(self.group_service.groups) * settings.MATCHDAY_QUALIFIERS_PER_GROUP

    def can_build_bracket(self) -> bool:
        return self.qualifier_count() in self.STAGE_BY_SIZE

    def bracket_exists(self) -> bool:
        return Match.objects.filter(
            tournament=self.tournament,
            stage__in=Match.KNOCKOUT_STAGES
        ).exists()

    def bracket_matches(self, stage: Optional[str] = None):
        matches = Match.objects.filter(
            tournament=self.tournament,
            stage__in=Match.KNOCKOUT_STAGES
        )
        if stage:
            matches = matches.filter(stage=stage)
        return matches.order_by('date', 'bracket_position')

    def first_round_stage(self) -> Optional[str]:
        """Earliest round of the stored bracket, None without a bracket"""
        stages = set(self.bracket_matches().values_list('stage', flat=True))
        for stage in Match.KNOCKOUT_STAGES:
            if stage in stages:
                return stage
        return None

    def create_bracket(self, kickoff_time, first_day) -> List[Match]:
        """Create every final-phase match with empty slots, one round per day.

        Rounds are built from the final backwards so each match can point at
        the match its winner moves on to.
        """
        size = self.qualifier_count()
        if size not in self.STAGE_BY_SIZE:
            raise ValidationError(
                f"The final phase needs 2, 4, 8 or 16 qualifiers, got {size}"
            )

        sizes = []
        while size >= 2:
            sizes.append(size)
            size //= 2

        venue = self.tournament.default_venue
        created = []
        next_round = []
        for round_index in reversed(range(len(sizes))):
            round_size = sizes[round_index]
            current = []
            for position in range(round_size // 2):
                parent = next_round[position // 2] if next_round else None
                match = Match.objects.create(
                    tournament=self.tournament,
                    stage=self.STAGE_BY_SIZE[round_size],
                    date=first_day + timedelta(days=round_index),
                    time=kickoff_time,
                    venue=venue,
                    status=Match.STATUS_SCHEDULED,
                    bracket_position=position + 1,
                    next_match=parent,
                    next_slot=('home' if position % 2 == 0 else 'away') if parent else ''
                )
                current.append(match)
            created.extend(current)
            next_round = current

        return sorted(created, key=lambda m: (m.date, m.bracket_position))

    def generate_final_phase_matches(self, kickoff_time, actor=None) -> FinalPhaseSummary:
        """Create the elimination bracket for a tournament that has none"""
        ensure_can_manage(actor)
        if self.bracket_exists():
            raise ConflictError("Final phase matches already exist")

        last_group_day = Match.objects.filter(
            tournament=self.tournament,
            stage=Match.STAGE_GROUP
        ).order_by('-date').values_list('date', flat=True).first()
        first_day = (last_group_day + timedelta(days=1)) if last_group_day else self.tournament.start_date

        with transaction.atomic():
            matches = self.create_bracket(kickoff_time, first_day)

        counts = {stage: 0 for stage in Match.KNOCKOUT_STAGES}
        for match in matches:
            counts[match.stage] += 1
        summary = FinalPhaseSummary(
            total_matches=len(matches),
            round_of_16=counts['RO16'],
            quarters=counts['QUARTER'],
            semis=counts['SEMI'],
            final=counts['FINAL']
        )
        self.tournament.log_state_change('FINAL_PHASE_GENERATED', summary.model_dump())
        return summary

    def assign_qualified_teams(self, actor=None) -> QualificationSummary:
        """Seed the first knockout round from the final group standings"""
        ensure_can_manage(actor)
        groups = self.group_service.groups
        if not groups:
            raise ValidationError("Tournament has no groups")
        if not self.group_service.is_group_stage_complete():
            raise ValidationError("Group stage is not complete")
        if not self.bracket_exists():
            raise ValidationError("Generate the final phase matches first")

        per_group = settings.MATCHDAY_QUALIFIERS_PER_GROUP
        first_round = list(self.bracket_matches(self.first_round_stage()))
        if any(match.is_completed for match in first_round):
            raise ConflictError("The final phase has already started")

        # Seed order: all group winners, then all runners-up, and so on
        by_position = [[] for _ in range(per_group)]
        for group in groups:
            standings = group_standings(group)
            if len(standings) < per_group:
                raise ValidationError(
                    f"{group.name} has fewer than {per_group} teams"
                )
            for position, row in enumerate(standings[:per_group]):
                by_position[position].append((group, position + 1, row.team_id))
        seeds = [entry for position in by_position for entry in position]
        if len(seeds) != len(first_round) * 2:
            raise ValidationError(
                f"The bracket has room for {len(first_round) * 2} qualifiers, "
                f"but the groups give {len(seeds)}"
            )

        teams = Team.objects.in_bulk([team_id for _, _, team_id in seeds])
        qualified = []
        with transaction.atomic():
            TournamentTeam.objects.filter(tournament=self.tournament).update(
                qualified=False,
                seed=None
            )
            for seed, (group, position, team_id) in enumerate(seeds, start=1):
                TournamentTeam.objects.update_or_create(
                    tournament=self.tournament,
                    team_id=team_id,
                    defaults={'qualified': True, 'seed': seed}
                )
                qualified.append(QualifiedTeam(
                    team_id=team_id,
                    team_name=teams[team_id].name,
                    group=group.name,
                    position=position,
                    seed=seed
                ))

            # Pair teams: 1st vs last, 2nd vs second-last, etc.
            for i, match in enumerate(first_round):
                match.home_team_id = seeds[i][2]
                match.away_team_id = seeds[-(i + 1)][2]
                match.save()

        for entry in qualified:
            notify_team_qualified(self.tournament, teams[entry.team_id], entry.seed)

        summary = QualificationSummary(
            qualified_teams=qualified,
            seeded_matches=len(first_round)
        )
        self.tournament.log_state_change(
            'QUALIFIERS_ASSIGNED',
            [entry.team_name for entry in qualified]
        )
        return summary

    def get_champion(self) -> Optional[Team]:
        final = self.bracket_matches('FINAL').filter(status=Match.STATUS_COMPLETED).first()
        return final.get_winner() if final else None

    @staticmethod
    def advance_winner(match: Match):
        """Move the winner of a completed knockout match into the next slot"""
        winner = match.get_winner()
        if winner is None:
            raise ValidationError("A knockout match needs a winner")

        if match.next_match_id:
            next_match = Match.objects.select_for_update().get(pk=match.next_match_id)
            if next_match.is_completed:
                raise ConflictError("The next round match has already been played")
            setattr(next_match, f"{match.next_slot}_team", winner)
            next_match.save()
        elif match.stage == 'FINAL':
            tournament = match.tournament
            tournament.status = Tournament.STATUS_COMPLETED
            tournament.save()
        return winner

    @staticmethod
    def retract_winner(match: Match):
        """Undo ``advance_winner`` before a result is corrected"""
        if match.next_match_id:
            next_match = Match.objects.select_for_update().get(pk=match.next_match_id)
            if next_match.is_completed:
                raise ConflictError("The next round match has already been played")
            setattr(next_match, f"{match.next_slot}_team", None)
            next_match.save()
        elif match.stage == 'FINAL':
            tournament = match.tournament
            tournament.status = Tournament.STATUS_ONGOING
            tournament.save()
