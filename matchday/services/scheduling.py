from collections import Counter, defaultdict
from datetime import timedelta
from typing import Dict, List, Tuple
import logging

from django.conf import settings
from django.db import transaction

from ..exceptions import ValidationError
from ..models import Tournament, Group, Match
from ..permissions import ensure_can_manage
from ..schemas import GenerationSummary

logger = logging.getLogger(__name__)

Pairing = Tuple[int, int]


def round_robin_rounds(team_ids: List[int]) -> List[List[Pairing]]:
    """Circle method: every pair meets once, one game per team per round.

    With an odd number of teams one team rests each round. The fixed team
    alternates home and away so nobody plays all games at home.
    """
    teams = list(team_ids)
    if len(teams) % 2:
        teams.append(None)
    n = len(teams)

    rounds = []
    for round_number in range(n - 1):
        pairings = []
        for i in range(n // 2):
            home, away = teams[i], teams[n - 1 - i]
            if home is None or away is None:
                continue
            if i == 0 and round_number % 2 == 1:
                home, away = away, home
            pairings.append((home, away))
        rounds.append(pairings)
        # Keep the first team in place and rotate the others clockwise
        teams = [teams[0], teams[-1]] + teams[1:-1]
    return rounds


class MatchCalendar:
    """Hands out match days so that no team plays twice on the same day.

    A team's next game always goes after its previous one, which keeps rest
    days even when the fixtures are fed round by round.
    """

    def __init__(self, start_date, matches_per_day: int = 1):
        if matches_per_day < 1:
            raise ValidationError("At least one match per day is required")
        self.start_date = start_date
        self.matches_per_day = matches_per_day
        self._teams_by_day = defaultdict(set)
        self._count_by_day = Counter()
        self._last_day = {}

    def book(self, day, team_ids):
        for team_id in team_ids:
            if team_id is None:
                continue
            self._teams_by_day[day].add(team_id)
            last = self._last_day.get(team_id)
            if last is None or day > last:
                self._last_day[team_id] = day
        self._count_by_day[day] += 1

    def reserve(self, team_ids):
        day = self.start_date
        for team_id in team_ids:
            last = self._last_day.get(team_id)
            if last is not None and last >= day:
                day = last + timedelta(days=1)
        while (self._count_by_day[day] >= self.matches_per_day or
               any(t in self._teams_by_day[day] for t in team_ids)):
            day += timedelta(days=1)
        self.book(day, team_ids)
        return day

    @property
    def last_day(self):
        if not self._count_by_day:
            return None
        return max(self._count_by_day)


class GroupStageService:
    def __init__(self, tournament: Tournament):
        self.tournament = tournament
        self.groups = list(
            Group.objects.filter(tournament=tournament).order_by('name')
        )

    def _group_teams(self) -> Dict[Group, List[int]]:
        group_teams = {}
        for group in self.groups:
            team_ids = group.team_ids()
            if len(team_ids) < 2:
                raise ValidationError(
                    f"{group.name} needs at least 2 teams to generate matches"
                )
            group_teams[group] = team_ids
        return group_teams

    def _existing_pairs(self, group: Group) -> set:
        pairs = set()
        fixtures = Match.objects.filter(
            group=group,
            stage=Match.STAGE_GROUP
        ).values_list('home_team_id', 'away_team_id')
        for home_id, away_id in fixtures:
            pairs.add(frozenset((home_id, away_id)))
        return pairs

    def _calendar(self) -> MatchCalendar:
        calendar = MatchCalendar(
            self.tournament.start_date,
            settings.MATCHDAY_MATCHES_PER_DAY
        )
        # Fixtures from an earlier run still block their days
        existing = Match.objects.filter(tournament=self.tournament).values_list(
            'date', 'home_team_id', 'away_team_id'
        )
        for day, home_id, away_id in existing:
            calendar.book(day, (home_id, away_id))
        return calendar

    def plan_fixtures(self) -> List[Tuple[Group, Pairing]]:
        """Fixtures still to create, ordered round by round across groups"""
        per_group = []
        for group, team_ids in self._group_teams().items():
            existing = self._existing_pairs(group)
            rounds = [
                [p for p in pairings if frozenset(p) not in existing]
                for pairings in round_robin_rounds(team_ids)
            ]
            per_group.append((group, rounds))

        fixtures = []
        max_rounds = max((len(rounds) for _, rounds in per_group), default=0)
        for round_index in range(max_rounds):
            for group, rounds in per_group:
                if round_index < len(rounds):
                    fixtures.extend((group, pairing) for pairing in rounds[round_index])
        return fixtures

    def generate_matches(self, kickoff_time, actor=None) -> GenerationSummary:
        """Create the group fixtures and the empty final-phase bracket"""
        ensure_can_manage(actor)
        if not self.groups:
            raise ValidationError("Tournament has no groups, run the draw first")

        # knockout imports this module
        from .knockout import KnockoutService

        with transaction.atomic():
            fixtures = self.plan_fixtures()
            calendar = self._calendar()
            venue = self.tournament.default_venue

            created = []
            for group, (home_id, away_id) in fixtures:
                day = calendar.reserve((home_id, away_id))
                created.append(Match(
                    tournament=self.tournament,
                    group=group,
                    home_team_id=home_id,
                    away_team_id=away_id,
                    date=day,
                    time=kickoff_time,
                    venue=venue,
                    stage=Match.STAGE_GROUP,
                    status=Match.STATUS_SCHEDULED
                ))
            Match.objects.bulk_create(created)

            knockout = KnockoutService(self.tournament)
            bracket = []
            if knockout.can_build_bracket() and not knockout.bracket_exists():
                bracket = knockout.create_bracket(kickoff_time, self._bracket_start(calendar))

            if created and self.tournament.status == Tournament.STATUS_UPCOMING:
                self.tournament.status = Tournament.STATUS_ONGOING
                self.tournament.save()

        summary = GenerationSummary(
            total_matches=len(created) + len(bracket),
            total_days=len({m.date for m in created} | {m.date for m in bracket}),
            group_matches=len(created),
            final_matches=len(bracket)
        )
        self.tournament.log_state_change('MATCHES_GENERATED', summary.model_dump())
        logger.info(
            f"Generated {summary.total_matches} matches for tournament {self.tournament.id}"
        )
        return summary

    def _bracket_start(self, calendar: MatchCalendar):
        last_group_day = Match.objects.filter(
            tournament=self.tournament,
            stage=Match.STAGE_GROUP
        ).order_by('-date').values_list('date', flat=True).first()
        if last_group_day is None:
            last_group_day = calendar.last_day
        if last_group_day is None:
            return self.tournament.start_date
        return last_group_day + timedelta(days=1)

    def is_group_stage_complete(self) -> bool:
        """All planned group fixtures exist and are completed"""
        for group in self.groups:
            team_count = group.group_teams.count()
            expected = team_count * (team_count - 1) // 2
            fixtures = Match.objects.filter(group=group, stage=Match.STAGE_GROUP)
            completed = fixtures.filter(status=Match.STATUS_COMPLETED).count()
            if fixtures.count() < expected or completed != fixtures.count():
                return False
        return bool(self.groups)

