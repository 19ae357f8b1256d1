"""Group standings.

Standings are always derived from match history: the stored ``GroupTeam``
aggregates are a cache of what :func:`compute_standings` returns for the same
group.
"""
from dataclasses import dataclass
from typing import Iterable, List
import heapq
import itertools

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1

COMPLETED = 'completed'


@dataclass
class StandingRow:
    team_id: int
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def record(self, goals_for: int, goals_against: int):
        self.played += 1
        self.goals_for += goals_for
        self.goals_against += goals_against
        if goals_for > goals_against:
            self.wins += 1
            self.points += POINTS_FOR_WIN
        elif goals_for == goals_against:
            self.draws += 1
            self.points += POINTS_FOR_DRAW
        else:
            self.losses += 1

    def as_dict(self) -> dict:
        return {
            'team': self.team_id,
            'played': self.played,
            'wins': self.wins,
            'draws': self.draws,
            'losses': self.losses,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
            'points': self.points,
        }


def compute_standings(team_ids: Iterable[int], matches: Iterable) -> List[StandingRow]:
    """Rank teams by points, goal difference, then goals scored.

    ``matches`` may hold any objects exposing ``home_team_id``,
    ``away_team_id``, ``home_score``, ``away_score`` and ``status``. Only
    completed matches between listed teams count. Teams still level after the
    three keys keep their order from ``team_ids``.
    """
    rows = {}
    for team_id in team_ids:
        rows.setdefault(team_id, StandingRow(team_id))

    for match in matches:
        if match.status != COMPLETED:
            continue
        if match.home_team_id not in rows or match.away_team_id not in rows:
            continue
        rows[match.home_team_id].record(match.home_score, match.away_score)
        rows[match.away_team_id].record(match.away_score, match.home_score)

    # Max heap on (points, goal difference, goals for); the counter keeps
    # level teams in input order
    counter = itertools.count()
    queue = []
    for row in rows.values():
        priority = (-row.points, -row.goal_difference, -row.goals_for)
        heapq.heappush(queue, (priority, next(counter), row))

    standings = []
    while queue:
        _, _, row = heapq.heappop(queue)
        standings.append(row)
    return standings


def group_standings(group) -> List[StandingRow]:
    """Standings of a ``Group`` from its memberships and completed matches"""
    matches = group.matches.filter(status=COMPLETED).only(
        'home_team_id', 'away_team_id', 'home_score', 'away_score', 'status'
    )
    return compute_standings(group.team_ids(), matches)
