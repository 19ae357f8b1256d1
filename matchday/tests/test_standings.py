from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from matchday.models import Match
from matchday.standings import compute_standings, group_standings
from .factories import TournamentFactory, MatchFactory, make_group


def result(home, away, home_score, away_score, status='completed'):
    return SimpleNamespace(
        home_team_id=home,
        away_team_id=away,
        home_score=home_score,
        away_score=away_score,
        status=status
    )


class ComputeStandingsTest(SimpleTestCase):
    ALPHA, BETA, GAMMA = 1, 2, 3

    def test_points_then_goal_difference(self):
        """A draw leaves Beta and Gamma level on points, goal difference splits them"""
        matches = [
            result(self.ALPHA, self.BETA, 2, 1),
            result(self.BETA, self.GAMMA, 0, 0),
        ]
        standings = compute_standings([self.ALPHA, self.BETA, self.GAMMA], matches)

        self.assertEqual([row.team_id for row in standings], [self.ALPHA, self.GAMMA, self.BETA])
        alpha, gamma, beta = standings
        self.assertEqual((alpha.points, alpha.goal_difference), (3, 1))
        self.assertEqual((gamma.points, gamma.goal_difference), (1, 0))
        self.assertEqual((beta.points, beta.goal_difference), (1, -1))

    def test_goals_scored_breaks_goal_difference_tie(self):
        matches = [
            result(self.ALPHA, self.BETA, 3, 3),
            result(self.GAMMA, self.ALPHA, 1, 1),
        ]
        standings = compute_standings([self.GAMMA, self.BETA, self.ALPHA], matches)
        self.assertEqual([row.team_id for row in standings], [self.ALPHA, self.BETA, self.GAMMA])

    def test_full_tie_keeps_input_order(self):
        standings = compute_standings([self.GAMMA, self.ALPHA, self.BETA], [])
        self.assertEqual([row.team_id for row in standings], [self.GAMMA, self.ALPHA, self.BETA])
        self.assertTrue(all(row.played == 0 for row in standings))

    def test_unfinished_and_foreign_matches_are_ignored(self):
        matches = [
            result(self.ALPHA, self.BETA, 5, 0, status='in_progress'),
            result(self.ALPHA, 99, 4, 0),
            result(self.BETA, self.ALPHA, 1, 0),
        ]
        beta, alpha = compute_standings([self.ALPHA, self.BETA], matches)
        self.assertEqual(beta.team_id, self.BETA)
        self.assertEqual(alpha.played, 1)
        self.assertEqual(alpha.goals_for, 0)

    def test_row_totals_are_consistent(self):
        matches = [
            result(self.ALPHA, self.BETA, 2, 0),
            result(self.BETA, self.GAMMA, 1, 1),
            result(self.GAMMA, self.ALPHA, 3, 2),
        ]
        standings = compute_standings([self.ALPHA, self.BETA, self.GAMMA], matches)
        for row in standings:
            self.assertEqual(row.wins + row.draws + row.losses, row.played)
            self.assertEqual(row.points, 3 * row.wins + row.draws)
        self.assertEqual(sum(row.goal_difference for row in standings), 0)

    def test_as_dict(self):
        row = compute_standings([self.ALPHA, self.BETA], [result(self.ALPHA, self.BETA, 2, 1)])[0]
        self.assertEqual(row.as_dict(), {
            'team': self.ALPHA,
            'played': 1,
            'wins': 1,
            'draws': 0,
            'losses': 0,
            'goals_for': 2,
            'goals_against': 1,
            'goal_difference': 1,
            'points': 3,
        })


class GroupStandingsTest(TestCase):
    def test_group_standings_from_database(self):
        tournament = TournamentFactory()
        group, (alpha, beta, gamma) = make_group(tournament, 'Group A', 3)
        MatchFactory(tournament=tournament, group=group, home_team=alpha, away_team=beta,
                     home_score=2, away_score=1, status=Match.STATUS_COMPLETED)
        MatchFactory(tournament=tournament, group=group, home_team=beta, away_team=gamma,
                     home_score=0, away_score=0, status=Match.STATUS_COMPLETED)
        # Scheduled fixtures do not count
        MatchFactory(tournament=tournament, group=group, home_team=gamma, away_team=alpha)

        standings = group_standings(group)
        self.assertEqual([row.team_id for row in standings], [alpha.id, gamma.id, beta.id])
