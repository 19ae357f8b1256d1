import datetime
from unittest import mock

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.test import TestCase

from matchday.exceptions import ConflictError, NotFoundError, ValidationError
from matchday.models import TournamentTeam, Group, GroupTeam, Match
from matchday.services import groups as group_services
from matchday.services.scheduling import GroupStageService
from matchday.services.scoring import update_match_score
from .factories import (
    StaffFactory, TournamentFactory, TeamFactory,
    GroupFactory, GroupTeamFactory, MatchFactory, make_group
)


class GroupCrudTest(TestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.tournament = TournamentFactory()

    def test_create_and_rename(self):
        group = group_services.create_group(' Group A ', self.tournament.id, actor=self.staff)
        self.assertEqual(group.name, 'Group A')

        group = group_services.update_group(group.id, 'Group Z', actor=self.staff)
        self.assertEqual(Group.objects.get(pk=group.pk).name, 'Group Z')

    def test_duplicate_name_is_a_conflict(self):
        group_services.create_group('Group A', self.tournament.id, actor=self.staff)
        with self.assertRaises(ConflictError):
            group_services.create_group('Group A', self.tournament.id, actor=self.staff)

        other = group_services.create_group('Group B', self.tournament.id, actor=self.staff)
        with self.assertRaises(ConflictError):
            group_services.update_group(other.id, 'Group A', actor=self.staff)

    def test_blank_name(self):
        with self.assertRaises(ValidationError):
            group_services.create_group('  ', self.tournament.id, actor=self.staff)

    def test_unknown_tournament(self):
        with self.assertRaises(NotFoundError):
            group_services.create_group('Group A', 999999, actor=self.staff)

    def test_delete_group_with_completed_match(self):
        group, (home, away) = make_group(self.tournament, 'Group A', 2)
        MatchFactory(tournament=self.tournament, group=group, home_team=home, away_team=away,
                     status=Match.STATUS_COMPLETED, home_score=1, away_score=0)

        with self.assertRaises(ConflictError):
            group_services.delete_group(group.id, actor=self.staff)
        self.assertTrue(Group.objects.filter(pk=group.pk).exists())

    def test_delete_group_removes_fixtures(self):
        group, (home, away) = make_group(self.tournament, 'Group A', 2)
        MatchFactory(tournament=self.tournament, group=group, home_team=home, away_team=away)

        group_services.delete_group(group.id, actor=self.staff)
        self.assertFalse(Match.objects.filter(tournament=self.tournament).exists())
        self.assertFalse(GroupTeam.objects.filter(tournament=self.tournament).exists())


class MembershipTest(TestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.tournament = TournamentFactory()
        self.group_a = GroupFactory(tournament=self.tournament, name='Group A')
        self.group_b = GroupFactory(tournament=self.tournament, name='Group B')
        self.team = TeamFactory()

    def test_add_team_registers_it(self):
        membership = group_services.add_team_to_group(self.group_a.id, self.team.id, actor=self.staff)

        self.assertEqual(membership.tournament, self.tournament)
        self.assertEqual(membership.points, 0)
        self.assertTrue(
            TournamentTeam.objects.filter(tournament=self.tournament, team=self.team).exists()
        )

    def test_same_group_twice(self):
        group_services.add_team_to_group(self.group_a.id, self.team.id, actor=self.staff)
        with self.assertRaises(ConflictError):
            group_services.add_team_to_group(self.group_a.id, self.team.id, actor=self.staff)
        self.assertEqual(GroupTeam.objects.filter(team=self.team).count(), 1)

    def test_one_group_per_tournament(self):
        group_services.add_team_to_group(self.group_a.id, self.team.id, actor=self.staff)
        with self.assertRaises(ConflictError):
            group_services.add_team_to_group(self.group_b.id, self.team.id, actor=self.staff)

    def test_database_enforces_one_group_per_tournament(self):
        GroupTeamFactory(group=self.group_a, team=self.team)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                GroupTeam.objects.create(group=self.group_b, team=self.team)

    def test_team_can_join_groups_of_other_tournaments(self):
        group_services.add_team_to_group(self.group_a.id, self.team.id, actor=self.staff)
        elsewhere = GroupFactory()
        group_services.add_team_to_group(elsewhere.id, self.team.id, actor=self.staff)
        self.assertEqual(GroupTeam.objects.filter(team=self.team).count(), 2)

    def test_remove_team(self):
        GroupTeamFactory(group=self.group_a, team=self.team)
        group_services.remove_team_from_group(self.group_a.id, self.team.id, actor=self.staff)
        self.assertFalse(GroupTeam.objects.filter(team=self.team).exists())

        with self.assertRaises(NotFoundError):
            group_services.remove_team_from_group(self.group_a.id, self.team.id, actor=self.staff)

    def test_unknown_team(self):
        with self.assertRaises(NotFoundError):
            group_services.add_team_to_group(self.group_a.id, 999999, actor=self.staff)


class MoveTeamTest(TestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.tournament = TournamentFactory()
        self.source, (self.team, self.rival) = make_group(self.tournament, 'Group A', 2)
        self.target = GroupFactory(tournament=self.tournament, name='Group B')

    def test_move(self):
        membership = group_services.move_team_to_group(
            self.team.id, self.source.id, self.target.id, actor=self.staff
        )

        self.assertEqual(membership.group, self.target)
        self.assertEqual(
            list(GroupTeam.objects.filter(team=self.team).values_list('group_id', flat=True)),
            [self.target.id]
        )

    def test_failed_add_keeps_original_membership(self):
        with mock.patch.object(group_services, '_add_membership',
                               side_effect=ConflictError("boom")):
            with self.assertRaises(ConflictError):
                group_services.move_team_to_group(
                    self.team.id, self.source.id, self.target.id, actor=self.staff
                )

        self.assertTrue(GroupTeam.objects.filter(group=self.source, team=self.team).exists())
        self.assertFalse(GroupTeam.objects.filter(group=self.target, team=self.team).exists())

    def test_team_not_in_source_group(self):
        stranger = TeamFactory()
        with self.assertRaises(NotFoundError):
            group_services.move_team_to_group(
                stranger.id, self.source.id, self.target.id, actor=self.staff
            )

    def test_same_group(self):
        with self.assertRaises(ValidationError):
            group_services.move_team_to_group(
                self.team.id, self.source.id, self.source.id, actor=self.staff
            )

    def test_other_tournament(self):
        foreign = GroupFactory()
        with self.assertRaises(ValidationError):
            group_services.move_team_to_group(
                self.team.id, self.source.id, foreign.id, actor=self.staff
            )

    def test_played_team_cannot_move(self):
        MatchFactory(tournament=self.tournament, group=self.source, home_team=self.rival,
                     away_team=self.team, status=Match.STATUS_COMPLETED,
                     home_score=0, away_score=0)
        with self.assertRaises(ConflictError):
            group_services.move_team_to_group(
                self.team.id, self.source.id, self.target.id, actor=self.staff
            )


class DrawTest(TestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.tournament = TournamentFactory(number_of_groups=2)
        self.teams = [TeamFactory() for _ in range(8)]
        for team in self.teams:
            TournamentTeam.objects.create(tournament=self.tournament, team=team)

    def test_draw_deals_every_team_once(self):
        summary = group_services.perform_draw(self.tournament.id, actor=self.staff, seed=7)

        self.assertEqual(sorted(summary.groups), ['Group A', 'Group B'])
        dealt = [team_id for ids in summary.groups.values() for team_id in ids]
        self.assertEqual(sorted(dealt), sorted(team.id for team in self.teams))
        self.assertTrue(all(len(ids) == 4 for ids in summary.groups.values()))
        self.assertEqual(GroupTeam.objects.filter(tournament=self.tournament).count(), 8)

        self.tournament.refresh_from_db()
        self.assertTrue(self.tournament.draw_completed)

    def test_same_seed_same_draw(self):
        first = group_services.perform_draw(self.tournament.id, actor=self.staff, seed=3)
        other = TournamentFactory()
        for team in self.teams:
            TournamentTeam.objects.create(tournament=other, team=team)
        second = group_services.perform_draw(other.id, actor=self.staff, seed=3)
        self.assertEqual(first.groups, second.groups)

    def test_draw_only_once(self):
        group_services.perform_draw(self.tournament.id, actor=self.staff)
        with self.assertRaises(ConflictError):
            group_services.perform_draw(self.tournament.id, actor=self.staff)

    def test_not_enough_teams(self):
        with self.assertRaises(ValidationError):
            group_services.perform_draw(self.tournament.id, actor=self.staff, number_of_groups=5)
        self.assertFalse(Group.objects.filter(tournament=self.tournament).exists())


class MembershipFixturesTest(TestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.tournament = TournamentFactory()
        self.source, (self.team, self.rival, self.third) = make_group(self.tournament, 'Group A', 3)
        self.target, _ = make_group(self.tournament, 'Group B', 2)
        GroupStageService(self.tournament).generate_matches(datetime.time(15, 0), actor=self.staff)

    def fixtures_of(self, team, group):
        return Match.objects.filter(Q(home_team=team) | Q(away_team=team), group=group)

    def test_move_takes_unplayed_fixtures_away(self):
        group_services.move_team_to_group(
            self.team.id, self.source.id, self.target.id, actor=self.staff
        )

        self.assertFalse(self.fixtures_of(self.team, self.source).exists())
        remaining = Match.objects.filter(group=self.source)
        self.assertEqual(remaining.count(), 1)
        self.assertEqual(
            {remaining[0].home_team_id, remaining[0].away_team_id},
            {self.rival.id, self.third.id}
        )

    def test_group_stage_can_finish_after_a_move(self):
        group_services.move_team_to_group(
            self.team.id, self.source.id, self.target.id, actor=self.staff
        )
        summary = GroupStageService(self.tournament).generate_matches(
            datetime.time(15, 0), actor=self.staff
        )
        self.assertEqual(summary.group_matches, 2)

        for match in Match.objects.filter(tournament=self.tournament, stage=Match.STAGE_GROUP):
            update_match_score(match.id, 1, 0, actor=self.staff)
        self.assertTrue(GroupStageService(self.tournament).is_group_stage_complete())

    def test_remove_takes_unplayed_fixtures_away(self):
        group_services.remove_team_from_group(self.source.id, self.team.id, actor=self.staff)

        self.assertFalse(self.fixtures_of(self.team, self.source).exists())
        self.assertEqual(Match.objects.filter(group=self.source).count(), 1)

    def test_played_team_cannot_be_removed(self):
        played = self.fixtures_of(self.team, self.source).first()
        update_match_score(played.id, 2, 1, actor=self.staff)

        with self.assertRaises(ConflictError):
            group_services.remove_team_from_group(self.source.id, self.team.id, actor=self.staff)

        self.assertTrue(GroupTeam.objects.filter(group=self.source, team=self.team).exists())
        self.assertEqual(self.fixtures_of(self.team, self.source).count(), 2)


class BracketLockTest(TestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.tournament = TournamentFactory()
        self.group_a, _ = make_group(self.tournament, 'Group A', 2)
        make_group(self.tournament, 'Group B', 2)
        GroupStageService(self.tournament).generate_matches(datetime.time(15, 0), actor=self.staff)

    def test_groups_cannot_be_added(self):
        with self.assertRaises(ConflictError):
            group_services.create_group('Group C', self.tournament.id, actor=self.staff)
        self.assertEqual(Group.objects.filter(tournament=self.tournament).count(), 2)

    def test_groups_cannot_be_deleted(self):
        with self.assertRaises(ConflictError):
            group_services.delete_group(self.group_a.id, actor=self.staff)
        self.assertTrue(Group.objects.filter(pk=self.group_a.pk).exists())

    def test_groups_can_be_renamed(self):
        group = group_services.update_group(self.group_a.id, 'Group Z', actor=self.staff)
        self.assertEqual(group.name, 'Group Z')
