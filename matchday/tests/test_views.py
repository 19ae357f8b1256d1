import datetime

from django.contrib.auth.models import Group as AuthGroup
from rest_framework import status
from rest_framework.test import APITestCase

from matchday.models import Team, GroupTeam, Match
from .factories import (
    UserFactory, StaffFactory, TournamentFactory,
    TeamFactory, GroupFactory, MatchFactory, make_group
)


class ApiTestCase(APITestCase):
    def setUp(self):
        self.staff = StaffFactory()
        self.user = UserFactory()
        self.client.force_authenticate(self.staff)


class EnvelopeTest(ApiTestCase):
    def test_list_is_wrapped(self):
        TeamFactory(name='Harbour FC')
        response = self.client.get('/api/teams/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['message'], '')
        self.assertEqual([team['name'] for team in body['data']], ['Harbour FC'])

    def test_not_found(self):
        response = self.client.get('/api/matches/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.json()['success'])

    def test_health_check(self):
        self.client.logout()
        response = self.client.get('/health/')
        self.assertEqual(response.json(), {'status': 'ok'})


class PermissionTest(ApiTestCase):
    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(None)
        response = self.client.get('/api/teams/')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(response.json()['success'])

    def test_regular_user_reads_only(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get('/api/teams/').status_code, status.HTTP_200_OK)

        response = self.client.post('/api/teams/', {'name': 'Rovers'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Team.objects.exists())

    def test_coach_can_write(self):
        coach = UserFactory()
        coach.groups.add(AuthGroup.objects.create(name='coach'))
        self.client.force_authenticate(coach)

        response = self.client.post('/api/teams/', {'name': 'Rovers'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['data']['name'], 'Rovers')

    def test_regular_user_cannot_score(self):
        match = MatchFactory()
        self.client.force_authenticate(self.user)
        response = self.client.put(f'/api/matches/{match.id}/score/',
                                   {'home_score': 1, 'away_score': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()['code'], 'permission_denied')


class MatchApiTest(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.tournament = TournamentFactory()
        self.group, (self.home, self.away) = make_group(self.tournament, 'Group A', 2)
        self.match = MatchFactory(tournament=self.tournament, group=self.group,
                                  home_team=self.home, away_team=self.away)

    def score_url(self):
        return f'/api/matches/{self.match.id}/score/'

    def test_score(self):
        response = self.client.put(self.score_url(), {'home_score': 3, 'away_score': 1}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['status'], Match.STATUS_COMPLETED)
        self.assertEqual(GroupTeam.objects.get(team=self.home).points, 3)

    def test_score_out_of_range(self):
        response = self.client.put(self.score_url(), {'home_score': 51, 'away_score': 0}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertEqual(body['code'], 'validation_error')
        self.assertIn('home_score', body['errors'])

    def test_rescore_is_a_conflict(self):
        self.client.put(self.score_url(), {'home_score': 1, 'away_score': 0}, format='json')
        response = self.client.put(self.score_url(), {'home_score': 0, 'away_score': 1}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['code'], 'conflict')

    def test_correct_score(self):
        self.client.put(self.score_url(), {'home_score': 1, 'away_score': 0}, format='json')
        response = self.client.put(f'/api/matches/{self.match.id}/correct-score/',
                                   {'home_score': 0, 'away_score': 2}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(GroupTeam.objects.get(team=self.away).points, 3)
        self.assertEqual(GroupTeam.objects.get(team=self.home).points, 0)

    def test_create_self_match(self):
        response = self.client.post('/api/matches/', {
            'tournament': self.tournament.id,
            'home_team': self.home.id,
            'away_team': self.home.id,
            'date': '2026-06-10',
            'time': '18:00',
            'venue': 'North Park',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['message'], 'A team cannot play against itself')
        self.assertEqual(Match.objects.count(), 1)

    def test_list_by_group(self):
        MatchFactory(tournament=self.tournament)
        response = self.client.get('/api/matches/', {'group': self.group.id})
        self.assertEqual([m['id'] for m in response.json()['data']], [self.match.id])

    def test_list_by_date(self):
        MatchFactory(tournament=self.tournament, date=datetime.date(2026, 6, 2))
        response = self.client.get('/api/matches/', {'date': '2026-06-01'})
        self.assertEqual([m['id'] for m in response.json()['data']], [self.match.id])

    def test_malformed_filters(self):
        response = self.client.get('/api/matches/', {'date': 'garbage', 'group': 'abc'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertEqual(body['code'], 'validation_error')
        self.assertIn('date', body['errors'])
        self.assertIn('group', body['errors'])

    def test_delete_completed_match(self):
        self.client.put(self.score_url(), {'home_score': 1, 'away_score': 0}, format='json')
        response = self.client.delete(f'/api/matches/{self.match.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_team_with_matches_cannot_be_deleted(self):
        response = self.client.delete(f'/api/teams/{self.home.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['code'], 'conflict')


class GroupApiTest(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.tournament = TournamentFactory()

    def test_create_group(self):
        response = self.client.post('/api/groups/', {
            'name': 'Group A', 'tournament': self.tournament.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/groups/', {
            'name': 'Group A', 'tournament': self.tournament.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['code'], 'conflict')

    def test_add_and_move_team(self):
        source = GroupFactory(tournament=self.tournament, name='Group A')
        target = GroupFactory(tournament=self.tournament, name='Group B')
        team = TeamFactory()

        response = self.client.post(f'/api/groups/{source.id}/teams/', {'team': team.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(f'/api/groups/{target.id}/teams/', {'team': team.id}, format='json')
        self.assertEqual(response.json()['code'], 'conflict')

        response = self.client.post('/api/groups/move-team/', {
            'team': team.id, 'from_group': source.id, 'to_group': target.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(GroupTeam.objects.get(team=team).group, target)

        response = self.client.delete(f'/api/groups/{target.id}/teams/{team.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(GroupTeam.objects.filter(team=team).exists())

    def test_group_standings(self):
        group, (home, away) = make_group(self.tournament, 'Group A', 2)
        MatchFactory(tournament=self.tournament, group=group, home_team=home, away_team=away,
                     status=Match.STATUS_COMPLETED, home_score=0, away_score=2)

        response = self.client.get(f'/api/groups/{group.id}/standings/')
        rows = response.json()['data']
        self.assertEqual([row['team'] for row in rows], [away.id, home.id])
        self.assertEqual(rows[0]['points'], 3)


class TournamentApiTest(ApiTestCase):
    def test_draw_generate_and_standings(self):
        tournament = TournamentFactory(number_of_groups=2)
        for _ in range(4):
            team = TeamFactory()
            response = self.client.post(f'/api/tournaments/{tournament.id}/teams/',
                                        {'team': team.id}, format='json')
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(f'/api/tournaments/{tournament.id}/draw/', {'seed': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()['data']['groups']), 2)

        response = self.client.post(f'/api/tournaments/{tournament.id}/generate-matches/',
                                    {'match_time': '19:00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()['data']
        self.assertEqual((data['group_matches'], data['final_matches']), (2, 3))

        response = self.client.get(f'/api/tournaments/{tournament.id}/standings/')
        body = response.json()['data']
        self.assertEqual([g['name'] for g in body['groups']], ['Group A', 'Group B'])
        self.assertIsNone(body['champion'])

    def test_assign_before_group_stage_is_done(self):
        tournament = TournamentFactory()
        make_group(tournament, 'Group A', 2)
        response = self.client.post(f'/api/tournaments/{tournament.id}/assign-qualified/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['message'], 'Group stage is not complete')
