from django.db.models import ProtectedError
from django.http import JsonResponse
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import ConflictError
from .models import Stadium, Tournament, Team, Player, Group, Match
from .permissions import IsAdminOrCoachOrReadOnly
from .serializers import (
    StadiumSerializer,
    TournamentSerializer,
    TeamSerializer,
    PlayerSerializer,
    GroupSerializer,
    GroupTeamSerializer,
    MatchSerializer,
    MatchCreateSerializer,
    MatchUpdateSerializer,
    MatchFilterSerializer,
    MatchScoreSerializer,
    GroupMembershipSerializer,
    MoveTeamSerializer,
    DrawSerializer,
    KickoffSerializer
)
from .services import groups as group_services
from .services import matches as match_services
from .services.knockout import KnockoutService
from .services.scheduling import GroupStageService
from .services.scoring import update_match_score, correct_match_score
from .services.tournament import TournamentService
from .standings import group_standings
from .tasks import rebuild_group_table


def envelope(data=None, message='', status_code=status.HTTP_200_OK):
    return Response(
        {'success': True, 'data': data, 'message': message},
        status=status_code
    )


class StadiumViewSet(viewsets.ModelViewSet):
    queryset = Stadium.objects.all()
    serializer_class = StadiumSerializer
    permission_classes = [IsAuthenticated, IsAdminOrCoachOrReadOnly]


class TeamViewSet(viewsets.ModelViewSet):
    queryset = Team.objects.all()
    serializer_class = TeamSerializer
    permission_classes = [IsAuthenticated, IsAdminOrCoachOrReadOnly]

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise ConflictError("Cannot delete a team that has matches")


class PlayerViewSet(viewsets.ModelViewSet):
    serializer_class = PlayerSerializer
    permission_classes = [IsAuthenticated, IsAdminOrCoachOrReadOnly]

    def get_queryset(self):
        players = Player.objects.select_related('team')
        team_id = self.request.query_params.get('team')
        if team_id == 'none':
            players = players.filter(team__isnull=True)
        elif team_id:
            players = players.filter(team_id=team_id)
        return players


class TournamentViewSet(viewsets.ModelViewSet):
    queryset = Tournament.objects.all()
    serializer_class = TournamentSerializer
    permission_classes = [IsAuthenticated, IsAdminOrCoachOrReadOnly]

    def perform_create(self, serializer):
        serializer.save(organizer=self.request.user)

    @action(detail=True, methods=['post'])
    def draw(self, request, pk=None):
        tournament = self.get_object()
        serializer = DrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = group_services.perform_draw(
            tournament.id,
            actor=request.user,
            number_of_groups=serializer.validated_data.get('number_of_groups'),
            seed=serializer.validated_data.get('seed')
        )
        return envelope(summary.model_dump(), "Draw completed")

    @action(detail=True, methods=['post'], url_path='generate-matches')
    def generate_matches(self, request, pk=None):
        tournament = self.get_object()
        serializer = KickoffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = GroupStageService(tournament).generate_matches(
            serializer.validated_data['match_time'],
            actor=request.user
        )
        return envelope(summary.model_dump(), "Matches generated", status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='assign-qualified')
    def assign_qualified(self, request, pk=None):
        summary = KnockoutService(self.get_object()).assign_qualified_teams(actor=request.user)
        return envelope(summary.model_dump(), "Qualified teams assigned")

    @action(detail=True, methods=['post'], url_path='generate-final-phase')
    def generate_final_phase(self, request, pk=None):
        tournament = self.get_object()
        serializer = KickoffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = KnockoutService(tournament).generate_final_phase_matches(
            serializer.validated_data['match_time'],
            actor=request.user
        )
        return envelope(summary.model_dump(), "Final phase generated", status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def standings(self, request, pk=None):
        service = TournamentService(self.get_object())
        champion = service.get_champion()
        return envelope({
            'groups': service.get_standings(),
            'champion': TeamSerializer(champion).data if champion else None
        })

    @action(detail=True, methods=['post'])
    def teams(self, request, pk=None):
        serializer = GroupMembershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        TournamentService(self.get_object()).register_team(
            serializer.validated_data['team'],
            actor=request.user
        )
        return envelope(None, "Team registered", status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'teams/(?P<team_id>\d+)')
    def remove_team(self, request, pk=None, team_id=None):
        TournamentService(self.get_object()).unregister_team(int(team_id), actor=request.user)
        return envelope(None, "Team withdrawn")


class GroupViewSet(viewsets.ModelViewSet):
    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        groups = Group.objects.prefetch_related('group_teams__team')
        tournament_id = self.request.query_params.get('tournament')
        if tournament_id:
            groups = groups.filter(tournament_id=tournament_id)
        return groups

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        group = group_services.create_group(
            serializer.validated_data['name'],
            serializer.validated_data['tournament'].id,
            actor=request.user
        )
        return envelope(GroupSerializer(group).data, "Group created", status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        group = self.get_object()
        serializer = self.get_serializer(group, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        group = group_services.update_group(
            group.id,
            serializer.validated_data.get('name', group.name),
            actor=request.user
        )
        return envelope(GroupSerializer(group).data, "Group updated")

    def destroy(self, request, *args, **kwargs):
        group_services.delete_group(self.get_object().id, actor=request.user)
        return envelope(None, "Group deleted")

    @action(detail=True, methods=['post'], url_path='teams')
    def add_team(self, request, pk=None):
        serializer = GroupMembershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = group_services.add_team_to_group(
            pk,
            serializer.validated_data['team'],
            actor=request.user
        )
        return envelope(GroupTeamSerializer(membership).data, "Team added", status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'teams/(?P<team_id>\d+)')
    def remove_team(self, request, pk=None, team_id=None):
        group_services.remove_team_from_group(pk, int(team_id), actor=request.user)
        return envelope(None, "Team removed")

    @action(detail=False, methods=['post'], url_path='move-team')
    def move_team(self, request):
        serializer = MoveTeamSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        membership = group_services.move_team_to_group(
            data['team'],
            data['from_group'],
            data['to_group'],
            actor=request.user
        )
        return envelope(GroupTeamSerializer(membership).data, "Team moved")

    @action(detail=True, methods=['get'])
    def standings(self, request, pk=None):
        rows = group_standings(self.get_object())
        return envelope([row.as_dict() for row in rows])

    @action(detail=True, methods=['post'], url_path='rebuild-table',
            permission_classes=[IsAuthenticated, IsAdminOrCoachOrReadOnly])
    def rebuild_table(self, request, pk=None):
        group = self.get_object()
        task = rebuild_group_table.delay(group.id)
        return envelope({'task_id': task.id}, "Table rebuild queued", status.HTTP_202_ACCEPTED)


class MatchViewSet(viewsets.ModelViewSet):
    serializer_class = MatchSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        filters = MatchFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data
        return match_services.list_matches(
            tournament_id=params.get('tournament'),
            group_id=params.get('group'),
            status=params.get('status'),
            date=params.get('date')
        )

    def create(self, request, *args, **kwargs):
        serializer = MatchCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        match = match_services.create_match(
            data['tournament'],
            data['home_team'],
            data['away_team'],
            data['date'],
            data['time'],
            data['venue'],
            group_id=data.get('group'),
            actor=request.user
        )
        return envelope(MatchSerializer(match).data, "Match created", status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        serializer = MatchUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        match = match_services.update_match(
            kwargs['pk'],
            actor=request.user,
            **serializer.validated_data
        )
        return envelope(MatchSerializer(match).data, "Match updated")

    def destroy(self, request, *args, **kwargs):
        match_services.delete_match(kwargs['pk'], actor=request.user)
        return envelope(None, "Match deleted")

    @action(detail=True, methods=['put'])
    def score(self, request, pk=None):
        serializer = MatchScoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        match = update_match_score(pk, actor=request.user, **serializer.validated_data)
        return envelope(MatchSerializer(match).data, "Match score updated")

    @action(detail=True, methods=['put'], url_path='correct-score')
    def correct_score(self, request, pk=None):
        serializer = MatchScoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        data.pop('status', None)
        match = correct_match_score(pk, actor=request.user, **data)
        return envelope(MatchSerializer(match).data, "Match score corrected")


def health_check(request):
    return JsonResponse({'status': 'ok'})
