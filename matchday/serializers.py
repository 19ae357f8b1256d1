from django.conf import settings
from rest_framework import serializers

from .models import Stadium, Tournament, Team, Player, Group, GroupTeam, Match


class StadiumSerializer(serializers.ModelSerializer):
    class Meta:
        model = Stadium
        fields = ['id', 'name', 'address', 'city', 'region', 'capacity',
                  'field_count', 'is_partner', 'description']


class TeamSerializer(serializers.ModelSerializer):
    class Meta:
        model = Team
        fields = ['id', 'name', 'logo', 'coach_name', 'matches_played',
                  'wins', 'draws', 'losses', 'goals_scored']
        read_only_fields = ['matches_played', 'wins', 'draws', 'losses', 'goals_scored']


class PlayerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Player
        fields = ['id', 'name', 'position', 'number', 'team']


class TournamentSerializer(serializers.ModelSerializer):
    team_count = serializers.SerializerMethodField()
    stage = serializers.SerializerMethodField()

    class Meta:
        model = Tournament
        fields = ['id', 'slug', 'name', 'logo', 'start_date', 'end_date', 'prize',
                  'rules', 'stadium', 'number_of_groups', 'teams_per_group',
                  'status', 'draw_completed', 'team_count', 'stage']
        read_only_fields = ['slug', 'status', 'draw_completed']

    def validate(self, data):
        start_date = data.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = data.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({"end_date": "End date cannot be before start date"})
        groups = data.get('number_of_groups', getattr(self.instance, 'number_of_groups', 2))
        per_group = data.get('teams_per_group', getattr(self.instance, 'teams_per_group', 4))
        if groups * per_group < 2:
            raise serializers.ValidationError("Tournament must have at least 2 teams")
        return data

    def get_team_count(self, obj):
        return obj.tournament_teams.count()

    def get_stage(self, obj):
        pending = obj.matches.exclude(status=Match.STATUS_COMPLETED)
        for stage, label in Match.STAGE_CHOICES:
            if pending.filter(stage=stage).exists():
                return label
        return obj.get_status_display()


class GroupTeamSerializer(serializers.ModelSerializer):
    team_name = serializers.CharField(source='team.name', read_only=True)
    goal_difference = serializers.ReadOnlyField()

    class Meta:
        model = GroupTeam
        fields = ['id', 'team', 'team_name', 'played', 'wins', 'draws', 'losses',
                  'goals_for', 'goals_against', 'goal_difference', 'points']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    group_teams = GroupTeamSerializer(many=True, read_only=True)

    class Meta:
        model = Group
        fields = ['id', 'name', 'tournament', 'group_teams']
        # Duplicate names are reported by the group service as a conflict
        validators = []


class MatchSerializer(serializers.ModelSerializer):
    home_team_name = serializers.CharField(source='home_team.name', read_only=True, default=None)
    away_team_name = serializers.CharField(source='away_team.name', read_only=True, default=None)
    group_name = serializers.CharField(source='group.name', read_only=True, default=None)

    class Meta:
        model = Match
        fields = ['id', 'tournament', 'group', 'group_name', 'stage', 'date', 'time',
                  'venue', 'home_team', 'home_team_name', 'away_team', 'away_team_name',
                  'status', 'home_score', 'away_score', 'home_penalties', 'away_penalties',
                  'bracket_position', 'next_match', 'next_slot']
        read_only_fields = fields


class MatchCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.TimeField()
    venue = serializers.CharField(min_length=3, max_length=100, trim_whitespace=True)
    home_team = serializers.IntegerField(min_value=1)
    away_team = serializers.IntegerField(min_value=1)
    tournament = serializers.IntegerField(min_value=1)
    group = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class MatchUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    time = serializers.TimeField(required=False)
    venue = serializers.CharField(min_length=3, max_length=100, required=False)
    status = serializers.ChoiceField(choices=Match.STATUS_CHOICES, required=False)


class MatchFilterSerializer(serializers.Serializer):
    tournament = serializers.IntegerField(min_value=1, required=False)
    group = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=Match.STATUS_CHOICES, required=False)
    date = serializers.DateField(required=False)


class MatchScoreSerializer(serializers.Serializer):
    home_score = serializers.IntegerField(min_value=0, max_value=settings.MATCHDAY_MAX_SCORE)
    away_score = serializers.IntegerField(min_value=0, max_value=settings.MATCHDAY_MAX_SCORE)
    status = serializers.ChoiceField(choices=Match.STATUS_CHOICES, required=False)
    home_penalties = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    away_penalties = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    def validate(self, data):
        if (data.get('home_penalties') is None) != (data.get('away_penalties') is None):
            raise serializers.ValidationError("Give both penalty scores or none")
        return data


class GroupMembershipSerializer(serializers.Serializer):
    team = serializers.IntegerField(min_value=1)


class MoveTeamSerializer(serializers.Serializer):
    team = serializers.IntegerField(min_value=1)
    from_group = serializers.IntegerField(min_value=1)
    to_group = serializers.IntegerField(min_value=1)


class DrawSerializer(serializers.Serializer):
    number_of_groups = serializers.IntegerField(min_value=1, max_value=26, required=False)
    seed = serializers.IntegerField(required=False)


class KickoffSerializer(serializers.Serializer):
    match_time = serializers.TimeField(default=settings.MATCHDAY_DEFAULT_KICKOFF)
