from django.contrib import admin

from .models import Stadium, Tournament, TournamentTeam, Team, Player, Group, GroupTeam, Match


class GroupTeamInline(admin.TabularInline):
    model = GroupTeam
    extra = 0
    readonly_fields = ("played", "wins", "draws", "losses", "goals_for", "goals_against", "points")


@admin.register(Stadium)
class StadiumAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "city", "capacity", "is_partner")
    list_filter = ("city", "is_partner")
    search_fields = ("name", "city")


@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "start_date", "number_of_groups", "teams_per_group", "status", "draw_completed")
    list_filter = ("status", "draw_completed")
    search_fields = ("name",)


@admin.register(TournamentTeam)
class TournamentTeamAdmin(admin.ModelAdmin):
    list_display = ("id", "tournament", "team", "qualified", "seed")
    list_filter = ("tournament", "qualified")
    search_fields = ("team__name",)


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "matches_played", "wins", "draws", "losses", "goals_scored")
    search_fields = ("name",)


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "position", "number", "team")
    list_filter = ("position",)
    search_fields = ("name", "team__name")


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ("id", "tournament", "name")
    list_filter = ("tournament",)
    search_fields = ("name",)
    inlines = [GroupTeamInline]


@admin.register(Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = ("id", "tournament", "group", "stage", "home_team", "away_team", "date", "time", "status")
    list_filter = ("tournament", "stage", "status")
    search_fields = ("home_team__name", "away_team__name")
    # Results change through the score endpoints so statistics stay in step
    readonly_fields = ("home_score", "away_score", "home_penalties", "away_penalties")
