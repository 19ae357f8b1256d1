import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

from .log import log_event


class Stadium(models.Model):
    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    region = models.CharField(max_length=100, blank=True)
    capacity = models.PositiveIntegerField(default=0)
    field_count = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )
    is_partner = models.BooleanField(default=False)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.city})" if self.city else self.name


class Team(models.Model):
    name = models.CharField(max_length=100, unique=True)
    logo = models.CharField(max_length=255, blank=True)
    coach_name = models.CharField(max_length=100, blank=True)
    # Career aggregates, updated by the score service
    matches_played = models.PositiveIntegerField(default=0)
    wins = models.PositiveIntegerField(default=0)
    draws = models.PositiveIntegerField(default=0)
    losses = models.PositiveIntegerField(default=0)
    goals_scored = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Player(models.Model):
    POSITION_CHOICES = [
        ('GK', 'Goalkeeper'),
        ('DF', 'Defender'),
        ('MF', 'Midfielder'),
        ('FW', 'Forward')
    ]

    name = models.CharField(max_length=100)
    position = models.CharField(max_length=2, choices=POSITION_CHOICES, blank=True)
    number = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(99)]
    )
    # Free players have no team
    team = models.ForeignKey(
        Team,
        related_name='players',
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )

    class Meta:
        ordering = ['team', 'number', 'name']

    def __str__(self):
        return self.name


class Tournament(models.Model):
    STATUS_UPCOMING = 'upcoming'
    STATUS_ONGOING = 'ongoing'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_UPCOMING, 'Upcoming'),
        (STATUS_ONGOING, 'Ongoing'),
        (STATUS_COMPLETED, 'Completed')
    ]

    slug = models.SlugField(
        unique=True,
        editable=False,
        default=''
    )
    name = models.CharField(max_length=100)
    logo = models.CharField(max_length=255, blank=True)
    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)
    prize = models.CharField(max_length=255, blank=True)
    rules = models.TextField(blank=True)
    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    stadium = models.ForeignKey(
        Stadium,
        related_name='tournaments',
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    number_of_groups = models.PositiveSmallIntegerField(default=2)
    teams_per_group = models.PositiveSmallIntegerField(default=4)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_UPCOMING
    )
    draw_completed = models.BooleanField(default=False)
    teams = models.ManyToManyField(
        Team,
        through='TournamentTeam',
        related_name='tournaments',
        blank=True
    )

    class Meta:
        ordering = ['-start_date', 'name']

    def clean(self):
        if self.number_of_groups * self.teams_per_group < 2:
            raise ValidationError("Tournament must have at least 2 teams")
        if self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "End date cannot be before start date"})

    def save(self, *args, **kwargs):
        if not self.slug:
            timestamp = timezone.now().strftime('%Y%m%d%H%M')
            unique_id = str(uuid.uuid4())[:8]
            self.slug = f"{timestamp}_tournament_{slugify(self.name)}_{unique_id}"
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    @property
    def default_venue(self):
        if self.stadium_id:
            return self.stadium.name
        return settings.MATCHDAY_DEFAULT_VENUE

    def log_state_change(self, event_type, details):
        """Log tournament state changes"""
        log_event(
            event_type,
            {
                'id': self.id,
                'name': self.name,
                'status': self.status,
            },
            details
        )


class TournamentTeam(models.Model):
    tournament = models.ForeignKey(
        Tournament,
        related_name='tournament_teams',
        on_delete=models.CASCADE
    )
    team = models.ForeignKey(
        Team,
        related_name='tournament_entries',
        on_delete=models.CASCADE
    )
    # Set when the group phase is over
    qualified = models.BooleanField(default=False)
    seed = models.PositiveSmallIntegerField(null=True, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['tournament', 'team']
        ordering = ['id']

    def __str__(self):
        return f"{self.team} @ {self.tournament}"


class Group(models.Model):
    name = models.CharField(max_length=50)
    tournament = models.ForeignKey(
        Tournament,
        related_name='groups',
        on_delete=models.CASCADE
    )

    class Meta:
        unique_together = ['tournament', 'name']
        ordering = ['tournament', 'name']

    def __str__(self):
        return f"{self.tournament} - {self.name}"

    def team_ids(self):
        return list(self.group_teams.order_by('id').values_list('team_id', flat=True))


class GroupTeam(models.Model):
    group = models.ForeignKey(
        Group,
        related_name='group_teams',
        on_delete=models.CASCADE
    )
    team = models.ForeignKey(
        Team,
        related_name='group_memberships',
        on_delete=models.CASCADE
    )
    # Copied from the group so the database can enforce one group per tournament
    tournament = models.ForeignKey(
        Tournament,
        related_name='group_teams',
        on_delete=models.CASCADE,
        editable=False
    )
    played = models.PositiveIntegerField(default=0)
    wins = models.PositiveIntegerField(default=0)
    draws = models.PositiveIntegerField(default=0)
    losses = models.PositiveIntegerField(default=0)
    goals_for = models.PositiveIntegerField(default=0)
    goals_against = models.PositiveIntegerField(default=0)
    points = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['tournament', 'team'],
                name='one_group_per_tournament'
            )
        ]

    def save(self, *args, **kwargs):
        self.tournament_id = self.group.tournament_id
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.team} in {self.group.name}"

    @property
    def goal_difference(self):
        return self.goals_for - self.goals_against


class Match(models.Model):
    STAGE_GROUP = 'GROUP'
    STAGE_CHOICES = [
        ('GROUP', 'Group Stage'),
        ('RO16', 'Round of 16'),
        ('QUARTER', 'Quarter Final'),
        ('SEMI', 'Semi Final'),
        ('FINAL', 'Final')
    ]
    KNOCKOUT_STAGES = ['RO16', 'QUARTER', 'SEMI', 'FINAL']

    STATUS_SCHEDULED = 'scheduled'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed')
    ]

    SLOT_CHOICES = [
        ('home', 'Home'),
        ('away', 'Away')
    ]

    tournament = models.ForeignKey(
        Tournament,
        related_name='matches',
        on_delete=models.CASCADE
    )
    group = models.ForeignKey(
        Group,
        related_name='matches',
        on_delete=models.CASCADE,
        null=True,
        blank=True
    )
    # Empty only for bracket slots waiting for qualifiers or winners
    home_team = models.ForeignKey(
        Team,
        related_name='home_matches',
        on_delete=models.PROTECT,
        null=True,
        blank=True
    )
    away_team = models.ForeignKey(
        Team,
        related_name='away_matches',
        on_delete=models.PROTECT,
        null=True,
        blank=True
    )
    date = models.DateField()
    time = models.TimeField()
    venue = models.CharField(max_length=100, blank=True)
    stage = models.CharField(max_length=20, choices=STAGE_CHOICES, default=STAGE_GROUP)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    home_score = models.PositiveSmallIntegerField(null=True, blank=True)
    away_score = models.PositiveSmallIntegerField(null=True, blank=True)
    home_penalties = models.PositiveSmallIntegerField(null=True, blank=True)
    away_penalties = models.PositiveSmallIntegerField(null=True, blank=True)
    bracket_position = models.PositiveSmallIntegerField(null=True, blank=True)
    next_match = models.ForeignKey(
        'self',
        related_name='feeder_matches',
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    next_slot = models.CharField(max_length=4, choices=SLOT_CHOICES, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date', 'time', 'id']
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(home_team=models.F('away_team')),
                name='no_self_matches'
            )
        ]
        indexes = [
            models.Index(fields=['tournament', 'stage', 'group'], name='match_tournament_stage_idx'),
        ]

    def clean(self):
        if self.home_team_id and self.home_team_id == self.away_team_id:
            raise ValidationError("A team cannot play against itself")
        if self.group_id and self.group.tournament_id != self.tournament_id:
            raise ValidationError("Group must belong to this tournament")

    def __str__(self):
        home = self.home_team or 'TBD'
        away = self.away_team or 'TBD'
        return f"{self.stage}: {home} vs {away}"

    @property
    def is_completed(self):
        return self.status == self.STATUS_COMPLETED

    @property
    def is_knockout(self):
        return self.stage in self.KNOCKOUT_STAGES

    def get_winner(self):
        """Get the winning team of the match, None for a draw or unfinished match"""
        if not self.is_completed:
            return None
        if self.home_score > self.away_score:
            return self.home_team
        elif self.away_score > self.home_score:
            return self.away_team
        if self.home_penalties is not None and self.away_penalties is not None:
            if self.home_penalties > self.away_penalties:
                return self.home_team
            elif self.away_penalties > self.home_penalties:
                return self.away_team
        return None

    def log_match_result(self, event_type='MATCH_COMPLETED'):
        """Log match results"""
        winner = self.get_winner()
        self.tournament.log_state_change(
            event_type,
            {
                'match_id': self.id,
                'stage': self.stage,
                'home_team': self.home_team.name,
                'away_team': self.away_team.name,
                'score': f"{self.home_score}-{self.away_score}",
                'winner': winner.name if winner else None
            }
        )
