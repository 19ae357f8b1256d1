from django.db.models.signals import pre_save
from django.dispatch import receiver

from .exceptions import ValidationError
from .models import Match, Tournament


@receiver(pre_save, sender=Tournament, dispatch_uid='log_tournament_update')
def log_tournament_update(sender, instance, **kwargs):
    if not instance.pk:  # Only log updates, not creation
        return
    old_status = Tournament.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    if old_status and old_status != instance.status:
        instance.log_state_change(
            'STATUS_CHANGE',
            f"Tournament status changed from {old_status} to {instance.status}"
        )


@receiver(pre_save, sender=Match, dispatch_uid='validate_match')
def validate_match(sender, instance, **kwargs):
    """Ensure that a team does not play against itself."""
    if instance.home_team_id and instance.home_team_id == instance.away_team_id:
        raise ValidationError("A team cannot play against itself")
