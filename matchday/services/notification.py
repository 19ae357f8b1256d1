import logging

logger = logging.getLogger('matchday.state')


def notify_match_completed(match):
    """Notify both teams that the match result is final"""
    logger.info(
        "Match result recorded",
        extra={
            'event_type': 'MATCH_RESULT_NOTIFIED',
            'tournament_data': {
                'id': match.tournament_id,
                'name': match.tournament.name,
                'home_team': match.home_team.name,
                'away_team': match.away_team.name,
                'score': f"{match.home_score}-{match.away_score}"
            }
        }
    )


def notify_team_qualified(tournament, team, seed):
    """Tell a team it goes through to the final phase"""
    logger.info(
        "Team qualified for the final phase",
        extra={
            'event_type': 'TEAM_QUALIFIED',
            'tournament_data': {
                'id': tournament.id,
                'name': tournament.name,
                'team': team.name,
                'seed': seed
            }
        }
    )
