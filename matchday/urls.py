from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    StadiumViewSet, TeamViewSet,
    PlayerViewSet, TournamentViewSet,
    GroupViewSet, MatchViewSet,
    health_check
)

# Set up DRF router
router = DefaultRouter()
router.register(r'stadiums', StadiumViewSet, basename='stadium')
router.register(r'teams', TeamViewSet, basename='team')
router.register(r'players', PlayerViewSet, basename='player')
router.register(r'tournaments', TournamentViewSet, basename='tournament')
router.register(r'groups', GroupViewSet, basename='group')
router.register(r'matches', MatchViewSet, basename='match')

urlpatterns = [
    path('api/', include(router.urls)),
    path('api-auth/', include('rest_framework.urls')),
    path('health/', health_check, name='health_check'),
]
