"""
Result payloads returned by the scheduling and qualification services.
"""
from typing import List
from pydantic import BaseModel, Field


class GenerationSummary(BaseModel):
    total_matches: int = Field(0, ge=0, description="Matches created by this run")
    total_days: int = Field(0, ge=0, description="Distinct match days used")
    group_matches: int = Field(0, ge=0)
    final_matches: int = Field(0, ge=0, description="Bracket matches created")


class FinalPhaseSummary(BaseModel):
    total_matches: int = Field(0, ge=0)
    round_of_16: int = Field(0, ge=0)
    quarters: int = Field(0, ge=0)
    semis: int = Field(0, ge=0)
    final: int = Field(0, ge=0)


class QualifiedTeam(BaseModel):
    team_id: int
    team_name: str
    group: str
    position: int = Field(..., ge=1, description="Final position in the group")
    seed: int = Field(..., ge=1)


class QualificationSummary(BaseModel):
    qualified_teams: List[QualifiedTeam] = Field(default_factory=list)
    seeded_matches: int = Field(0, ge=0)


class DrawSummary(BaseModel):
    groups: dict = Field(default_factory=dict, description="Group name to team ids")
