from typing import Literal, Optional

from pydantic import BaseModel, Field

from .scoring import ThrowResult


class ThrowCreate(BaseModel):
    result: ThrowResult


class ThrowOut(BaseModel):
    throw_number: int
    result: ThrowResult


class RoundOut(BaseModel):
    round_number: int
    throws: list[ThrowOut]
    round_score: int
    complete: bool


class SessionStatusOut(BaseModel):
    state: Literal["ready", "in_progress", "completed"]
    current_round: int
    current_throw: int
    current_ppr: float
    total_bags_in_hole: int
    bags_on_board: int
    bags_off_board: int
    four_baggers: int
    throws_recorded: int
    can_undo: bool
    rounds: list[RoundOut]


class SaveSessionRequest(BaseModel):
    bag_type: Optional[str] = Field(default=None, min_length=1)
    throwing_style: Optional[str] = Field(default=None, min_length=1)


class SummaryOut(BaseModel):
    id: str
    saved_at: str
    points_per_round: float
    total_bags_in_hole: int
    bags_on_board: int
    bags_off_board: int
    four_baggers: int
    bag_type: str
    throwing_style: Optional[str]
    in_hole_percentage: float
    on_board_percentage: float
    off_board_percentage: float


class SummaryPageOut(BaseModel):
    page: int
    page_size: int
    total: int
    has_more: bool
    summaries: list[SummaryOut]


class SummaryLabelsUpdate(BaseModel):
    bag_type: Optional[str] = Field(default=None, min_length=1)
    throwing_style: Optional[str] = Field(default=None, min_length=1)


class DistributionOut(BaseModel):
    in_hole: float
    on_board: float
    off_board: float


class AnalyticsOut(BaseModel):
    total_sessions: int
    average_ppr: float
    total_bags_thrown: int
    four_bagger_rate: float
    throw_distribution: DistributionOut
    ppr_trend: float
    four_bagger_trend: float
    best_session_ppr: Optional[float]
    most_four_baggers: Optional[int]
    highest_in_hole_percentage: Optional[float]


class PlacementPointOut(BaseModel):
    id: str
    saved_at: str
    points_per_round: float
    four_baggers: int
    in_hole: float
    on_board: float
    off_board: float


class LabelPerformanceOut(BaseModel):
    label: str
    total_sessions: int
    average_ppr: float
    four_bagger_rate: float
    in_hole_percentage: float
    on_board_percentage: float
    off_board_percentage: float
    best_ppr: Optional[float]


class LabelCreate(BaseModel):
    name: str = Field(min_length=1)


class DefaultLabelUpdate(BaseModel):
    name: Optional[str] = None


class LabelsOut(BaseModel):
    labels: list[str]
    default: Optional[str]
