from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel
from typing import Optional, List

from app.domain.match_schema import confidence_band


class _Record(BaseModel):
    # camelCase on the wire, snake_case in python; reports never change after creation
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Profile(_Record):
    full_name: str
    section_year: str
    contact_number: str


class LostItemCreate(_Record):
    profile: Profile
    item_name: str
    date_lost: str
    last_known_location: str
    description: str
    image: str  # data URL or remote URL


class LostItemReport(LostItemCreate):
    id: str


class FoundItemCreate(_Record):
    item_name: str
    image: str  # data URL or remote URL
    description: str
    location_found: str
    date_found: str
    finder_name: Optional[str] = None
    finder_contact: Optional[str] = None


class FoundItemReport(FoundItemCreate):
    id: str


class MatchResult(_Record):
    id: str
    confidence: float
    reasoning: str


class ScoredMatch(LostItemReport):
    confidence: float
    reasoning: str

    @computed_field
    @property
    def band(self) -> str:
        return confidence_band(self.confidence)


class DashboardError(_Record):
    kind: str  # configuration_error | oracle_call_failure
    message: str


class DashboardState(_Record):
    selected_found_id: Optional[str] = None
    loading: bool = False
    matches: List[ScoredMatch] = []
    dismissed: List[str] = []
    error: Optional[DashboardError] = None


class NotificationAck(_Record):
    lost_item_id: str
    recipient: str
    message: str
    delivered: bool = False
