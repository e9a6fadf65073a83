"""Request bodies accepted by the Deal Advisor API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deal_advisor.models.deal import Deal, Milestone
from deal_advisor.models.suggestion import Priority, SuggestionType
from deal_advisor.snapshot import DealSnapshot


class SnapshotRequest(BaseModel):
    """A deal snapshot plus the evaluation instant."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    deals: list[Deal] = Field(default_factory=list)
    milestones_by_deal: dict[str, list[Milestone]] = Field(default_factory=dict)
    now: datetime | None = Field(
        default=None, description="Evaluation instant; defaults to the server's UTC clock"
    )

    def snapshot(self) -> DealSnapshot:
        return DealSnapshot.build(self.deals, self.milestones_by_deal)


class SuggestionsRequest(SnapshotRequest):
    """Snapshot plus the caller's transient display state."""

    dismissed_ids: list[str] = Field(default_factory=list)
    type: SuggestionType | None = None
    priority: Priority | None = None
    limit: int | None = Field(default=None, ge=0)


class MilestonesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    milestones: list[Milestone] = Field(default_factory=list)
    now: datetime | None = None
