"""Pydantic models for council subjects and their matching inputs."""

from pydantic import BaseModel, ConfigDict, Field

from models.types import (
    LocationID,
    ProximityImportance,
    SubjectID,
    TopicID,
    TopicImportance,
    UserID,
)


class Subject(BaseModel):
    """Snapshot of an agenda subject taken when notifications are created."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: SubjectID
    name: str = ""
    topic_id: TopicID | None = None
    location_id: LocationID | None = None


class SubjectImportance(BaseModel):
    """How broadly to notify about a subject in one notification run."""

    model_config = ConfigDict(frozen=True)

    topic_importance: TopicImportance = "doNotNotify"
    proximity_importance: ProximityImportance = "none"

    @property
    def is_disabled(self) -> bool:
        return (
            self.topic_importance == "doNotNotify"
            and self.proximity_importance == "none"
        )


class UserPreference(BaseModel):
    """A user's subscribed locations and topics for one city."""

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UserID
    location_ids: list[LocationID] = Field(default_factory=list)
    interest_ids: list[TopicID] = Field(default_factory=list)
