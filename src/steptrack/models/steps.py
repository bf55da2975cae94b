"""Daily step history entry."""
from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class StepRecord(BaseModel):
    day: date = Field(alias="date")
    steps: int = Field(ge=0)
    goal: int

    model_config = ConfigDict(populate_by_name=True)

    @property
    def goal_met(self) -> bool:
        return self.steps >= self.goal
