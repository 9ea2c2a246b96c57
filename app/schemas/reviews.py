from typing import Optional

from pydantic import BaseModel, ConfigDict


class ReviewCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rating: int = 0
    description: str = ""


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rating: Optional[int] = None
    description: Optional[str] = None
