from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

DEFAULT_ASPECT_RATIO = "16:9"
VEO3_PROVIDER_ID = "veo-3"


class Veo3Options(BaseModel):
    model: Literal["veo3-fast", "veo3-quality"] = "veo3-fast"
    resolution: Literal["720p", "1080p"] = "720p"
    audio: bool = True


class ReferenceImage(BaseModel):
    filename: str
    content_type: str = "application/octet-stream"
    data: bytes = Field(default=b"", repr=False)


class FormState(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: str
    prompt: str = ""
    negative_prompt: str = ""
    number_of_videos: int = 1
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    duration_seconds: int = 5
    reference_image: Optional[ReferenceImage] = None
    veo3: Veo3Options = Field(default_factory=Veo3Options)
    resolution: Optional[str] = None
    fps: Optional[int] = None


class GenerationMeta(BaseModel):
    provider: str
    cost: Optional[float] = None
    # epoch milliseconds
    started_at: Optional[int] = None
    completed_at: Optional[int] = None
    error: Optional[str] = None

    @property
    def elapsed_seconds(self) -> Optional[int]:
        if not self.started_at or not self.completed_at:
            return None
        return max(1, round((self.completed_at - self.started_at) / 1000))


class GenerationResult(BaseModel):
    videos: List[str] = Field(default_factory=list)
    provider: Optional[str] = None
    cost: Optional[float] = None


class SessionUser(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id


class Session(BaseModel):
    user: SessionUser
    expires_at: AwareDatetime
    updated_at: AwareDatetime
