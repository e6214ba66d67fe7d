from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field


class StructuredRecord(BaseModel):
    """One element of the articleList JSON `body` array, kept as-is."""
    kind: Literal["structured"] = "structured"
    payload: Dict[str, Any] = Field(default_factory=dict)


class RenderedRecord(BaseModel):
    """Text pulled from one `.item` node of the rendered listing page."""
    kind: Literal["rendered"] = "rendered"
    title: str = ""
    price_text: str = ""
    info_text: str = ""
    href: str = ""
    image_url: str = ""


RawRecord = Annotated[Union[StructuredRecord, RenderedRecord], Field(discriminator="kind")]


class LocationCluster(BaseModel):
    cluster_id: str
    count: int = 0
    lat: Optional[float] = None
    lon: Optional[float] = None
    zoom: Optional[int] = None


class Location(BaseModel):
    """A location identifier the articleList endpoint accepts (cortarNo or lgeo)."""
    kind: Literal["area", "cluster"]
    code: str
    label: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    zoom: int = 14


class Status(str, Enum):
    SUCCESS = "success"
    SKIP = "skip"
    FAILURE = "failure"


T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    status: Status
    value: Optional[T] = None
    reason: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, value: T, **meta) -> "Outcome[T]":
        return cls(Status.SUCCESS, value, meta=meta)

    @classmethod
    def skip(cls, reason: str, value: Optional[T] = None) -> "Outcome[T]":
        return cls(Status.SKIP, value, reason)

    @classmethod
    def fail(cls, reason: str, value: Optional[T] = None) -> "Outcome[T]":
        return cls(Status.FAILURE, value, reason)

    @property
    def succeeded(self) -> bool:
        return self.status is Status.SUCCESS
