from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TradeType(str, Enum):
    RENT = "rent"        # 월세: deposit + monthly rent
    JEONSE = "jeonse"    # 전세: lease deposit only
    ALL = "all"


class SearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    areas: List[str] = Field(default_factory=list, description="District names, e.g. 용산구; empty → bounding box")
    min_size: Optional[float] = Field(None, description="Minimum floor area in m²")
    max_size: Optional[float] = Field(None, description="Maximum floor area in m²")
    min_floor: int = 2
    room_types: List[str] = Field(default_factory=list, description="원룸, 투룸, 빌라, 오피스텔, 아파트")
    trade_type: TradeType = TradeType.ALL
    max_deposit: Optional[float] = Field(None, description="Upper bound on deposit, in 만원")
    max_rent: Optional[float] = Field(None, description="Upper bound on monthly rent, in 만원")
    limit: int = Field(20, ge=1)


class Property(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    price: str = ""
    deposit: str = ""
    monthly_rent: str = ""
    size: str = ""
    floor: str = ""
    address: str = ""
    description: str = ""
    link: str = ""
    image_url: str = ""
    source: Literal["structured", "rendered"] = "structured"
