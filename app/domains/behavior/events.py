"""행동 이벤트 정의

사용자 행동 신호를 태그드 유니온(kind 필드로 구분)으로 표현합니다.
모든 이벤트는 생성 후 변경할 수 없습니다.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from app.core.utils.datetime import ensure_utc, now_utc, parse_iso

ScrollDirection = Literal["up", "down"]


class BaseEvent(BaseModel):
    """행동 이벤트 공통 필드"""

    model_config = ConfigDict(frozen=True)

    occurred_at: datetime = Field(default_factory=now_utc)


class PageView(BaseEvent):
    kind: Literal["page_view"] = "page_view"
    path: str


class SearchQuery(BaseEvent):
    kind: Literal["search"] = "search"
    text: str
    filters: dict[str, Any] = Field(default_factory=dict)


class Click(BaseEvent):
    kind: Literal["click"] = "click"
    href: str = ""
    label: str = ""
    element_id: Optional[str] = None


class ScrollSample(BaseEvent):
    kind: Literal["scroll"] = "scroll"
    offset: float = Field(..., ge=0)
    direction: ScrollDirection = "down"
    velocity: float = Field(default=0.0, ge=0)


class HoverSample(BaseEvent):
    kind: Literal["hover"] = "hover"
    tag: str = ""
    href: Optional[str] = None
    business_id: Optional[str] = None


BehaviorEvent = Annotated[
    Union[PageView, SearchQuery, Click, ScrollSample, HoverSample],
    Field(discriminator="kind"),
]

behavior_event_adapter: TypeAdapter[BehaviorEvent] = TypeAdapter(
    BehaviorEvent
)


@dataclass(frozen=True)
class ElementRef:
    """호버/뷰포트 대상 요소 정보

    브라우저 DOM 요소에서 프리페치와 행동 기록에 필요한 속성만 추린 값입니다.

    Attributes:
        tag: 태그 이름 (예: "A", "DIV")
        href: 링크 주소 (절대 또는 상대 경로)
        business_id: data-business-id 속성
        prefetch_url: data-prefetch 속성
    """

    tag: str = ""
    href: Optional[str] = None
    business_id: Optional[str] = None
    prefetch_url: Optional[str] = None


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _number(value: Any) -> float:
    """숫자 필드 변환 (숫자나 숫자 문자열이 아니면 ValueError)"""
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"not a number: {value!r}")
    return float(value)


def event_from_interaction(
    interaction_type: str,
    data: Optional[dict[str, Any]],
    occurred_at: Optional[datetime] = None,
) -> Optional[BehaviorEvent]:
    """저장된 상호작용 레코드를 행동 이벤트로 변환

    클라이언트 추적기는 camelCase 키(elementId 등)를 보내므로
    snake_case와 함께 모두 허용합니다.

    Args:
        interaction_type: 상호작용 종류 (search, click, page_view, scroll, hover)
        data: 상호작용 데이터
        occurred_at: 발생 시각 (None이면 data의 timestamp, 그마저 없으면 현재 시각)

    Returns:
        행동 이벤트 (알 수 없는 종류면 None)

    Raises:
        ValueError: 숫자 필드가 숫자가 아닌 경우
    """
    data = data or {}
    extra: dict[str, Any] = {}
    if occurred_at is None and isinstance(data.get("timestamp"), str):
        occurred_at = parse_iso(data["timestamp"])
    if occurred_at is not None:
        extra["occurred_at"] = ensure_utc(occurred_at)

    if interaction_type == "search":
        filters = data.get("filters")
        return SearchQuery(
            text=str(_first(data, "query", "text") or ""),
            filters=filters if isinstance(filters, dict) else {},
            **extra,
        )
    if interaction_type == "click":
        element_id = _first(data, "elementId", "element_id")
        return Click(
            href=str(data.get("href") or ""),
            label=str(_first(data, "text", "label") or ""),
            element_id=str(element_id) if element_id else None,
            **extra,
        )
    if interaction_type == "page_view":
        path = _first(data, "path", "url")
        if not path:
            return None
        return PageView(path=str(path), **extra)
    if interaction_type == "scroll":
        return ScrollSample(
            offset=max(_number(_first(data, "y", "offset")), 0.0),
            direction="up" if data.get("direction") == "up" else "down",
            velocity=abs(_number(data.get("velocity"))),
            **extra,
        )
    if interaction_type == "hover":
        business_id = _first(data, "businessId", "business_id")
        return HoverSample(
            tag=str(_first(data, "type", "tag") or ""),
            href=data.get("href"),
            business_id=str(business_id) if business_id else None,
            **extra,
        )
    return None
