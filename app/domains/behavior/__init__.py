"""Behavior 도메인 모듈

사용자 행동 신호를 기록하고 보관하는 도메인입니다.

구조:
    - events.py: 행동 이벤트 (태그드 유니온) 및 상호작용 레코드 변환
    - profile.py: 장기 사용자 프로필과 프로필 저장소
    - recorder.py: 세션 행동 기록기
    - models.py: SQLAlchemy 모델 (상호작용, 행동 패턴, 명시적 선호도)
    - repository.py: 데이터 접근 계층
    - exceptions.py: 도메인 예외
"""

from app.domains.behavior.events import (
    BehaviorEvent,
    Click,
    ElementRef,
    HoverSample,
    PageView,
    ScrollSample,
    SearchQuery,
    event_from_interaction,
)
from app.domains.behavior.exceptions import RecorderPersistenceError
from app.domains.behavior.models import (
    UserBehaviorPattern,
    UserInteraction,
    UserPreference,
)
from app.domains.behavior.profile import (
    InMemoryProfileStore,
    JsonFileProfileStore,
    ProfileStore,
    UserProfile,
)
from app.domains.behavior.recorder import BehaviorRecorder
from app.domains.behavior.repository import BehaviorRepository

__all__ = [
    "BehaviorEvent",
    "PageView",
    "SearchQuery",
    "Click",
    "ScrollSample",
    "HoverSample",
    "ElementRef",
    "event_from_interaction",
    "UserProfile",
    "ProfileStore",
    "InMemoryProfileStore",
    "JsonFileProfileStore",
    "BehaviorRecorder",
    "BehaviorRepository",
    "UserInteraction",
    "UserBehaviorPattern",
    "UserPreference",
    "RecorderPersistenceError",
]
