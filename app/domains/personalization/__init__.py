"""Personalization 도메인 모듈

행동 데이터로 개인화 홈페이지 섹션을 생성하는 도메인입니다.

구조:
    - types.py: 분석 입력/출력 타입
    - analyzer.py: 선호도 분석기
    - sections.py: 섹션 모델과 섹션 생성기
    - experiments.py: A/B 변형 선택
    - store.py: 업체/카테고리 조회 인터페이스
    - models.py: SQLAlchemy 모델 (업체, 카테고리)
    - repository.py: 업체 디렉터리 조회
    - service.py: 홈페이지 개인화 서비스 (캐시, singleflight)
    - router.py: API 엔드포인트
"""

from app.domains.personalization.analyzer import (
    PreferenceAnalyzer,
    get_top_preference,
    get_top_preferences,
)
from app.domains.personalization.experiments import (
    Variant,
    apply_variant,
    hash_identifier,
    select_variant,
)
from app.domains.personalization.sections import (
    Section,
    SectionGenerator,
    SectionType,
)
from app.domains.personalization.types import (
    BehaviorData,
    ExplicitPreference,
    PreferenceAnalysis,
    StoredPatterns,
)

__all__ = [
    "PreferenceAnalyzer",
    "get_top_preference",
    "get_top_preferences",
    "Variant",
    "hash_identifier",
    "select_variant",
    "apply_variant",
    "Section",
    "SectionType",
    "SectionGenerator",
    "BehaviorData",
    "ExplicitPreference",
    "PreferenceAnalysis",
    "StoredPatterns",
]
