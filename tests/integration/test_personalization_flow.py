"""상호작용 추적 → 개인화 홈페이지 흐름 통합 테스트 (PostgreSQL)"""

import pytest

from app.domains.behavior.repository import BehaviorRepository
from app.domains.personalization.models import Business
from app.domains.personalization.repository import BusinessRepository

pytestmark = pytest.mark.integration

BASE_URL = "/api/v1/homepage/personalized"


class TestPersonalizationFlow:
    """추적한 행동이 홈페이지에 반영되는지 검증"""

    @pytest.mark.asyncio
    async def test_tracked_searches_personalize_homepage(
        self, client, db_session
    ):
        """검색 5회 후 패턴 저장, 개인화 점수 반영"""
        # Given
        businesses = BusinessRepository(db_session)
        await businesses.add_category(
            name="Restaurants", slug="restaurants", business_count=10
        )
        await businesses.add_business(
            Business(name="Austin Pizza", rating=4.7, review_count=90),
            ["restaurants"],
        )

        # When
        responses = [
            await client.post(
                f"{BASE_URL}/track",
                json={
                    "sessionId": "flow-1",
                    "interactionType": "search",
                    "interactionData": {"query": "pizza near me"},
                },
            )
            for _ in range(5)
        ]
        homepage = await client.get(BASE_URL, params={"session_id": "flow-1"})

        # Then
        assert responses[3].json()["data"]["patterns_updated"] is False
        assert responses[4].json()["data"] == {
            "interaction_count": 5,
            "patterns_updated": True,
        }
        pattern = await BehaviorRepository(db_session).get_latest_pattern(
            "flow-1"
        )
        assert pattern is not None
        assert "restaurants" in pattern.patterns["businessTypes"]

        data = homepage.json()["data"]
        assert data["metadata"]["personalization_score"] > 0
        assert data["metadata"]["fallback"] is False
        assert float(homepage.headers["x-personalization-score"]) > 0

    @pytest.mark.asyncio
    async def test_empty_session_gets_generic_homepage(self, client):
        """행동 데이터가 없으면 점수 0, 히어로 섹션 유지"""
        response = await client.get(BASE_URL, params={"session_id": "new"})

        data = response.json()["data"]
        assert data["metadata"]["personalization_score"] == 0
        assert data["sections"][0]["type"] == "hero"
