"""사용자 행동 프로필과 저장소

프로필은 세션/사용자 단위로 누적되는 장기 행동 요약입니다.
저장소는 브라우저 localStorage와 같은 key-value 인터페이스를 따릅니다.
"""

import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.utils.datetime import now_utc

# update_profile로 값을 추가할 수 있는 목록 필드
PROFILE_LIST_FIELDS = frozenset(
    {"frequent_paths", "search_patterns", "preferred_categories"}
)


class UserProfile(BaseModel):
    """장기 사용자 행동 프로필

    목록은 오래된 순(가장 최근이 마지막)으로 저장됩니다.
    JSON은 클라이언트 저장 형식과 같은 camelCase 키를 사용합니다.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    frequent_paths: list[str] = Field(default_factory=list)
    search_patterns: list[str] = Field(default_factory=list)
    preferred_categories: list[str] = Field(default_factory=list)
    session_count: int = Field(default=0, ge=0)
    last_visit: datetime = Field(default_factory=now_utc)


class ProfileStore(Protocol):
    """프로필 저장소 인터페이스"""

    def get(self, key: str) -> Optional[UserProfile]:
        ...

    def set(self, key: str, profile: UserProfile) -> None:
        ...


class InMemoryProfileStore:
    """메모리 프로필 저장소

    직렬화된 JSON을 보관하므로 저장 이후의 변경이 저장본에 새지 않습니다.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[UserProfile]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return UserProfile.model_validate_json(raw)

    def set(self, key: str, profile: UserProfile) -> None:
        self._data[key] = profile.model_dump_json(by_alias=True)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileProfileStore:
    """파일 기반 프로필 저장소 (키마다 JSON 파일 하나)"""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        # 키에 경로 문자가 섞여도 안전하도록 해시를 파일명으로 사용
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Optional[UserProfile]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return UserProfile.model_validate_json(path.read_text("utf-8"))

    def set(self, key: str, profile: UserProfile) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(
            profile.model_dump_json(by_alias=True), encoding="utf-8"
        )
        tmp_path.replace(path)
