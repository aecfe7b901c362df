"""
설정 상수
==========

회로에 컴파일된 상수와 같아야 하는 값들. 불일치는 호출자 수준의
설정 오류이며 코어가 스스로 감지할 수 없다.

  - TREE_DEPTH: IMT 깊이 (용량 2^TREE_DEPTH), Noir 회로의 TREE_DEPTH
  - MAX_POLY_DEGREE: 배치 하나의 최대 근 개수, Noir 회로의 MAX_POLY_DEGREE

환경 변수:
  MEMBERSHIP_TREE_DEPTH, MEMBERSHIP_MAX_DEGREE, MEMBERSHIP_DB, MEMBERSHIP_LOG_LEVEL
"""

import logging
import os
from dataclasses import dataclass


TREE_DEPTH = 20

MAX_POLY_DEGREE = 128

DEFAULT_DB_PATH = "db.json"


def _positive_int(name, raw):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{name}는 정수여야 합니다: {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name}는 1 이상이어야 합니다: {value}")
    return value


@dataclass(frozen=True)
class MembershipConfig:
    """애플리케이션 설정.

    속성:
        tree_depth: IMT 깊이
        max_degree: 배치당 최대 근 개수
        db_path: TinyDB 파일 경로. None이면 메모리 저장소를 쓴다.
        log_level: logging 레벨 이름
    """
    tree_depth: int = TREE_DEPTH
    max_degree: int = MAX_POLY_DEGREE
    db_path: str = DEFAULT_DB_PATH
    log_level: str = "INFO"

    def __post_init__(self):
        _positive_int("tree_depth", self.tree_depth)
        _positive_int("max_degree", self.max_degree)
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"알 수 없는 로그 레벨: {self.log_level!r}")

    @property
    def log_level_value(self):
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_env(cls, environ=None):
        """환경 변수에서 설정을 읽는다. 없는 값은 기본값을 쓴다."""
        env = os.environ if environ is None else environ
        return cls(
            tree_depth=_positive_int(
                "MEMBERSHIP_TREE_DEPTH", env.get("MEMBERSHIP_TREE_DEPTH", TREE_DEPTH)),
            max_degree=_positive_int(
                "MEMBERSHIP_MAX_DEGREE", env.get("MEMBERSHIP_MAX_DEGREE", MAX_POLY_DEGREE)),
            db_path=env.get("MEMBERSHIP_DB", DEFAULT_DB_PATH),
            log_level=env.get("MEMBERSHIP_LOG_LEVEL", "INFO"),
        )
