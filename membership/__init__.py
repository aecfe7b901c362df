"""
멤버십 커밋먼트 엔진
=====================

비밀값의 집합 멤버십을 영지식 회로에 증명하기 위한 두 가지 커밋먼트 방식.

  ┌──────────────────────────┬──────────────────────────────────────┐
  │  증분 머클 트리 (IMT)      │  다항식 근 커밋먼트 + 배치 매니저       │
  ├──────────────────────────┼──────────────────────────────────────┤
  │  커밋먼트: 머클 루트        │  커밋먼트: 배치 다항식 계수 (해시)       │
  │  위트니스: 형제 해시 + 방향  │  위트니스: 계수 리스트 + 비밀값          │
  │  삽입/삭제: O(depth)       │  근 추가/제거: O(degree)               │
  └──────────────────────────┴──────────────────────────────────────┘

사용 예시:
    >>> from membership import IncrementalMerkleTree, BatchManager
    >>> tree = IncrementalMerkleTree(depth=20)
    >>> tree.insert_member(secret)
    >>> manager = BatchManager(max_degree=128)
    >>> manager.add_secrets([secret])
"""

from membership.field import BN254, CURVE_ORDER, FR, PrimeField
from membership.errors import (
    DegreeTooLow,
    DuplicateRoot,
    IndexOutOfRange,
    MembershipError,
    TreeFull,
    UnknownRoot,
)
from membership.mix import DEFAULT_MIX, Sha256Mix
from membership.imt import IncrementalMerkleTree, hash_leaf, verify_path, zero_hashes
from membership.polynomial import (
    NotARoot,
    Quotient,
    add_root,
    evaluate,
    interpolate,
    remove_root,
)
from membership.batch import Batch, BatchManager, add_secrets
from membership.witness import MerkleWitness, PolynomialWitness
