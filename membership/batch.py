"""
배치 매니저 (Batch Manager)
============================

다항식 커밋먼트 하나는 회로에 컴파일된 최대 차수 MAX_POLY_DEGREE를 넘을 수
없다. 멤버 수가 이를 넘으면 근을 여러 배치(다항식 인스턴스)에 나눠 담고,
각 근이 어느 배치에 있는지 기록한다.

**배치 정책 (first-fit)**:
  새 근마다 배치 테이블을 앞에서부터 훑어 근 개수 < MAX_POLY_DEGREE인
  첫 배치에 넣는다. 빈자리가 없으면 add_root([1], root)로 새 배치를 연다.
  균형을 맞추지 않으므로 같은 삽입 순서는 항상 같은 배치 구성을 만든다.

  ┌──────────────┬──────────────┬──────────┐
  │ batch 0      │ batch 1      │ batch 2  │
  │ 128 roots    │ 128 roots    │ 37 roots │  ← 마지막 배치만 덜 찰 수 있다
  └──────────────┴──────────────┴──────────┘

**불변식**:
  - add_secrets만 호출했다면 마지막을 제외한 모든 배치는 정확히 MAX_POLY_DEGREE개
  - 근→배치 맵과 각 배치의 근 리스트가 정확히 일치
  - 배치는 병합/분할/삭제되지 않는다 (모든 근이 제거되어도 남는다)

**중복 근**:
  이미 맵에 있는 근이나 한 호출 안에서 반복된 근은 DuplicateRoot로 거부한다.
  거부된 호출은 아무것도 삽입하지 않는다.
"""

import logging
from dataclasses import dataclass, field as dataclass_field

from membership.config import MAX_POLY_DEGREE
from membership.errors import DuplicateRoot, MembershipError, UnknownRoot
from membership.field import BN254
from membership.mix import DEFAULT_MIX
from membership.polynomial import IDENTITY, NotARoot, add_root, degree, evaluate, remove_root
from membership.witness import PolynomialWitness, polynomial_commitment

logger = logging.getLogger(__name__)


@dataclass
class Batch:
    """다항식 하나와 그 근 리스트."""
    polynomial: list = dataclass_field(default_factory=lambda: list(IDENTITY))
    roots: list = dataclass_field(default_factory=list)

    def __len__(self):
        return len(self.roots)

    def copy(self):
        return Batch(list(self.polynomial), list(self.roots))


def add_secrets(batches, root_to_batch, new_roots, max_degree=MAX_POLY_DEGREE,
                field=BN254):
    """새 근들을 first-fit으로 배치에 배정한다.

    입력 batches / root_to_batch는 변경하지 않고 갱신된 사본을 반환한다.

    Args:
        batches: Batch 리스트
        root_to_batch: {root: batch_index}
        new_roots: 추가할 근 시퀀스
        max_degree: 배치당 최대 근 개수
        field: PrimeField

    Returns:
        tuple: (새 batches, 새 root_to_batch)

    Raises:
        DuplicateRoot: 이미 등록된 근이거나 new_roots 안에서 중복될 때
    """
    new_roots = [field.canonicalize(int(r)) for r in new_roots]
    seen = set()
    for root in new_roots:
        if root in root_to_batch or root in seen:
            raise DuplicateRoot(root)
        seen.add(root)

    batches = [b.copy() for b in batches]
    mapping = dict(root_to_batch)

    for root in new_roots:
        for index, batch in enumerate(batches):
            if len(batch.roots) < max_degree:
                break
        else:
            batches.append(Batch())
            index = len(batches) - 1
            logger.debug("opened batch %d", index)

        batch = batches[index]
        batch.polynomial = add_root(batch.polynomial, root, field)
        batch.roots.append(root)
        mapping[root] = index

    return batches, mapping


class BatchManager:
    """배치 테이블과 근→배치 맵을 소유하는 상태 객체.

    변경 연산(add_secrets, remove_secret)은 호출자가 직렬화해야 한다.

    속성:
        max_degree: 배치당 최대 근 개수
        field: PrimeField
        batches: Batch 리스트
        root_to_batch: {root: batch_index}
    """

    def __init__(self, max_degree=MAX_POLY_DEGREE, field=BN254):
        if max_degree < 1:
            raise ValueError(f"max_degree는 1 이상이어야 합니다: {max_degree}")
        self.max_degree = max_degree
        self.field = field
        self.batches = []
        self.root_to_batch = {}

    def __len__(self):
        """등록된 근의 총 개수."""
        return len(self.root_to_batch)

    def __repr__(self):
        return (f"BatchManager(max_degree={self.max_degree}, "
                f"batches={len(self.batches)}, roots={len(self)})")

    @classmethod
    def from_batches(cls, batches, max_degree=MAX_POLY_DEGREE, field=BN254):
        """저장된 배치로 매니저를 복원한다. 맵은 근 리스트에서 다시 만든다.

        다항식과 근 리스트의 일치 여부는 검사하지 않는다.
        필요하면 호출자가 check_invariants()로 확인한다.

        Raises:
            DuplicateRoot: 같은 근이 두 번 이상 저장되어 있을 때
        """
        manager = cls(max_degree, field)
        manager.batches = [b.copy() for b in batches]
        for index, batch in enumerate(manager.batches):
            for root in batch.roots:
                if root in manager.root_to_batch:
                    raise DuplicateRoot(root)
                manager.root_to_batch[root] = index
        return manager

    def add_secrets(self, new_roots):
        """근들을 추가하고 각 근이 배정된 배치 인덱스를 반환한다."""
        new_roots = [self.field.canonicalize(int(r)) for r in new_roots]
        self.batches, self.root_to_batch = add_secrets(
            self.batches, self.root_to_batch, new_roots, self.max_degree, self.field)
        return [self.root_to_batch[r] for r in new_roots]

    def contains(self, root):
        return self.field.canonicalize(int(root)) in self.root_to_batch

    def batch_of(self, root):
        """근이 속한 배치 인덱스.

        Raises:
            UnknownRoot: 등록되지 않은 근
        """
        root = self.field.canonicalize(int(root))
        try:
            return self.root_to_batch[root]
        except KeyError:
            raise UnknownRoot(root) from None

    def remove_secret(self, root):
        """근을 소속 배치에서 제거한다 (조립제법, 재구성 없음).

        배치는 비어도 남으며, 빈자리는 이후 first-fit으로 다시 채워진다.

        Returns:
            int: 근이 있던 배치 인덱스

        Raises:
            UnknownRoot: 등록되지 않은 근
        """
        root = self.field.canonicalize(int(root))
        index = self.batch_of(root)
        batch = self.batches[index]
        result = remove_root(batch.polynomial, root, self.field)
        if isinstance(result, NotARoot):
            raise MembershipError(
                f"배치 {index}의 다항식이 근 {root}를 갖지 않습니다 (나머지 {result.remainder})")

        batch.polynomial = result.coefficients
        batch.roots.remove(root)
        del self.root_to_batch[root]
        logger.debug("removed root from batch %d", index)
        return index

    def witness(self, root):
        """근의 다항식 위트니스 (소속 배치의 계수 + 근)."""
        index = self.batch_of(root)
        return PolynomialWitness(
            coefficients=list(self.batches[index].polynomial),
            secret=self.field.canonicalize(int(root)),
            batch_index=index,
        )

    def commitment(self, batch_index, mix=DEFAULT_MIX):
        """배치의 공개 커밋먼트 (패딩된 계수의 mix 값)."""
        return polynomial_commitment(
            self.batches[batch_index].polynomial, self.max_degree, mix)

    def check_invariants(self):
        """맵/근 리스트/다항식이 서로 일치하는지 확인한다."""
        expected = {}
        for index, batch in enumerate(self.batches):
            if len(batch.roots) > self.max_degree:
                return False
            if degree(batch.polynomial) != len(batch.roots):
                return False
            for root in batch.roots:
                if evaluate(batch.polynomial, root, self.field) != 0:
                    return False
                expected[root] = index
        return expected == self.root_to_batch
