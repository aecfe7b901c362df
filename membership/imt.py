"""
증분 머클 트리 (Incremental Merkle Tree, IMT)
==============================================

고정 깊이 이진 해시 트리. 멤버가 등록될 때마다 리프를 하나씩 추가하고,
루트를 공개 커밋먼트로, (형제 해시, 방향 비트) 경로를 멤버별 위트니스로 쓴다.

**구조**:
  - 레벨 0: 리프 (삽입 순서대로 0, 1, 2, ... 인덱스)
  - 레벨 1..depth: 내부 노드 = mix([left, right])
  - 레벨 depth, 인덱스 0: 루트

**영 해시(zero hash) 테이블**:
  zero[0] = mix([0])
  zero[i] = mix([zero[i-1], zero[i-1]])
  높이 i인 완전히 빈 서브트리의 해시. 트리 내용과 무관하게 깊이별로 한 번만 계산한다.

**희소 저장**:
  채워진 노드만 {(level, index): hash} 딕셔너리에 저장한다.
  없는 키는 "이 레벨의 서브트리가 아직 비어 있음"을 뜻하며 zero[level]로 읽는다.

**갱신 비용**:
  삽입/갱신/삭제는 리프에서 루트까지 정확히 depth번의 mix 호출로 끝난다.

  레벨 2        root
              /      \\
  레벨 1   n(1,0)    n(1,1)
           /  \\      /  \\
  레벨 0  L0   L1   L2  zero[0]

사용 예시:
    >>> tree = IncrementalMerkleTree(depth=2)
    >>> i = tree.insert_member(123)
    >>> siblings, bits = tree.get_merkle_path(i)
    >>> verify_path(hash_leaf(123), i, siblings, bits, tree.get_root(), depth=2)  # True
"""

import functools
import logging

from membership.config import TREE_DEPTH
from membership.errors import IndexOutOfRange, TreeFull
from membership.mix import DEFAULT_MIX
from membership.witness import MerkleWitness

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 해시 헬퍼
# ─────────────────────────────────────────────────────────────────────

def hash_leaf(secret, mix=DEFAULT_MIX):
    """비밀값에서 리프 해시를 계산한다: mix([secret])."""
    return mix([secret])


def hash_pair(left, right, mix=DEFAULT_MIX):
    """두 자식에서 부모 해시를 계산한다: mix([left, right])."""
    return mix([left, right])


@functools.lru_cache(maxsize=32)
def zero_hashes(depth, mix=DEFAULT_MIX):
    """깊이 depth 트리의 영 해시 테이블 (길이 depth + 1).

    Returns:
        tuple[int]: (zero[0], zero[1], ..., zero[depth])
    """
    zeros = [mix([0])]
    for _ in range(depth):
        zeros.append(mix([zeros[-1], zeros[-1]]))
    return tuple(zeros)


# ─────────────────────────────────────────────────────────────────────
# IncrementalMerkleTree
# ─────────────────────────────────────────────────────────────────────

class IncrementalMerkleTree:
    """고정 깊이 증분 머클 트리.

    속성:
        depth: 트리 깊이 (루트 레벨)
        mix: 믹스 함수
        zeros: 영 해시 테이블

    리프는 채워지지 않음/채워짐 두 상태뿐이며, 삭제는 리프를 zero[0]으로
    덮어쓸 뿐 인덱스를 재사용하지 않는다. 용량은 줄어들지 않는다.
    """

    def __init__(self, depth=TREE_DEPTH, mix=DEFAULT_MIX):
        if depth < 1:
            raise ValueError(f"트리 깊이는 1 이상이어야 합니다: {depth}")
        self.depth = depth
        self.mix = mix
        self.zeros = zero_hashes(depth, mix)
        self._leaves = []
        self._nodes = {}

    def __len__(self):
        """현재 리프 수."""
        return len(self._leaves)

    def __repr__(self):
        return f"IncrementalMerkleTree(depth={self.depth}, size={len(self)})"

    @property
    def capacity(self):
        """최대 리프 수 2^depth."""
        return 1 << self.depth

    # ── 변경 연산 ──

    def insert(self, leaf):
        """다음 빈 인덱스에 리프를 추가한다.

        Args:
            leaf: 리프 값 (보통 hash_leaf(secret))

        Returns:
            int: 삽입된 리프의 인덱스

        Raises:
            TreeFull: 이미 2^depth개의 리프가 있을 때
        """
        index = len(self._leaves)
        if index >= self.capacity:
            raise TreeFull(self.capacity)
        updates = self._recompute_path(index, int(leaf))
        self._leaves.append(int(leaf))
        self._nodes.update(updates)
        logger.debug("leaf inserted at index %d", index)
        return index

    def insert_member(self, secret):
        """비밀값의 리프 해시를 삽입한다."""
        return self.insert(hash_leaf(secret, self.mix))

    def update(self, index, new_leaf):
        """채워진 인덱스의 리프를 교체한다.

        Raises:
            IndexOutOfRange: index가 음수이거나 현재 리프 수 이상일 때
        """
        self._check_index(index)
        updates = self._recompute_path(index, int(new_leaf))
        self._leaves[index] = int(new_leaf)
        self._nodes.update(updates)
        logger.debug("leaf updated at index %d", index)

    def delete(self, index):
        """리프를 zero[0] = mix([0])으로 덮어쓴다. 인덱스는 재사용되지 않는다."""
        self.update(index, self.zeros[0])

    # ── 조회 연산 ──

    def get_root(self):
        """현재 머클 루트. 빈 트리는 zero[depth]."""
        if not self._leaves:
            return self.zeros[self.depth]
        return self._nodes.get((self.depth, 0), self.zeros[self.depth])

    def get_leaf(self, index):
        self._check_index(index)
        return self._leaves[index]

    def get_merkle_path(self, index):
        """리프의 머클 경로를 반환한다.

        레벨 i의 방향 비트는 그 레벨의 노드가 오른쪽 자식일 때 1이다.
        따라서 방향 비트를 리틀 엔디안 이진수로 읽으면 리프 인덱스가 된다.

        Returns:
            tuple: (siblings[depth], direction_bits[depth])

        Raises:
            IndexOutOfRange: 채워지지 않은 인덱스
        """
        self._check_index(index)
        siblings = []
        direction_bits = []
        current = index
        for level in range(self.depth):
            is_right = current & 1
            siblings.append(self._node(level, current ^ 1))
            direction_bits.append(1 if is_right else 0)
            current >>= 1
        return siblings, direction_bits

    def witness(self, index):
        """회로 입력용 머클 위트니스."""
        siblings, direction_bits = self.get_merkle_path(index)
        return MerkleWitness(
            leaf_index=index,
            leaf=self._leaves[index],
            siblings=siblings,
            direction_bits=direction_bits,
            root=self.get_root(),
        )

    def node_rows(self):
        """저장된 모든 (level, index, value) 행. 리프(레벨 0)가 먼저 온다."""
        rows = [(0, i, leaf) for i, leaf in enumerate(self._leaves)]
        rows.extend((level, index, value)
                    for (level, index), value in sorted(self._nodes.items()))
        return rows

    @classmethod
    def from_state(cls, depth, leaves, nodes, mix=DEFAULT_MIX):
        """저장된 리프와 내부 노드로 트리를 복원한다 (재해싱 없음).

        Args:
            depth: 트리 깊이
            leaves: 리프 값 리스트 (인덱스 순)
            nodes: (level, index, value) 행의 이터러블. 레벨은 1..depth.
            mix: 믹스 함수
        """
        tree = cls(depth, mix)
        leaves = [int(v) for v in leaves]
        if len(leaves) > tree.capacity:
            raise ValueError(f"리프 수 {len(leaves)}가 용량 {tree.capacity}를 초과합니다")
        restored = {}
        for level, index, value in nodes:
            if not 1 <= level <= depth:
                raise ValueError(f"잘못된 노드 레벨: {level}")
            restored[(level, index)] = int(value)
        tree._leaves = leaves
        tree._nodes = restored
        return tree

    def check_invariants(self):
        """저장된 내부 노드가 리프로부터 다시 계산한 값과 일치하는지 확인한다."""
        rebuilt = IncrementalMerkleTree(self.depth, self.mix)
        for leaf in self._leaves:
            rebuilt.insert(leaf)
        return rebuilt._nodes == self._nodes

    # ── 내부 헬퍼 ──

    def _check_index(self, index):
        if index < 0 or index >= len(self._leaves):
            raise IndexOutOfRange(index, len(self._leaves))

    def _node(self, level, index):
        """(level, index) 노드 값. 비어 있으면 영 해시."""
        if level == 0:
            if index < len(self._leaves):
                return self._leaves[index]
            return self.zeros[0]
        return self._nodes.get((level, index), self.zeros[level])

    def _recompute_path(self, index, leaf):
        """리프에서 루트까지의 새 노드 값을 계산한다.

        트리를 변경하지 않고 {(level, index): hash} 갱신분만 반환한다.
        호출자는 계산이 끝난 뒤 한 번에 반영한다.
        """
        updates = {}
        current = index
        current_hash = leaf
        for level in range(self.depth):
            sibling = self._node(level, current ^ 1)
            if current & 1:
                left, right = sibling, current_hash
            else:
                left, right = current_hash, sibling
            current >>= 1
            current_hash = hash_pair(left, right, self.mix)
            updates[(level + 1, current)] = current_hash
        return updates


# ─────────────────────────────────────────────────────────────────────
# 독립 검증
# ─────────────────────────────────────────────────────────────────────

def verify_path(leaf, index, siblings, direction_bits, root, mix=DEFAULT_MIX,
                depth=TREE_DEPTH):
    """머클 경로를 검증한다 (순수 함수).

    1. 경로 길이가 트리 깊이와 같은지 확인
       (짧은 경로로 내부 노드를 리프처럼 제시하는 위조를 막는다)
    2. 방향 비트를 리틀 엔디안 이진수로 읽어 index와 일치하는지 확인
    3. leaf에서 시작해 형제 해시와 방향 비트로 루트를 재구성
    4. 재구성한 루트를 root와 비교

    Args:
        leaf: 리프 값
        index: 주장하는 리프 인덱스
        siblings: 형제 해시 리스트 (리프 레벨부터)
        direction_bits: 0/1 리스트, 1이면 현재 노드가 오른쪽 자식
        root: 기대하는 머클 루트
        mix: 믹스 함수
        depth: 트리 깊이. siblings와 direction_bits는 정확히 depth개여야 한다.

    Returns:
        bool: 경로가 유효하면 True
    """
    if len(siblings) != depth or len(direction_bits) != depth:
        return False
    if any(bit not in (0, 1) for bit in direction_bits):
        return False

    reconstructed = 0
    for i, bit in enumerate(direction_bits):
        reconstructed |= int(bit) << i
    if reconstructed != index:
        return False

    current = int(leaf)
    for sibling, bit in zip(siblings, direction_bits):
        if bit:
            current = hash_pair(sibling, current, mix)
        else:
            current = hash_pair(current, sibling, mix)
    return current == int(root)
