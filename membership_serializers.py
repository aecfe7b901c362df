"""
멤버십 데이터 직렬화/역직렬화 헬퍼
====================================

TinyDB(JSON)에 저장 가능한 형태로 트리, 배치, 위트니스를 변환한다.
필드 원소는 JSON 정수 정밀도를 넘으므로 모두 10진 문자열로 저장한다.
"""

from membership.batch import Batch, BatchManager
from membership.field import BN254
from membership.imt import IncrementalMerkleTree
from membership.mix import DEFAULT_MIX


# ─── 필드 원소 ───

def serialize_fr(val):
    """int / FR → str(int)"""
    return str(int(val))


def deserialize_fr(s, field=BN254):
    """str(int) → 정규 int. "0x" 접두사 16진수도 허용한다.

    Raises:
        ValueError: 정수로 해석할 수 없는 값
    """
    if isinstance(s, bool):
        raise ValueError(f"필드 원소가 아닙니다: {s!r}")
    if isinstance(s, int):
        return field.canonicalize(s)
    if not isinstance(s, str):
        raise ValueError(f"필드 원소가 아닙니다: {s!r}")
    s = s.strip()
    sign, digits = ("-", s[1:]) if s.startswith("-") else ("", s)
    if digits[:2].lower() == "0x":
        return field.canonicalize(int(sign + digits[2:], 16))
    return field.canonicalize(int(s, 10))


def serialize_fr_list(lst):
    """list[int] → list[str]"""
    return [str(int(v)) for v in lst]


def deserialize_fr_list(data, field=BN254):
    """list[str] → list[int]"""
    return [deserialize_fr(s, field) for s in data]


# ─── IMT ───

def serialize_tree(tree):
    """IncrementalMerkleTree → dict

    nodes는 (level, index, value) 행 리스트이며 레벨 1 이상만 담는다.
    """
    leaves = []
    nodes = []
    for level, index, value in tree.node_rows():
        if level == 0:
            leaves.append(serialize_fr(value))
        else:
            nodes.append([level, index, serialize_fr(value)])
    return {
        "depth": tree.depth,
        "leaves": leaves,
        "nodes": nodes,
    }


def deserialize_tree(data, mix=DEFAULT_MIX):
    """dict → IncrementalMerkleTree (재해싱 없이 복원)"""
    if data is None:
        return None
    return IncrementalMerkleTree.from_state(
        data["depth"],
        [int(s) for s in data["leaves"]],
        [(level, index, int(value)) for level, index, value in data["nodes"]],
        mix,
    )


# ─── 배치 ───

def serialize_batches(manager):
    """BatchManager → dict (근→배치 맵은 근 리스트에서 재구성하므로 저장하지 않는다)"""
    return {
        "max_degree": manager.max_degree,
        "batches": [
            {
                "polynomial": serialize_fr_list(batch.polynomial),
                "roots": serialize_fr_list(batch.roots),
            }
            for batch in manager.batches
        ],
    }


def deserialize_batches(data, field=BN254):
    """dict → BatchManager"""
    if data is None:
        return None
    batches = [
        Batch(
            polynomial=[int(s) for s in b["polynomial"]],
            roots=[int(s) for s in b["roots"]],
        )
        for b in data["batches"]
    ]
    return BatchManager.from_batches(batches, data["max_degree"], field)


# ─── 위트니스 ───

def serialize_merkle_witness(witness):
    """MerkleWitness → dict"""
    return {
        "leaf_index": witness.leaf_index,
        "leaf": serialize_fr(witness.leaf),
        "siblings": serialize_fr_list(witness.siblings),
        "direction_bits": list(witness.direction_bits),
        "root": serialize_fr(witness.root),
    }


def serialize_polynomial_witness(witness):
    """PolynomialWitness → dict"""
    return {
        "batch_index": witness.batch_index,
        "coefficients": serialize_fr_list(witness.coefficients),
        "secret": serialize_fr(witness.secret),
    }


def fr_short(val):
    """긴 필드 원소를 화면 표시용으로 줄인다: 앞 8자리...뒤 6자리"""
    s = str(int(val))
    if len(s) <= 16:
        return s
    return s[:8] + "..." + s[-6:]
