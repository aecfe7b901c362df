"""
위트니스와 회로 입력 (Prover.toml)
====================================

멤버가 외부 검증자(Noir 회로)에 제출하는 데이터를 정의한다.

**IMT 위트니스**: (leaf_index, siblings[depth], direction_bits[depth], root)
**다항식 위트니스**: (다항식 계수, 멤버의 근/비밀값)

회로의 공개 입력:
  - polynomial_hash = mix(pad(계수, MAX_POLY_DEGREE + 1))
  - nullifier       = mix([secret, verifier_key])

필드 원소는 모두 10진 문자열로 내보낸다 (TOML 정수 범위를 넘기 때문).

사용 예시:
    >>> inputs = merkle_prover_inputs(tree.witness(0), secret, verifier_key)
    >>> print(to_prover_toml(inputs))
"""

from dataclasses import dataclass

import toml

from membership.config import MAX_POLY_DEGREE
from membership.mix import DEFAULT_MIX
from membership.polynomial import pad


@dataclass(frozen=True)
class MerkleWitness:
    """IMT 멤버십 위트니스."""
    leaf_index: int
    leaf: int
    siblings: list
    direction_bits: list
    root: int


@dataclass(frozen=True)
class PolynomialWitness:
    """다항식 멤버십 위트니스. batch_index는 근이 속한 배치."""
    coefficients: list
    secret: int
    batch_index: int = 0


def polynomial_commitment(coefficients, max_degree=MAX_POLY_DEGREE, mix=DEFAULT_MIX):
    """회로 길이로 패딩한 계수 전체의 mix 값 (polynomial_hash)."""
    return mix(pad(coefficients, max_degree + 1))


def nullifier(secret, verifier_key, mix=DEFAULT_MIX):
    """검증자별 이중 사용 방지 값: mix([secret, verifier_key])."""
    return mix([secret, verifier_key])


def merkle_prover_inputs(witness, secret, verifier_key, mix=DEFAULT_MIX):
    """IMT 회로의 Prover.toml 입력을 만든다."""
    return {
        "merkle_root": str(witness.root),
        "nullifier": str(nullifier(secret, verifier_key, mix)),
        "verifier_key": str(verifier_key),
        "secret": str(secret),
        "isKYCed": True,
        "leaf_index": str(witness.leaf_index),
        "merkle_path": [str(s) for s in witness.siblings],
        "path_indices": [str(b) for b in witness.direction_bits],
    }


def polynomial_prover_inputs(witness, verifier_key, max_degree=MAX_POLY_DEGREE,
                             mix=DEFAULT_MIX):
    """다항식 회로의 Prover.toml 입력을 만든다.

    Raises:
        ValueError: 배치 다항식의 차수가 max_degree를 넘을 때
    """
    padded = pad(witness.coefficients, max_degree + 1)
    return {
        "isKYCed": True,
        "nullifier": str(nullifier(witness.secret, verifier_key, mix)),
        "polynomial": [str(c) for c in padded],
        "polynomial_hash": str(mix(padded)),
        "secret": str(witness.secret),
        "verifier_key": str(verifier_key),
    }


def to_prover_toml(inputs):
    """회로 입력 dict를 Prover.toml 문자열로 렌더링한다."""
    return toml.dumps(inputs)
