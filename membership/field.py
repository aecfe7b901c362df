"""
멤버십 커밋먼트 기반 모듈: 유한체(Finite Field) 산술
======================================================

머클 트리와 다항식 커밋먼트가 공유하는 모듈러 산술을 정의한다.

**유한체 컨텍스트 PrimeField**:
  소수 p를 한 번 바인딩한 불변 객체. 모든 연산은 정수를 받아
  [0, p) 범위의 정규(canonical) 정수를 돌려준다.
  - canonicalize(x): x mod p (음수도 [0, p)로 사상)
  - add / sub / mul: 정수 연산 후 canonicalize
  전역 가변 상태가 없으므로 서로 다른 모듈러스를 동시에 사용할 수 있다.

**기본 체 BN254**:
  bn128(BN254) 곡선의 스칼라 필드. Noir 회로가 사용하는 필드와 같다.
  - p = 21888242871839275222246405745257275088548364400416034343698204186575808495617

사용 예시:
    >>> from membership.field import BN254, FR
    >>> BN254.sub(0, 1) == BN254.modulus - 1   # True
    >>> BN254.element(7)                       # FR(7)
    >>> small = PrimeField(97)
    >>> small.mul(45, 67)                      # 8
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


# ─────────────────────────────────────────────────────────────────────
# BN254 스칼라 필드 FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ를 상속하여 +, -, *, /, ** 연산을 제공한다.
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (필드 크기)
CURVE_ORDER = bn128.curve_order


# ─────────────────────────────────────────────────────────────────────
# 유한체 컨텍스트
# ─────────────────────────────────────────────────────────────────────

class PrimeField:
    """소수 모듈러스 p에 바인딩된 유한체 컨텍스트.

    트리/다항식 코드는 이 객체를 통해서만 모듈러 연산을 수행한다.
    연산은 파이썬 임의 정밀도 정수 위에서 이뤄지며 실패하지 않는다.

    속성:
        modulus: 소수 p
        element_type: 이 필드의 py_ecc FQ 원소 타입

    예시:
        >>> F = PrimeField(97)
        >>> F.canonicalize(-1)   # 96
        >>> F.sub(3, 5)          # 95
    """

    __slots__ = ("modulus", "element_type")

    def __init__(self, modulus, element_type=None):
        """유한체 컨텍스트를 만든다.

        Args:
            modulus: 소수 p (소수성은 검사하지 않는다)
            element_type: 원소 타입. None이면 FQ를 상속한 타입을 생성한다.

        Raises:
            ValueError: modulus < 2
        """
        if modulus < 2:
            raise ValueError(f"모듈러스는 2 이상이어야 합니다: {modulus}")
        if element_type is None:
            element_type = type(f"F{modulus}", (FQ,), {"field_modulus": modulus})
        object.__setattr__(self, "modulus", modulus)
        object.__setattr__(self, "element_type", element_type)

    def __setattr__(self, name, value):
        raise AttributeError("PrimeField는 불변 객체입니다")

    def __repr__(self):
        return f"PrimeField({self.modulus})"

    def __eq__(self, other):
        return isinstance(other, PrimeField) and self.modulus == other.modulus

    def __hash__(self):
        return hash(("PrimeField", self.modulus))

    @property
    def byte_length(self):
        """정규 원소를 빅엔디안으로 인코딩할 때의 바이트 수."""
        return (self.modulus.bit_length() + 7) // 8

    def canonicalize(self, x):
        """임의의 정수를 [0, p) 범위로 사상한다."""
        return x % self.modulus

    def is_canonical(self, x):
        return 0 <= x < self.modulus

    def add(self, a, b):
        """(a + b) mod p"""
        return self.canonicalize(a + b)

    def sub(self, a, b):
        """(a - b) mod p. 결과는 항상 음이 아니다."""
        return self.canonicalize(a - b)

    def mul(self, a, b):
        """(a * b) mod p"""
        return self.canonicalize(a * b)

    def neg(self, a):
        """-a mod p"""
        return self.canonicalize(-a)

    def element(self, x):
        """정수를 이 필드의 FQ 원소로 변환한다."""
        return self.element_type(self.canonicalize(int(x)))


# 기본 필드: Noir 회로의 BN254 스칼라 필드
BN254 = PrimeField(CURVE_ORDER, FR)
