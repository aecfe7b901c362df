"""
다항식 근 커밋먼트 (Polynomial Root Commitment)
================================================

멤버 비밀값 집합을 근으로 갖는 곱 다항식의 계수로 집합을 커밋한다.

  P(x) = (x - r₀)(x - r₁)...(x - r_{n-1})

  - 계수 표현: [c₀, c₁, ..., c_n], 최저차 먼저 (c_i는 x^i의 계수)
  - 항등 다항식 [1]: 아직 근이 없음
  - 근 r에 대해 P(r) = 0 이 멤버십 조건이다
  - 근 곱셈만으로 만든 다항식은 항상 모닉(최고차 계수 1)이다

**근 추가 (x - r 곱셈)**:  O(n)
  new[i+1] += Q[i]       (x 항: 차수 이동)
  new[i]   -= Q[i]·r     (상수 항: -r 배)

**근 제거 (조립제법, synthetic division)**:  O(n)
  최고차 계수부터 내려오며 carry를 누적한다.
  마지막 carry(나머지) = P(r). 0이 아니면 r은 근이 아니므로 NotARoot.

**평가 (Horner's method)**:  O(n)
  P(x) = c₀ + x(c₁ + x(c₂ + ...))

다항식은 정규 정수의 리스트로 다루며 입력 리스트는 변경하지 않는다.

사용 예시:
    >>> poly = interpolate([1, 2, 3])      # [-6, 11, -6, 1] (mod p)
    >>> evaluate(poly, 2)                  # 0
    >>> result = remove_root(add_root(poly, 4), 2)
    >>> isinstance(result, Quotient)       # True
"""

from dataclasses import dataclass

from membership.errors import DegreeTooLow
from membership.field import BN254


# 항등 다항식 P(x) = 1
IDENTITY = (1,)


# ─────────────────────────────────────────────────────────────────────
# 근 제거 결과 타입
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Quotient:
    """근 제거 성공: 한 차수 낮아진 몫 다항식."""
    coefficients: list

    def __bool__(self):
        return True


@dataclass(frozen=True)
class NotARoot:
    """근 제거 실패: root에서의 평가값(나머지)이 0이 아니다.

    원래 다항식은 변경되지 않는다. 호출자는 "제거할 것 없음"으로 처리한다.
    """
    root: int
    remainder: int

    def __bool__(self):
        return False


# ─────────────────────────────────────────────────────────────────────
# 다항식 연산
# ─────────────────────────────────────────────────────────────────────

def degree(poly):
    """차수 = 계수 개수 - 1."""
    return len(poly) - 1


def add_root(poly, new_root, field=BN254):
    """P(x)·(x - new_root)를 계산한다. 차수가 정확히 1 증가한다.

    Args:
        poly: 계수 리스트 (최저차 먼저)
        new_root: 추가할 근

    Returns:
        list[int]: 길이 len(poly) + 1의 새 계수 리스트
    """
    r = field.canonicalize(int(new_root))
    new_poly = [0] * (len(poly) + 1)
    for i, coeff in enumerate(poly):
        # x 항: x^i 계수가 x^(i+1) 계수로 이동
        new_poly[i + 1] = field.add(new_poly[i + 1], coeff)
        # 상수 항: -r 배
        new_poly[i] = field.sub(new_poly[i], field.mul(coeff, r))
    return new_poly


def interpolate(roots, field=BN254):
    """주어진 근(중복 포함)을 정확히 갖는 모닉 다항식.

    [1]에서 시작해 각 근마다 add_root를 적용한다.

    예시:
        >>> interpolate([1, 2, 3])  # (x-1)(x-2)(x-3) = x³ - 6x² + 11x - 6
    """
    poly = list(IDENTITY)
    for root in roots:
        poly = add_root(poly, root, field)
    return poly


def remove_root(poly, root_to_remove, field=BN254):
    """P(x)를 (x - root_to_remove)로 나눈다 (조립제법).

    Args:
        poly: 계수 리스트
        root_to_remove: 제거할 근

    Returns:
        Quotient: 나머지가 0이면 몫 다항식 (차수 1 감소)
        NotARoot: 나머지가 0이 아니면 (poly는 변경되지 않음)

    Raises:
        DegreeTooLow: 차수가 0 이하인 (상수) 다항식
    """
    n = degree(poly)
    if n <= 0:
        raise DegreeTooLow(n)

    r = field.canonicalize(int(root_to_remove))
    quotient = [0] * n
    carry = 0
    for i in range(n, 0, -1):
        coeff = field.add(poly[i], carry)
        quotient[i - 1] = coeff
        carry = field.mul(coeff, r)

    remainder = field.add(poly[0], carry)
    if remainder != 0:
        return NotARoot(root=r, remainder=remainder)
    return Quotient(coefficients=quotient)


def evaluate(poly, x, field=BN254):
    """Horner's method로 P(x)를 계산한다."""
    x = field.canonicalize(int(x))
    result = 0
    for coeff in reversed(poly):
        result = field.add(field.mul(result, x), coeff)
    return result


def is_root(poly, x, field=BN254):
    """P(x) == 0 인지 확인한다."""
    return evaluate(poly, x, field) == 0


def pad(poly, length):
    """회로의 고정 길이에 맞춰 0 계수를 오른쪽에 채운다.

    Raises:
        ValueError: 다항식이 이미 length보다 길 때
    """
    if len(poly) > length:
        raise ValueError(f"다항식 길이 {len(poly)}가 최대 길이 {length}를 초과합니다")
    return list(poly) + [0] * (length - len(poly))
