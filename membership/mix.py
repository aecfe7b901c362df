"""
믹스(mix) 함수: 필드 원소 시퀀스 → 필드 원소
==============================================

트리와 다항식 커밋먼트가 사용하는 해시/압축 원시함수의 기본 구현.

코어 코드는 mix를 블랙박스로 취급한다. `Sequence[int] -> int` 형태의
호출 가능 객체라면 무엇이든 주입할 수 있다 (예: 회로와 일치하는
Poseidon2 바인딩). 여기서는 SHA-256 해시를 필드로 축소하는
결정론적 구현을 기본값으로 제공한다.

인코딩:
    label || len(inputs) (4바이트) || 각 입력의 고정 폭 빅엔디안 인코딩

사용 예시:
    >>> from membership.mix import DEFAULT_MIX
    >>> leaf = DEFAULT_MIX([123])
    >>> parent = DEFAULT_MIX([leaf, leaf])
"""

import hashlib

from membership.field import BN254


class Sha256Mix:
    """SHA-256 기반 믹스 함수.

    속성:
        field: 입력과 출력이 속하는 PrimeField
        label: 도메인 분리용 레이블
    """

    def __init__(self, field=BN254, label=b"membership-mix"):
        self.field = field
        self.label = bytes(label)

    def __repr__(self):
        return f"Sha256Mix({self.field!r}, label={self.label!r})"

    def __call__(self, inputs):
        """입력 시퀀스를 하나의 필드 원소로 압축한다.

        Args:
            inputs: 정수(또는 FQ 원소) 시퀀스. 비어 있으면 안 된다.

        Returns:
            int: [0, p) 범위의 필드 원소

        Raises:
            ValueError: 입력이 비어 있을 때
        """
        inputs = list(inputs)
        if not inputs:
            raise ValueError("mix 입력이 비어 있습니다")

        width = self.field.byte_length
        h = hashlib.sha256()
        h.update(self.label)
        h.update(len(inputs).to_bytes(4, "big"))
        for x in inputs:
            h.update(self.field.canonicalize(int(x)).to_bytes(width, "big"))
        return int.from_bytes(h.digest(), "big") % self.field.modulus


DEFAULT_MIX = Sha256Mix(BN254)


def hash_to_field(text, field=BN254):
    """UTF-8 문자열의 SHA-256 해시를 필드 원소로 축소한다."""
    if isinstance(text, str):
        text = text.encode("utf-8")
    digest = hashlib.sha256(text).digest()
    return int.from_bytes(digest, "big") % field.modulus


def derive_secret(identifier, salt, field=BN254):
    """멤버 식별자(예: 이메일)와 솔트로부터 비밀값을 유도한다.

    예시:
        >>> derive_secret("test@example.com", "test_salt_123")
    """
    return hash_to_field(identifier + salt, field)
