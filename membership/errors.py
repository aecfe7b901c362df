"""
멤버십 커밋먼트 오류 타입
==========================

모든 오류는 호출 시점에 동기적으로 발생하며, 오류가 난 호출은
자료구조를 변경하지 않는다 (all-or-nothing).

다항식에서 근이 아닌 값을 제거하려는 경우는 예외가 아니라
결과 타입(membership.polynomial.NotARoot)으로 표현한다.
"""


class MembershipError(Exception):
    """멤버십 커밋먼트 오류의 기반 클래스."""


class TreeFull(MembershipError):
    """트리가 2^depth 개의 리프로 가득 찬 상태에서 삽입을 시도했다."""

    def __init__(self, capacity):
        self.capacity = capacity
        super().__init__(f"트리가 가득 찼습니다: 최대 {capacity}개 리프")


class IndexOutOfRange(MembershipError, IndexError):
    """채워지지 않은 리프 인덱스에 대한 갱신/삭제/경로 조회."""

    def __init__(self, index, size):
        self.index = index
        self.size = size
        super().__init__(f"잘못된 리프 인덱스: {index} (현재 리프 수 {size})")


class DegreeTooLow(MembershipError, ValueError):
    """상수 다항식(차수 0 이하)에서 근을 제거하려 했다."""

    def __init__(self, degree):
        self.degree = degree
        super().__init__(f"다항식 차수가 너무 낮습니다: {degree}")


class DuplicateRoot(MembershipError, ValueError):
    """이미 커밋된 근을 다시 추가하려 했다."""

    def __init__(self, root):
        self.root = root
        super().__init__(f"이미 등록된 근입니다: {root}")


class UnknownRoot(MembershipError, KeyError):
    """어느 배치에도 등록되지 않은 근을 조회/제거하려 했다."""

    def __init__(self, root):
        self.root = root
        super().__init__(f"등록되지 않은 근입니다: {root}")

    def __str__(self):
        # KeyError의 repr 스타일 메시지 대신 일반 메시지를 사용한다
        return self.args[0]
