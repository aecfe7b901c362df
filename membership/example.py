"""
멤버십 커밋먼트 데모: IMT와 다항식 배치
==========================================

두 커밋먼트 방식의 전체 흐름을 시연한다.

실행:
    python -m membership.example

흐름:
    1. 비밀값 유도 (식별자 + 솔트)
    2. IMT: 등록 → 머클 경로 검증 → 위조 리프 거부 → 갱신 → 삭제
    3. 다항식: 보간 → 근 추가/제거 → 잘못된 근 제거 거부
    4. 배치 매니저: 배치 분할 → 위트니스 → Prover.toml
"""

from membership.batch import BatchManager
from membership.imt import IncrementalMerkleTree, hash_leaf, verify_path
from membership.mix import derive_secret, hash_to_field
from membership.polynomial import NotARoot, add_root, evaluate, interpolate, remove_root
from membership.witness import merkle_prover_inputs, polynomial_prover_inputs, to_prover_toml


def _mark(ok):
    return "✓" if ok else "✗"


def main():
    print("=" * 60)
    print("  Membership Commitment Demo")
    print("  IMT (depth 4) / Polynomial batches (max degree 4)")
    print("=" * 60)

    # ── 1. 비밀값 ──
    print("\n[1] 비밀값 유도...")
    secret = derive_secret("test@example.com", "test_salt_123")
    verifier_key = hash_to_field("verifier_key_456")
    secrets = [123, 456, 789, secret]
    print(f"    secret: {secret}")

    # ── 2. IMT ──
    print("\n[2] 증분 머클 트리...")
    tree = IncrementalMerkleTree(depth=4)
    print(f"    빈 트리 루트: {tree.get_root()}")
    indices = [tree.insert_member(s) for s in secrets]
    print(f"    등록된 인덱스: {indices}")

    all_ok = True
    for s, i in zip(secrets, indices):
        siblings, bits = tree.get_merkle_path(i)
        ok = verify_path(hash_leaf(s), i, siblings, bits, tree.get_root(), depth=tree.depth)
        all_ok = all_ok and ok
        print(f"      index {i}: 경로 검증 {_mark(ok)}")

    siblings, bits = tree.get_merkle_path(0)
    forged = verify_path(hash_leaf(999), 0, siblings, bits, tree.get_root(), depth=tree.depth)
    print(f"    위조 리프 999: {'통과 ✗' if forged else '거부 ✓'}")

    old_root = tree.get_root()
    tree.update(0, hash_leaf(111))
    print(f"    index 0 갱신 → 루트 변경 {_mark(tree.get_root() != old_root)}")
    tree.delete(1)
    print(f"    index 1 삭제 → 리프 = zero[0] {_mark(tree.get_leaf(1) == tree.zeros[0])}")

    # ── 3. 다항식 ──
    print("\n[3] 다항식 근 커밋먼트...")
    poly = interpolate([1, 2, 3])
    print(f"    roots [1, 2, 3] → 차수 {len(poly) - 1}")
    for r in (1, 2, 3):
        print(f"      P({r}) = 0 {_mark(evaluate(poly, r) == 0)}")
    print(f"      P(4) ≠ 0 {_mark(evaluate(poly, 4) != 0)}")

    reduced = remove_root(add_root(poly, 4), 2)
    print(f"    +4, -2 → 차수 {len(reduced.coefficients) - 1}, "
          f"roots {{1, 3, 4}} {_mark(all(evaluate(reduced.coefficients, r) == 0 for r in (1, 3, 4)))}")
    rejected = isinstance(remove_root(reduced.coefficients, 99), NotARoot)
    print(f"    근이 아닌 99 제거: {'거부 ✓' if rejected else '통과 ✗'}")

    # ── 4. 배치 ──
    print("\n[4] 배치 매니저...")
    manager = BatchManager(max_degree=4)
    batch_indices = manager.add_secrets(list(range(1, 10)) + [secret])
    print(f"    배치 수: {len(manager.batches)}, 배정: {batch_indices}")
    print(f"    불변식 {_mark(manager.check_invariants())}")

    witness = manager.witness(secret)
    inputs = polynomial_prover_inputs(witness, verifier_key, manager.max_degree)
    print(f"    secret → batch {witness.batch_index}")
    print("\n    Prover.toml (polynomial):")
    for line in to_prover_toml(inputs).splitlines():
        print(f"      {line}")

    tree_inputs = merkle_prover_inputs(tree.witness(3), secret, verifier_key)
    print("\n    Prover.toml (IMT):")
    for line in to_prover_toml(tree_inputs).splitlines():
        print(f"      {line}")

    print("\n" + "=" * 60)
    print("  데모 완료" if all_ok and not forged and rejected else "  데모 완료: 일부 실패")
    print("=" * 60)

    return all_ok


if __name__ == "__main__":
    main()
