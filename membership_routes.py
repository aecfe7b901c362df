"""
멤버십 Flask Blueprint: IMT / 다항식 등록 및 위트니스 엔드포인트
==================================================================

JSON 요청/응답. 필드 원소는 10진 문자열로 주고받는다.
상태(트리, 배치 테이블)는 메모리에 두고, 변경이 성공할 때마다 TinyDB에 저장한다.
변경 연산은 자료구조별 Lock으로 직렬화한다.

IMT:
  GET  /membership/imt
  POST /membership/imt/members                      {"secret": "..."}
  POST /membership/imt/members/<index>              {"secret": "..."}
  POST /membership/imt/members/<index>/delete
  GET  /membership/imt/members/<index>/witness      [?secret=&verifier_key=]

다항식:
  GET  /membership/poly
  POST /membership/poly/members                     {"secrets": ["...", ...]}
  POST /membership/poly/members/remove              {"secret": "..."}
  GET  /membership/poly/members/<secret>/witness    [?verifier_key=]

공통:
  POST /membership/clear
"""

import logging
import threading

from flask import Blueprint, jsonify, request
from tinydb import Query

from membership.batch import BatchManager
from membership.errors import (
    DegreeTooLow,
    DuplicateRoot,
    IndexOutOfRange,
    MembershipError,
    TreeFull,
    UnknownRoot,
)
from membership.imt import IncrementalMerkleTree, hash_leaf
from membership.mix import DEFAULT_MIX
from membership.witness import (
    merkle_prover_inputs,
    polynomial_prover_inputs,
    to_prover_toml,
)

from membership_serializers import (
    serialize_fr, deserialize_fr,
    serialize_tree, deserialize_tree,
    serialize_batches, deserialize_batches,
    serialize_merkle_witness, serialize_polynomial_witness,
    fr_short,
)

logger = logging.getLogger(__name__)

membership_bp = Blueprint('membership', __name__, url_prefix='/membership')

DATA = Query()

# app.py에서 주입
DB = None
STATE = None


class MembershipState:
    """블루프린트가 소유하는 자료구조와 자료구조별 Lock."""

    def __init__(self, tree, manager, mix=DEFAULT_MIX):
        self.tree = tree
        self.manager = manager
        self.mix = mix
        self.tree_lock = threading.Lock()
        self.poly_lock = threading.Lock()


def _restore_tree(tree_depth, mix):
    """저장된 트리를 복원한다. 깊이가 다르거나 노드가 리프와 맞지 않으면 빈 트리."""
    try:
        tree = deserialize_tree(db_get("membership.imt"), mix)
    except (MembershipError, ValueError, KeyError, TypeError) as e:
        logger.warning("stored tree is unreadable (%s); starting empty", e)
        return IncrementalMerkleTree(tree_depth, mix)

    if tree is None:
        return IncrementalMerkleTree(tree_depth, mix)
    if tree.depth != tree_depth:
        logger.warning("stored tree depth %d differs from configured %d; starting empty",
                       tree.depth, tree_depth)
        return IncrementalMerkleTree(tree_depth, mix)
    if not tree.check_invariants():
        logger.warning("stored tree nodes do not match its leaves; starting empty")
        return IncrementalMerkleTree(tree_depth, mix)
    logger.info("restored tree with %d leaves", len(tree))
    return tree


def _restore_batches(max_degree):
    """저장된 배치를 복원한다. 최대 차수가 다르거나 불변식이 깨졌으면 빈 매니저."""
    try:
        manager = deserialize_batches(db_get("membership.poly"))
    except (MembershipError, ValueError, KeyError, TypeError) as e:
        logger.warning("stored batches are unreadable (%s); starting empty", e)
        return BatchManager(max_degree)

    if manager is None:
        return BatchManager(max_degree)
    if manager.max_degree != max_degree:
        logger.warning("stored max degree %d differs from configured %d; starting empty",
                       manager.max_degree, max_degree)
        return BatchManager(max_degree)
    if not manager.check_invariants():
        logger.warning("stored batches do not match their roots; starting empty")
        return BatchManager(max_degree)
    logger.info("restored %d batches with %d roots", len(manager.batches), len(manager))
    return manager


def init_membership_bp(db, tree_depth, max_degree, mix=DEFAULT_MIX):
    """app.py에서 DB와 회로 상수를 주입받고 저장된 상태를 복원한다."""
    global DB, STATE
    DB = db
    STATE = MembershipState(_restore_tree(tree_depth, mix), _restore_batches(max_degree), mix)
    return STATE


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove_prefix(prefix):
    """prefix로 시작하는 모든 키를 삭제한다."""
    DB.remove(DATA.type.test(lambda t: t.startswith(prefix)))


def save_tree():
    db_set("membership.imt", serialize_tree(STATE.tree))


def save_batches():
    db_set("membership.poly", serialize_batches(STATE.manager))


# ─── 요청 파싱 / 오류 응답 ───

class BadRequest(MembershipError):
    """요청 본문이나 파라미터가 잘못되었다."""


def _json_field(name):
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or name not in body:
        raise BadRequest(f"'{name}' 필드가 필요합니다")
    return body[name]


def _parse_fr(value, name):
    try:
        return deserialize_fr(value)
    except ValueError:
        raise BadRequest(f"'{name}' 값이 필드 원소가 아닙니다: {value!r}") from None


_STATUS = {
    TreeFull: 409,
    DuplicateRoot: 409,
    IndexOutOfRange: 404,
    UnknownRoot: 404,
    DegreeTooLow: 400,
    BadRequest: 400,
}


@membership_bp.errorhandler(MembershipError)
def handle_membership_error(error):
    status = next((code for kind, code in _STATUS.items() if isinstance(error, kind)), 500)
    logger.warning("%s rejected: %s", request.path, error)
    return jsonify({"error": type(error).__name__, "message": str(error)}), status


# ──────────────────────────────────────────────────────────────
# IMT
# ──────────────────────────────────────────────────────────────

@membership_bp.route("/imt")
def imt_info():
    """트리 요약: 깊이, 리프 수, 용량, 루트."""
    with STATE.tree_lock:
        tree = STATE.tree
        info = {
            "depth": tree.depth,
            "size": len(tree),
            "capacity": tree.capacity,
            "root": serialize_fr(tree.get_root()),
        }
    return jsonify(info)


@membership_bp.route("/imt/members", methods=["POST"])
def imt_insert():
    """비밀값을 리프로 등록한다."""
    secret = _parse_fr(_json_field("secret"), "secret")
    with STATE.tree_lock:
        index = STATE.tree.insert_member(secret)
        save_tree()
        leaf = STATE.tree.get_leaf(index)
        root = STATE.tree.get_root()
    logger.info("member registered at leaf %d, root %s", index, fr_short(root))
    return jsonify({
        "index": index,
        "leaf": serialize_fr(leaf),
        "root": serialize_fr(root),
    }), 201


@membership_bp.route("/imt/members/<int:index>", methods=["POST"])
def imt_update(index):
    """리프를 새 비밀값으로 교체한다."""
    secret = _parse_fr(_json_field("secret"), "secret")
    with STATE.tree_lock:
        STATE.tree.update(index, hash_leaf(secret, STATE.mix))
        save_tree()
        root = STATE.tree.get_root()
    return jsonify({"index": index, "root": serialize_fr(root)})


@membership_bp.route("/imt/members/<int:index>/delete", methods=["POST"])
def imt_delete(index):
    """리프를 영 값으로 덮어쓴다."""
    with STATE.tree_lock:
        STATE.tree.delete(index)
        save_tree()
        root = STATE.tree.get_root()
    logger.info("member at leaf %d deleted", index)
    return jsonify({"index": index, "root": serialize_fr(root)})


@membership_bp.route("/imt/members/<int:index>/witness")
def imt_witness(index):
    """머클 위트니스. secret과 verifier_key가 있으면 Prover.toml 입력도 함께 반환한다."""
    with STATE.tree_lock:
        witness = STATE.tree.witness(index)

    out = {"witness": serialize_merkle_witness(witness)}
    secret = request.args.get("secret")
    verifier_key = request.args.get("verifier_key")
    if secret is not None and verifier_key is not None:
        inputs = merkle_prover_inputs(
            witness,
            _parse_fr(secret, "secret"),
            _parse_fr(verifier_key, "verifier_key"),
            STATE.mix,
        )
        out["prover_inputs"] = inputs
        out["prover_toml"] = to_prover_toml(inputs)
    return jsonify(out)


# ──────────────────────────────────────────────────────────────
# 다항식 배치
# ──────────────────────────────────────────────────────────────

@membership_bp.route("/poly")
def poly_info():
    """배치 요약: 최대 차수, 배치별 근 개수와 커밋먼트."""
    with STATE.poly_lock:
        manager = STATE.manager
        batches = [
            {
                "index": i,
                "size": len(batch),
                "commitment": serialize_fr(manager.commitment(i, STATE.mix)),
            }
            for i, batch in enumerate(manager.batches)
        ]
    return jsonify({
        "max_degree": manager.max_degree,
        "size": len(manager),
        "batches": batches,
    })


@membership_bp.route("/poly/members", methods=["POST"])
def poly_add():
    """비밀값들을 배치 다항식의 근으로 등록한다."""
    raw = _json_field("secrets")
    if not isinstance(raw, list) or not raw:
        raise BadRequest("'secrets'는 비어 있지 않은 리스트여야 합니다")
    secrets = [_parse_fr(s, "secrets") for s in raw]
    with STATE.poly_lock:
        indices = STATE.manager.add_secrets(secrets)
        save_batches()
    logger.info("%d secrets added to batches %s", len(secrets), sorted(set(indices)))
    return jsonify({"batch_indices": indices}), 201


@membership_bp.route("/poly/members/remove", methods=["POST"])
def poly_remove():
    """비밀값을 소속 배치에서 제거한다."""
    secret = _parse_fr(_json_field("secret"), "secret")
    with STATE.poly_lock:
        index = STATE.manager.remove_secret(secret)
        save_batches()
    return jsonify({"batch_index": index})


@membership_bp.route("/poly/members/<secret>/witness")
def poly_witness(secret):
    """다항식 위트니스. verifier_key가 있으면 Prover.toml 입력도 함께 반환한다."""
    secret = _parse_fr(secret, "secret")
    with STATE.poly_lock:
        witness = STATE.manager.witness(secret)

    out = {"witness": serialize_polynomial_witness(witness)}
    verifier_key = request.args.get("verifier_key")
    if verifier_key is not None:
        inputs = polynomial_prover_inputs(
            witness,
            _parse_fr(verifier_key, "verifier_key"),
            STATE.manager.max_degree,
            STATE.mix,
        )
        out["prover_inputs"] = inputs
        out["prover_toml"] = to_prover_toml(inputs)
    return jsonify(out)


# ──────────────────────────────────────────────────────────────
# 공통
# ──────────────────────────────────────────────────────────────

@membership_bp.route("/clear", methods=["POST"])
def clear():
    """모든 멤버십 데이터를 클리어한다."""
    with STATE.tree_lock, STATE.poly_lock:
        STATE.tree = IncrementalMerkleTree(STATE.tree.depth, STATE.mix)
        STATE.manager = BatchManager(STATE.manager.max_degree)
        db_remove_prefix("membership.")
    logger.info("membership state cleared")
    return jsonify({"cleared": True})
