"""
membership_routes tests: Flask 테스트 클라이언트로 엔드포인트와 오류 코드를 검증한다.
"""
import threading

import pytest
import toml
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from app import create_app
import membership_routes
from membership.config import MembershipConfig
from membership.imt import hash_leaf, verify_path
from membership.polynomial import evaluate


CONFIG = MembershipConfig(tree_depth=4, max_degree=3, db_path=None, log_level="WARNING")


@pytest.fixture
def db():
    return TinyDB(storage=MemoryStorage)


@pytest.fixture
def client(db):
    app = create_app(CONFIG, db=db)
    app.config["TESTING"] = True
    return app.test_client()


def _add(client, secret):
    return client.post("/membership/imt/members", json={"secret": str(secret)})


# =====================================================================
# IMT
# =====================================================================

class TestImtRoutes:
    def test_index(self, client):
        assert client.get("/").get_json() == {"tree_depth": 4, "max_degree": 3}

    def test_empty(self, client):
        data = client.get("/membership/imt").get_json()
        assert data["depth"] == 4
        assert data["size"] == 0
        assert data["capacity"] == 16

    def test_insert(self, client):
        res = _add(client, 123)
        assert res.status_code == 201
        data = res.get_json()
        assert data["index"] == 0
        assert data["leaf"] == str(hash_leaf(123))
        assert client.get("/membership/imt").get_json()["root"] == data["root"]

    def test_witness_verifies(self, client):
        for s in (1, 2, 3):
            _add(client, s)
        data = client.get("/membership/imt/members/2/witness").get_json()
        w = data["witness"]
        assert verify_path(
            int(w["leaf"]), w["leaf_index"],
            [int(s) for s in w["siblings"]], w["direction_bits"], int(w["root"]),
            depth=4)
        assert "prover_inputs" not in data

    def test_witness_with_prover_inputs(self, client):
        _add(client, 5)
        data = client.get(
            "/membership/imt/members/0/witness?secret=5&verifier_key=0x10").get_json()
        assert data["prover_inputs"]["secret"] == "5"
        assert data["prover_inputs"]["verifier_key"] == "16"
        assert toml.loads(data["prover_toml"]) == data["prover_inputs"]

    def test_insert_leading_zeros(self, client):
        res = _add(client, "007")
        assert res.status_code == 201
        assert res.get_json()["leaf"] == str(hash_leaf(7))

    def test_update(self, client):
        _add(client, 1)
        res = client.post("/membership/imt/members/0", json={"secret": "9"})
        assert res.status_code == 200
        w = client.get("/membership/imt/members/0/witness").get_json()["witness"]
        assert w["leaf"] == str(hash_leaf(9))

    def test_delete(self, client):
        _add(client, 1)
        _add(client, 2)
        res = client.post("/membership/imt/members/1/delete")
        assert res.status_code == 200
        assert client.get("/membership/imt").get_json()["size"] == 2

    def test_unknown_index(self, client):
        _add(client, 1)
        res = client.get("/membership/imt/members/5/witness")
        assert res.status_code == 404
        assert res.get_json()["error"] == "IndexOutOfRange"
        assert client.post("/membership/imt/members/5/delete").status_code == 404

    def test_tree_full(self, db):
        app = create_app(MembershipConfig(tree_depth=1, max_degree=3, db_path=None), db=db)
        client = app.test_client()
        assert _add(client, 1).status_code == 201
        assert _add(client, 2).status_code == 201
        res = _add(client, 3)
        assert res.status_code == 409
        assert res.get_json()["error"] == "TreeFull"

    @pytest.mark.parametrize("body", [None, {}, {"secret": "abc"}, {"secret": 1.5}])
    def test_bad_request(self, client, body):
        res = client.post("/membership/imt/members", json=body)
        assert res.status_code == 400
        assert res.get_json()["error"] == "BadRequest"

    def test_non_json_body(self, client):
        res = client.post("/membership/imt/members", data="secret=1")
        assert res.status_code == 400

    def test_info_waits_for_tree_lock(self, client):
        """변경 연산이 Lock을 잡고 있는 동안 요약 조회는 대기한다."""
        _add(client, 1)
        result = {}
        lock = membership_routes.STATE.tree_lock
        lock.acquire()
        try:
            reader = threading.Thread(
                target=lambda: result.update(res=client.get("/membership/imt")))
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            assert "res" not in result
        finally:
            lock.release()
        reader.join(timeout=5)
        assert result["res"].get_json()["size"] == 1


# =====================================================================
# 다항식 배치
# =====================================================================

class TestPolyRoutes:
    def test_add(self, client):
        res = client.post("/membership/poly/members", json={"secrets": ["1", "2", "3", "4"]})
        assert res.status_code == 201
        assert res.get_json()["batch_indices"] == [0, 0, 0, 1]

        data = client.get("/membership/poly").get_json()
        assert data["max_degree"] == 3
        assert data["size"] == 4
        assert [b["size"] for b in data["batches"]] == [3, 1]
        assert all("commitment" in b for b in data["batches"])

    def test_duplicate(self, client):
        client.post("/membership/poly/members", json={"secrets": ["1"]})
        res = client.post("/membership/poly/members", json={"secrets": ["2", "1"]})
        assert res.status_code == 409
        assert res.get_json()["error"] == "DuplicateRoot"
        assert client.get("/membership/poly").get_json()["size"] == 1

    @pytest.mark.parametrize("secrets", [[], "1", None])
    def test_bad_secrets(self, client, secrets):
        res = client.post("/membership/poly/members", json={"secrets": secrets})
        assert res.status_code == 400

    def test_witness(self, client):
        client.post("/membership/poly/members", json={"secrets": ["1", "2", "3", "4"]})
        data = client.get("/membership/poly/members/4/witness?verifier_key=7").get_json()
        w = data["witness"]
        assert w["batch_index"] == 1
        assert evaluate([int(c) for c in w["coefficients"]], 4) == 0
        assert len(data["prover_inputs"]["polynomial"]) == 4
        assert "polynomial_hash" in data["prover_toml"]

    def test_remove(self, client):
        client.post("/membership/poly/members", json={"secrets": ["1", "2", "3", "4"]})
        res = client.post("/membership/poly/members/remove", json={"secret": "2"})
        assert res.get_json() == {"batch_index": 0}
        assert client.get("/membership/poly/members/2/witness").status_code == 404
        res = client.post("/membership/poly/members", json={"secrets": ["9"]})
        assert res.get_json()["batch_indices"] == [0]

    def test_remove_unknown(self, client):
        res = client.post("/membership/poly/members/remove", json={"secret": "42"})
        assert res.status_code == 404
        assert res.get_json()["error"] == "UnknownRoot"


# =====================================================================
# 영속성 / clear
# =====================================================================

class TestPersistence:
    def test_restored_from_db(self, client, db):
        for s in (1, 2, 3):
            _add(client, s)
        client.post("/membership/poly/members", json={"secrets": ["5", "6"]})
        root = client.get("/membership/imt").get_json()["root"]

        restarted = create_app(CONFIG, db=db).test_client()
        assert restarted.get("/membership/imt").get_json()["root"] == root
        assert restarted.get("/membership/poly").get_json()["size"] == 2
        assert _add(restarted, 4).get_json()["index"] == 3

    def test_depth_mismatch_starts_empty(self, client, db):
        _add(client, 1)
        other = MembershipConfig(tree_depth=5, max_degree=3, db_path=None, log_level="WARNING")
        restarted = create_app(other, db=db).test_client()
        data = restarted.get("/membership/imt").get_json()
        assert data["depth"] == 5
        assert data["size"] == 0

    def test_clear(self, client, db):
        _add(client, 1)
        client.post("/membership/poly/members", json={"secrets": ["5"]})
        assert client.post("/membership/clear").get_json() == {"cleared": True}
        assert client.get("/membership/imt").get_json()["size"] == 0
        assert client.get("/membership/poly").get_json()["batches"] == []
        assert len(db.table("membership")) == 0

    def _tamper(self, db, key, change):
        table = db.table("membership")
        query = membership_routes.DATA.type == key
        data = table.get(query)["data"]
        change(data)
        table.update({"data": data}, query)

    def test_duplicate_stored_root_starts_empty(self, client, db):
        client.post("/membership/poly/members", json={"secrets": ["5", "6"]})
        self._tamper(db, "membership.poly", lambda d: d["batches"][0]["roots"].append("5"))
        restarted = create_app(CONFIG, db=db).test_client()
        assert restarted.get("/membership/poly").get_json()["size"] == 0

    def test_stored_polynomial_mismatch_starts_empty(self, client, db):
        client.post("/membership/poly/members", json={"secrets": ["5", "6"]})
        self._tamper(db, "membership.poly", lambda d: d["batches"][0]["roots"].__setitem__(1, "7"))
        restarted = create_app(CONFIG, db=db).test_client()
        assert restarted.get("/membership/poly").get_json()["size"] == 0

    def test_stored_tree_mismatch_starts_empty(self, client, db):
        for s in (1, 2):
            _add(client, s)
        self._tamper(db, "membership.imt", lambda d: d["nodes"][0].__setitem__(2, "1"))
        restarted = create_app(CONFIG, db=db).test_client()
        data = restarted.get("/membership/imt").get_json()
        assert data["size"] == 0
        assert _add(restarted, 9).get_json()["index"] == 0

    def test_unreadable_tree_starts_empty(self, client, db):
        _add(client, 1)
        self._tamper(db, "membership.imt", lambda d: d["leaves"].__setitem__(0, "zz"))
        restarted = create_app(CONFIG, db=db).test_client()
        assert restarted.get("/membership/imt").get_json()["size"] == 0
