"""
멤버십 커밋먼트 Flask 애플리케이션
====================================

실행:
    flask --app app run
    python app.py

설정은 환경 변수(MEMBERSHIP_TREE_DEPTH, MEMBERSHIP_MAX_DEGREE,
MEMBERSHIP_DB, MEMBERSHIP_LOG_LEVEL)에서 읽는다.
"""

import logging

from flask import Flask, jsonify
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from membership.config import MembershipConfig
from membership.mix import DEFAULT_MIX

from membership_routes import membership_bp, init_membership_bp

logger = logging.getLogger(__name__)


def open_db(db_path):
    """db_path가 None이면 메모리 DB, 아니면 JSON 파일 DB."""
    if db_path is None:
        return TinyDB(storage=MemoryStorage)   # Memory DB
    return TinyDB(db_path)                     # Storage DB


def create_app(config=None, db=None, mix=DEFAULT_MIX):
    """애플리케이션을 생성한다.

    Args:
        config: MembershipConfig. None이면 환경 변수에서 읽는다.
        db: 사용할 TinyDB. None이면 config.db_path로 연다.
        mix: 트리/커밋먼트에 쓸 믹스 함수
    """
    if config is None:
        config = MembershipConfig.from_env()

    logging.basicConfig(
        level=config.log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if db is None:
        db = open_db(config.db_path)

    app = Flask(__name__)
    app.config["MEMBERSHIP"] = config

    init_membership_bp(db.table("membership"), config.tree_depth, config.max_degree, mix)
    app.register_blueprint(membership_bp)

    @app.route("/")
    def main():
        return jsonify({
            "tree_depth": config.tree_depth,
            "max_degree": config.max_degree,
        })

    logger.info("membership app ready (tree depth %d, max degree %d)",
                config.tree_depth, config.max_degree)
    return app


if __name__ == "__main__":
    create_app().run(debug=True)
