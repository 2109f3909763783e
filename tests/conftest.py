"""
测试配置 - 使用临时SQLite数据库
"""
import os
import tempfile

# 必须在导入 database 包之前设置
_TEST_DB_DIR = tempfile.mkdtemp(prefix="ahp-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"

import pytest

from utils.decision_editor import (
    add_alternative,
    add_criterion,
    create_empty_decision,
    set_alternative_judgment,
    set_criteria_judgment,
)


@pytest.fixture
def clean_database():
    """每个测试使用空数据库"""
    from database.engine import reset_database

    reset_database()
    yield


@pytest.fixture
def client(clean_database):
    """Flask测试客户端"""
    from app import server

    server.config['TESTING'] = True
    with server.test_client() as test_client:
        yield test_client


@pytest.fixture
def car_decision():
    """
    两个准则（Cost, Quality）、两个方案（A, B）的完整决策

    准则优先级 [0.75, 0.25]；Cost 下 [0.6, 0.4]；Quality 下 [0.3, 0.7]
    """
    decision = create_empty_decision("Buy a car", category="personal")
    decision = add_criterion(decision, "Cost", criterion_id="cost")
    decision = add_criterion(decision, "Quality", criterion_id="quality")
    decision = add_alternative(decision, "A", alternative_id="a")
    decision = add_alternative(decision, "B", alternative_id="b")

    decision = set_criteria_judgment(decision, "cost", "quality", 3)
    decision = set_alternative_judgment(decision, "cost", "a", "b", 1.5)
    decision = set_alternative_judgment(decision, "quality", "a", "b", 3 / 7)
    return decision
