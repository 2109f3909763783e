"""
数据库引擎和会话管理
"""
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from database.config import DATABASE_URL, SQLALCHEMY_CONFIG

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL) -> Engine:
    """
    创建数据库引擎

    SQLite 连接允许跨线程使用（Flask 多线程开发服务器），
    并在每次连接时打开外键约束，使评价随决策级联删除。
    """
    is_sqlite = url.startswith("sqlite")
    db_engine = create_engine(
        url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        **SQLALCHEMY_CONFIG
    )

    if is_sqlite:
        @event.listens_for(db_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return db_engine


engine = build_engine()

# 会话工厂（提交后对象过期，存储层须在会话内完成转换）
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    获取数据库会话的上下文管理器，正常退出时提交，异常时回滚

    Example:
        with get_db_session() as session:
            session.get(Decision, decision_id)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _metadata():
    from database.models.base import Base
    import database.models  # noqa: F401  注册决策、评价、行为记录表

    return Base.metadata


def init_database():
    """创建缺失的表（已有表和数据保持不变）"""
    metadata = _metadata()
    metadata.create_all(bind=engine)
    logger.info(f"数据库初始化完成: {DATABASE_URL}, 表: {sorted(inspect(engine).get_table_names())}")


def reset_database():
    """删除并重建所有表，清空全部决策、评价和行为记录"""
    metadata = _metadata()
    metadata.drop_all(bind=engine)
    metadata.create_all(bind=engine)
    logger.warning(f"数据库已重置: {DATABASE_URL}")


def close_database():
    """释放连接池"""
    engine.dispose()
    logger.info("数据库连接已关闭")


def check_database_connection() -> bool:
    """
    健康检查：执行一次 SELECT 1

    Returns:
        bool: 连接正常返回True，否则返回False
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"数据库连接失败: {e}")
        return False
