"""
决策存储 - 决策的增删改查、评价、行为记录与统计

存储层只保存和还原计算引擎产生的结构，不重新计算任何矩阵。
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import func, select

from database.config import PUBLIC_FEEDBACK_LIMIT
from database.engine import get_db_session
from database.models import Decision as DecisionRecord
from database.models import DecisionCategory, Feedback, UserEngagement
from database.models.base import as_naive_utc, utc_now
from database.schemas import EngagementCreate, FeedbackCreate, FeedbackResponse
from utils.ahp_engine import Decision

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Optional[str]) -> datetime:
    """解析ISO-8601时间，失败时使用当前时间"""
    if not value:
        return utc_now()
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"无法解析时间 '{value}'，使用当前时间")
        return utc_now()
    # 统一保存为不带时区的UTC时间
    return as_naive_utc(parsed)


def _to_domain(record: DecisionRecord) -> Decision:
    """数据库记录 -> 计算引擎的 Decision"""
    return Decision.from_dict({
        'id': record.id,
        'name': record.name,
        'criteria': record.criteria or [],
        'alternatives': record.alternatives or [],
        'criteriaComparisons': record.criteria_comparisons or {},
        'alternativeComparisons': record.alternative_comparisons or {},
        'overallRanking': record.overall_ranking,
        'createdAt': record.created_at.isoformat() if record.created_at else None,
        'category': record.category.value if record.category else DecisionCategory.OTHER.value,
        'completionTime': record.completion_time,
        'userId': record.user_id,
    })


def _apply_domain(record: DecisionRecord, decision: Decision) -> None:
    """用 Decision 整体替换记录内容"""
    data = decision.to_dict()
    record.update_from_dict({
        'name': decision.name,
        'user_id': decision.user_id,
        'category': DecisionCategory(decision.category),
        'completion_time': decision.completion_time,
        'criteria': data['criteria'],
        'alternatives': data['alternatives'],
        'criteria_comparisons': data['criteriaComparisons'],
        'alternative_comparisons': data['alternativeComparisons'],
        'overall_ranking': data.get('overallRanking'),
    })


class DecisionStorage:
    """决策存储服务"""

    # ============ 决策 ============

    def get_decision(self, decision_id: int) -> Optional[Decision]:
        """按ID获取决策，不存在时返回None"""
        with get_db_session() as session:
            record = session.get(DecisionRecord, decision_id)
            return _to_domain(record) if record else None

    def get_decisions(self, user_id: Optional[int] = None) -> List[Decision]:
        """获取决策列表，可按用户过滤"""
        with get_db_session() as session:
            stmt = select(DecisionRecord).order_by(DecisionRecord.id)
            if user_id is not None:
                stmt = stmt.where(DecisionRecord.user_id == user_id)
            return [_to_domain(r) for r in session.execute(stmt).scalars().all()]

    def create_decision(self, decision: Decision) -> Decision:
        """保存新决策，返回带ID的决策"""
        with get_db_session() as session:
            record = DecisionRecord(created_at=_parse_timestamp(decision.created_at))
            _apply_domain(record, decision)
            session.add(record)
            session.flush()
            logger.info(f"创建决策: ID={record.id}, name='{record.name}'")
            return _to_domain(record)

    def update_decision(self, decision_id: int, decision: Decision) -> Optional[Decision]:
        """整体替换已有决策，不存在时返回None"""
        with get_db_session() as session:
            record = session.get(DecisionRecord, decision_id)
            if record is None:
                return None
            _apply_domain(record, decision)
            session.flush()
            logger.info(f"更新决策: ID={decision_id}")
            return _to_domain(record)

    def delete_decision(self, decision_id: int) -> bool:
        """删除决策（评价级联删除），返回是否删除成功"""
        with get_db_session() as session:
            record = session.get(DecisionRecord, decision_id)
            if record is None:
                return False
            session.delete(record)
            logger.info(f"删除决策: ID={decision_id}")
            return True

    # ============ 评价 ============

    def create_feedback(self, feedback: FeedbackCreate) -> Optional[Dict[str, Any]]:
        """保存评价，所属决策不存在时返回None"""
        with get_db_session() as session:
            if session.get(DecisionRecord, feedback.decision_id) is None:
                return None
            record = Feedback(**feedback.model_dump())
            session.add(record)
            session.flush()
            return self._feedback_to_dict(record)

    def get_feedbacks_by_decision(self, decision_id: int) -> List[Dict[str, Any]]:
        """获取某个决策的全部评价"""
        with get_db_session() as session:
            stmt = select(Feedback).where(Feedback.decision_id == decision_id).order_by(Feedback.id)
            return [self._feedback_to_dict(r) for r in session.execute(stmt).scalars().all()]

    def get_public_feedbacks(self, limit: int = PUBLIC_FEEDBACK_LIMIT) -> List[Dict[str, Any]]:
        """获取允许公开展示的最新评价"""
        with get_db_session() as session:
            stmt = (
                select(Feedback)
                .where(Feedback.allow_public_display.is_(True))
                .order_by(Feedback.created_at.desc(), Feedback.id.desc())
                .limit(limit)
            )
            return [self._feedback_to_dict(r) for r in session.execute(stmt).scalars().all()]

    @staticmethod
    def _feedback_to_dict(record: Feedback) -> Dict[str, Any]:
        return FeedbackResponse.model_validate(record).model_dump(by_alias=True, mode='json')

    # ============ 行为记录 ============

    def track_engagement(self, engagement: EngagementCreate) -> Dict[str, Any]:
        """记录一次用户行为"""
        with get_db_session() as session:
            record = UserEngagement(**engagement.model_dump())
            session.add(record)
            session.flush()
            return record.to_dict(exclude=['updated_at'], camel_case=True)

    def get_engagements_by_decision(self, decision_id: int) -> List[Dict[str, Any]]:
        """按时间顺序获取某个决策的行为记录"""
        with get_db_session() as session:
            stmt = (
                select(UserEngagement)
                .where(UserEngagement.decision_id == decision_id)
                .order_by(UserEngagement.created_at, UserEngagement.id)
            )
            return [
                r.to_dict(exclude=['updated_at'], camel_case=True)
                for r in session.execute(stmt).scalars().all()
            ]

    # ============ 统计 ============

    def get_decisions_by_category(self) -> List[Dict[str, Any]]:
        """各类别的决策数量"""
        with get_db_session() as session:
            rows = session.execute(
                select(DecisionRecord.category, func.count(DecisionRecord.id))
                .group_by(DecisionRecord.category)
            ).all()
            return [
                {'category': (category or DecisionCategory.OTHER).value, 'count': count}
                for category, count in rows
            ]

    def get_average_completion_time(self) -> float:
        """平均完成用时（秒），无数据时为0"""
        with get_db_session() as session:
            value = session.execute(
                select(func.avg(DecisionRecord.completion_time))
                .where(DecisionRecord.completion_time.isnot(None))
            ).scalar()
            return float(value) if value is not None else 0.0

    def get_average_rating(self) -> float:
        """平均实用性评分，无数据时为0"""
        with get_db_session() as session:
            value = session.execute(select(func.avg(Feedback.utility_rating))).scalar()
            return float(value) if value is not None else 0.0

    def get_decisions_over_time(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """
        按天统计决策创建数量

        Args:
            start: 起始日期（含）
            end: 结束日期（含）

        Returns:
            [{'date': 'YYYY-MM-DD', 'count': n}, ...]，按日期升序
        """
        lower = datetime.combine(start.date(), datetime.min.time())
        upper = datetime.combine(end.date(), datetime.min.time()) + timedelta(days=1)

        with get_db_session() as session:
            timestamps = session.execute(
                select(DecisionRecord.created_at)
                .where(DecisionRecord.created_at >= lower, DecisionRecord.created_at < upper)
            ).scalars().all()

        if not timestamps:
            return []

        dates = pd.to_datetime(pd.Series(timestamps)).dt.strftime('%Y-%m-%d')
        counts = dates.value_counts().sort_index()
        return [{'date': date, 'count': int(count)} for date, count in counts.items()]

    def get_step_engagement_stats(self) -> List[Dict[str, Any]]:
        """各步骤的平均停留时长与次数"""
        with get_db_session() as session:
            rows = session.execute(
                select(
                    UserEngagement.action_type,
                    func.avg(UserEngagement.duration),
                    func.count(UserEngagement.id)
                )
                .where(UserEngagement.duration.isnot(None))
                .group_by(UserEngagement.action_type)
                .order_by(UserEngagement.action_type)
            ).all()
            return [
                {'step': step, 'averageDuration': float(avg or 0), 'count': count}
                for step, avg, count in rows
            ]


# 全局存储实例
storage = DecisionStorage()
