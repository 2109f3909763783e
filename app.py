"""
AHP决策分析服务 - Web API主应用
Analytic Hierarchy Process Decision Service

基于Flask的JSON接口：决策的保存与读取、判断矩阵计算、总排名合成、
计算过程导出、用户评价及使用统计。
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from config import LOG_FORMAT, LOG_LEVEL
from database.config import PUBLIC_FEEDBACK_LIMIT
from database.engine import check_database_connection
from database.models.base import as_naive_utc, utc_now
from database.schemas import (
    ComparisonRequest,
    DecisionCreate,
    DecisionDraft,
    DecisionUpdate,
    EngagementCreate,
    FeedbackCreate,
)
from database.storage import storage
from utils.ahp_engine import AHPEngineError, is_decision_complete, process_comparisons
from utils.decision_editor import consistency_summary, finalize_decision, prepare_for_save
from utils.results_exporter import (
    build_ranking_table,
    export_calculations,
    export_filename,
    ranking_to_csv,
)
from utils.validation_helpers import create_error_response, validate_payload


def _configure_logging():
    """配置根日志：控制台输出"""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(LOG_LEVEL)


_configure_logging()
logger = logging.getLogger(__name__)

# 创建Flask服务器
server = Flask(__name__)
server.json.sort_keys = False


def _validation_failed(errors):
    return jsonify(create_error_response("数据验证失败", errors)), 400


def _not_found(message="决策不存在"):
    return jsonify(create_error_response(message)), 404


# ============ 错误处理 ============

@server.errorhandler(AHPEngineError)
def handle_engine_error(error):
    """计算引擎前置条件不满足（索引越界、退化矩阵、决策不完整等）"""
    logger.warning(f"计算失败: {error}")
    return jsonify(create_error_response(str(error))), 422


@server.errorhandler(Exception)
def handle_unexpected_error(error):
    """未预期的错误统一返回500"""
    if isinstance(error, HTTPException):
        return jsonify(create_error_response(error.description)), error.code
    logger.exception("请求处理失败")
    return jsonify(create_error_response("服务器内部错误")), 500


# ============ 决策 ============

@server.route('/api/decisions', methods=['GET'])
def list_decisions():
    """获取决策列表，可按 userId 过滤"""
    user_id = request.args.get('userId', type=int)
    decisions = storage.get_decisions(user_id)
    return jsonify([d.to_dict() for d in decisions])


@server.route('/api/decisions/<int:decision_id>', methods=['GET'])
def get_decision(decision_id):
    """获取单个决策"""
    decision = storage.get_decision(decision_id)
    if decision is None:
        return _not_found()
    return jsonify(decision.to_dict())


@server.route('/api/decisions', methods=['POST'])
def create_decision():
    """保存新决策；决策完整时同时保存总排名"""
    payload, errors = validate_payload(DecisionCreate, request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)

    decision = storage.create_decision(prepare_for_save(payload.to_domain()))
    return jsonify(decision.to_dict()), 201


@server.route('/api/decisions/<int:decision_id>', methods=['PUT'])
def update_decision(decision_id):
    """整体替换已保存的决策"""
    payload, errors = validate_payload(DecisionUpdate, request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)

    decision = storage.update_decision(decision_id, prepare_for_save(payload.to_domain()))
    if decision is None:
        return _not_found()
    return jsonify(decision.to_dict())


@server.route('/api/decisions/<int:decision_id>', methods=['DELETE'])
def delete_decision(decision_id):
    """删除决策"""
    if not storage.delete_decision(decision_id):
        return _not_found()
    return '', 204


@server.route('/api/decisions/<int:decision_id>/export', methods=['GET'])
def export_decision(decision_id):
    """导出计算过程（format=json）或排名表（format=csv）"""
    decision = storage.get_decision(decision_id)
    if decision is None:
        return _not_found()

    export_format = request.args.get('format', 'json').lower()
    if export_format == 'csv':
        if not is_decision_complete(decision):
            return jsonify(create_error_response("决策不完整，无法导出排名表")), 409
        return Response(
            ranking_to_csv(decision),
            mimetype='text/csv; charset=utf-8',
            headers={'Content-Disposition': f'attachment; filename="{export_filename(decision, "csv")}"'}
        )
    if export_format != 'json':
        return jsonify(create_error_response(f"不支持的导出格式: {export_format}")), 400

    response = jsonify(export_calculations(decision))
    response.headers['Content-Disposition'] = f'attachment; filename="{export_filename(decision)}"'
    return response


@server.route('/api/decisions/<int:decision_id>/feedback', methods=['GET'])
def list_decision_feedback(decision_id):
    """获取某个决策的评价"""
    return jsonify(storage.get_feedbacks_by_decision(decision_id))


# ============ AHP计算 ============

@server.route('/api/ahp/matrix', methods=['POST'])
def compute_matrix():
    """由上三角判断计算判断矩阵、优先级和一致性比率（幂等）"""
    payload, errors = validate_payload(ComparisonRequest, request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)

    result = process_comparisons(payload.n, payload.comparisons)
    body = result.to_dict()
    body['isConsistent'] = result.is_consistent
    return jsonify(body)


@server.route('/api/ahp/ranking', methods=['POST'])
def compute_ranking():
    """为编辑中的决策合成总排名"""
    payload, errors = validate_payload(DecisionDraft, request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)

    decision = finalize_decision(payload.to_domain())
    table = build_ranking_table(decision)
    return jsonify({
        'overallRanking': dict(decision.overall_ranking),
        'ranking': [
            {
                'rank': int(row['rank']),
                'id': row['alternative_id'],
                'name': row['alternative'],
                'score': float(row['score']),
            }
            for row in table.to_dict('records')
        ],
        'consistency': consistency_summary(decision),
    })


# ============ 评价与行为记录 ============

@server.route('/api/feedback', methods=['POST'])
def create_feedback():
    """提交评价"""
    payload, errors = validate_payload(FeedbackCreate, request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)

    feedback = storage.create_feedback(payload)
    if feedback is None:
        return _not_found()
    return jsonify(feedback), 201


@server.route('/api/feedback/public', methods=['GET'])
def list_public_feedback():
    """获取公开评价"""
    limit = request.args.get('limit', default=PUBLIC_FEEDBACK_LIMIT, type=int)
    limit = max(1, min(limit, 100))
    return jsonify(storage.get_public_feedbacks(limit))


@server.route('/api/engagements', methods=['POST'])
def track_engagement():
    """记录用户行为"""
    payload, errors = validate_payload(EngagementCreate, request.get_json(silent=True))
    if errors:
        return _validation_failed(errors)
    return jsonify(storage.track_engagement(payload)), 201


# ============ 统计 ============

def _date_arg(name: str) -> Optional[datetime]:
    """读取ISO-8601日期参数，统一换算为不带时区的UTC时间；缺省时返回None"""
    value = request.args.get(name)
    if not value:
        return None
    return as_naive_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))


@server.route('/api/metrics/summary', methods=['GET'])
def metrics_summary():
    """使用统计汇总，默认统计最近30天"""
    try:
        end = _date_arg('endDate') or utc_now()
        start = _date_arg('startDate') or end - timedelta(days=30)
    except ValueError:
        return jsonify(create_error_response("日期必须是ISO-8601格式（YYYY-MM-DD）")), 400
    if start > end:
        return jsonify(create_error_response("起始日期不能晚于结束日期")), 400

    return jsonify({
        'startDate': start.date().isoformat(),
        'endDate': end.date().isoformat(),
        'decisionsByCategory': storage.get_decisions_by_category(),
        'averageRating': storage.get_average_rating(),
        'averageCompletionTime': storage.get_average_completion_time(),
        'decisionsOverTime': storage.get_decisions_over_time(start, end),
        'stepEngagement': storage.get_step_engagement_stats(),
    })


@server.route('/api/health', methods=['GET'])
def health():
    """健康检查"""
    if check_database_connection():
        return jsonify({'status': 'ok'})
    return jsonify({'status': 'unavailable'}), 503


if __name__ == '__main__':
    from config import DEBUG, HOST, PORT
    from database.engine import init_database

    init_database()
    server.run(debug=DEBUG, host=HOST, port=PORT)
