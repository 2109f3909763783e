"""
Pydantic 验证错误处理工具

将验证错误格式化为友好的字段级消息，并生成API错误响应体。
"""
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError


def format_validation_error(error: ValidationError) -> List[Dict[str, Any]]:
    """
    格式化 Pydantic 验证错误为用户友好的消息列表

    Args:
        error: Pydantic ValidationError 对象

    Returns:
        格式化的错误消息列表，每个错误包含 field、message 和 type

    Example:
        >>> from database.schemas import DecisionCreate
        >>> try:
        ...     DecisionCreate(name="", criteria=[], alternatives=[])
        ... except ValidationError as e:
        ...     errors = format_validation_error(e)
        ...     # [{'field': 'name', 'message': '字段不能为空', ...},
        ...     #  {'field': 'criteria', 'message': '至少需要 2 项', ...}]
    """
    formatted_errors = []

    for err in error.errors():
        field_path = " → ".join(str(loc) for loc in err['loc']) or "__root__"
        error_type = err['type']
        error_msg = err['msg']
        ctx = err.get('ctx', {}) or {}

        # 根据错误类型生成友好的中文消息
        if error_type == 'string_too_short':
            message = "字段不能为空"
        elif error_type == 'string_too_long':
            message = f"字段长度不能超过 {ctx.get('max_length', '未知')} 个字符"
        elif error_type == 'too_short':
            message = f"至少需要 {ctx.get('min_length', '未知')} 项"
        elif error_type == 'too_long':
            message = f"最多允许 {ctx.get('max_length', '未知')} 项"
        elif error_type == 'greater_than':
            message = f"值必须大于 {ctx.get('gt', '未知')}"
        elif error_type == 'greater_than_equal':
            message = f"值必须大于或等于 {ctx.get('ge', '未知')}"
        elif error_type == 'less_than_equal':
            message = f"值必须小于或等于 {ctx.get('le', '未知')}"
        elif error_type == 'value_error':
            # 自定义验证错误（如矩阵形状、决策类别）
            message = error_msg.replace('Value error, ', '')
        elif error_type == 'missing':
            message = "此字段为必填项"
        else:
            # 其他错误，使用原始消息
            message = error_msg

        formatted_errors.append({
            'field': field_path,
            'message': message,
            'type': error_type
        })

    return formatted_errors


def create_error_response(
    message: str,
    errors: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    创建API错误响应体

    Args:
        message: 错误概要
        errors: 格式化的字段错误列表（来自 format_validation_error）
    """
    body: Dict[str, Any] = {'message': message}
    if errors:
        body['errors'] = errors
    return body


def validate_payload(
    schema_class: Type[BaseModel],
    data: Any
) -> Tuple[Optional[BaseModel], List[Dict[str, Any]]]:
    """
    验证数据并返回 Schema 实例和错误列表

    Returns:
        (schema_instance, errors) 元组
        - 如果验证成功，返回 (实例, [])
        - 如果验证失败，返回 (None, 错误列表)
    """
    try:
        return schema_class.model_validate(data if data is not None else {}), []
    except ValidationError as e:
        return None, format_validation_error(e)
