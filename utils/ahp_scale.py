"""
AHP判断标度工具

滑块位置 (1-17) 与 Saaty 1-9 标度之间的转换，以及判断的文字描述。
位置9为同等重要，左侧偏向左边（行）元素，右侧偏向右边（列）元素：

    位置:  1  2  3  ...  8  9  10   ...  17
    标度:  9  8  7  ...  2  1  1/2  ...  1/9
"""

import math
from typing import List, Sequence, Tuple, TypeVar

T = TypeVar('T')

SLIDER_MIN = 1
SLIDER_MAX = 17
SLIDER_CENTER = 9

# Saaty 标度语义
JUDGMENT_LABELS = {
    1: "同等重要",
    2: "同等至稍微重要",
    3: "稍微重要",
    4: "稍微至明显重要",
    5: "明显重要",
    6: "明显至强烈重要",
    7: "强烈重要",
    8: "强烈至极端重要",
    9: "极端重要",
}


def slider_to_scale(position: int) -> float:
    """
    滑块位置转换为AHP标度值

    Args:
        position: 1-17 的整数

    Returns:
        左边元素相对右边元素的重要性倍数
    """
    if isinstance(position, bool) or int(position) != position:
        raise ValueError(f"滑块位置必须是整数，当前值: {position}")
    position = int(position)
    if not SLIDER_MIN <= position <= SLIDER_MAX:
        raise ValueError(f"滑块位置必须在 {SLIDER_MIN}-{SLIDER_MAX} 之间，当前值: {position}")

    if position < SLIDER_CENTER:
        return float(SLIDER_CENTER + 1 - position)
    if position == SLIDER_CENTER:
        return 1.0
    return 1.0 / (position - SLIDER_CENTER + 1)


def scale_to_slider(value: float) -> int:
    """AHP标度值转换为最接近的滑块位置（按对数距离）"""
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"标度值必须是正数，当前值: {value}")

    target = math.log(value)
    return min(
        range(SLIDER_MIN, SLIDER_MAX + 1),
        key=lambda p: abs(math.log(slider_to_scale(p)) - target)
    )


def format_scale_value(value: float) -> str:
    """格式化标度值：3 -> '3'，0.2 -> '1/5'"""
    if value <= 0:
        raise ValueError(f"标度值必须是正数，当前值: {value}")
    if value >= 1:
        rounded = round(value)
        return str(rounded) if math.isclose(value, rounded, rel_tol=1e-9) else f"{value:g}"
    inverse = 1.0 / value
    rounded = round(inverse)
    if math.isclose(inverse, rounded, rel_tol=1e-9):
        return f"1/{rounded}"
    return f"{value:.3f}"


def judgment_label(value: float) -> str:
    """标度值对应的语义（按较大一方的倍数）"""
    magnitude = value if value >= 1 else 1.0 / value
    return JUDGMENT_LABELS.get(round(magnitude), "自定义判断")


def describe_comparison(value: float, left: str, right: str) -> str:
    """生成成对比较的文字描述"""
    if math.isclose(value, 1.0):
        return f"{left} 与 {right} 同等重要"
    if value > 1:
        return f"{left} 比 {right} 重要 {format_scale_value(value)} 倍（{judgment_label(value)}）"
    return f"{right} 比 {left} 重要 {format_scale_value(1.0 / value)} 倍（{judgment_label(value)}）"


def generate_pairs(items: Sequence[T]) -> List[Tuple[T, T]]:
    """按上三角顺序生成所有成对组合"""
    return [
        (items[i], items[j])
        for i in range(len(items))
        for j in range(i + 1, len(items))
    ]
