"""Relation and theme classification by keyword, plus the seeded template pick."""

import re
from typing import Sequence, TypeVar

from blessings.models.schemas import RelationType, ThemeType

T = TypeVar("T")

# Checked in insertion order; the first category with a matching keyword wins.
RELATION_KEYWORDS: dict[RelationType, list[str]] = {
    RelationType.ELDER: [
        "爸", "妈", "父", "母", "爷", "奶", "外公", "外婆", "姥", "爹", "姑",
        "姨", "舅", "叔", "伯", "婆婆", "公公", "岳", "长辈", "大爷", "大妈", "阿姨",
    ],
    RelationType.FRIEND: [
        "发小", "朋友", "闺蜜", "兄弟", "哥们", "姐妹", "好友", "室友",
        "同学", "死党", "伙伴", "基友", "损友", "挚友",
    ],
    RelationType.COLLEAGUE: [
        "同事", "领导", "老板", "同僚", "上司", "下属", "合伙人", "搭档", "总监", "经理", "主管", "CEO",
    ],
    RelationType.LOVER: [
        "老婆", "老公", "女朋友", "男朋友", "对象", "爱人", "媳妇", "另一半", "女友", "男友", "未婚", "恋人",
    ],
    RelationType.JUNIOR: [
        "儿子", "女儿", "孩子", "侄子", "侄女", "外甥", "宝宝", "闺女", "小朋友", "弟弟", "妹妹", "学生",
    ],
    RelationType.TEACHER: ["老师", "导师", "教授", "师父", "教练", "师傅"],
    RelationType.CLIENT: ["客户", "甲方", "合作方", "商业伙伴", "合作伙伴"],
}

THEME_RULES: list[tuple[re.Pattern, ThemeType]] = [
    (re.compile(r"父母|爸爸|妈妈|爷爷|奶奶|外公|外婆|长辈|叔叔|阿姨|伯伯"), ThemeType.TRADITIONAL),
    (re.compile(r"女儿|孙女|妹妹|姐姐|闺蜜|女朋友|老婆|妻子|孩子|小朋友|宝宝"), ThemeType.CUTE),
    (re.compile(r"同事|老板|领导|客户|合作伙伴|商务|职场|工作"), ThemeType.MODERN),
    (re.compile(r"老师|教授|导师|文艺|作家|艺术家|知识分子"), ThemeType.ELEGANT),
    (re.compile(r"朋友|同学|兄弟|哥们|室友|年轻"), ThemeType.MODERN),
]


def classify_relation(relation: str) -> RelationType:
    """
    Classify a free-text relation into a category.

    Args:
        relation: Relation text, e.g. "发小" or "我妈"

    Returns:
        First category whose keyword occurs in the text, else GENERAL
    """
    for relation_type, keywords in RELATION_KEYWORDS.items():
        if any(keyword in relation for keyword in keywords):
            return relation_type
    return RelationType.GENERAL


def suggest_theme(relation: str, background: str = "") -> ThemeType:
    """Pick a visual theme from relation and background keywords."""
    text = f"{relation} {background}".lower()
    for pattern, theme in THEME_RULES:
        if pattern.search(text):
            return theme
    return ThemeType.TRADITIONAL


def stable_hash(seed: str) -> int:
    """
    Polynomial rolling hash (h * 31 + code unit) wrapped to signed 32 bits.

    Code units are UTF-16, so characters outside the BMP count as two.
    """
    data = seed.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def seeded_pick(pool: Sequence[T], seed: str) -> T:
    """Pick an element deterministically from a non-empty pool."""
    if not pool:
        raise ValueError("Cannot pick from an empty pool")
    return pool[abs(stable_hash(seed)) % len(pool)]
