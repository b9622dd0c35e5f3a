#!/usr/bin/env python3
"""
实体抽取
从用户消息中抽取公司、时间、职位以及面试题内容。

每个字段的模式按顺序依次尝试，后面匹配成功的模式会覆盖前面的结果，
不做合并也不挑最长匹配；规则表的顺序因此决定了歧义输入的结果。
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern

from offernavi.assistant.models import InterviewEntities, QuestionEntities

COMPANY_PATTERNS: List[Pattern] = [
    re.compile(r'(?:在|去|到)(.{2,10})(?:面试|公司)'),
    re.compile(r'([^在去到]{2,10})(?:的面试|面试)'),
]
COMPANY_PARTICLES = re.compile(r'面试|公司|的|在|去|到')

TIME_PATTERNS: List[Pattern] = [
    re.compile(r'(?:明天|后天|下周|这周|今天)'),
    re.compile(r'\d{1,2}[点:：]\d{0,2}'),
    re.compile(r'\d{1,2}月\d{1,2}[日号]'),
    re.compile(r'\d{4}[-年]\d{1,2}[-月]\d{1,2}'),
]

POSITION_PATTERNS: List[Pattern] = [
    re.compile(r'(.{2,10})(?:岗位|职位|工程师|经理|专员)'),
]

REAL_QUESTION_INDICATORS = ('面试官问了', '刚面试', '今天面试', '面试中')
QUESTION_CONTENT_PATTERN = re.compile(
    r'(?:问题[:：]?|内容[:：])\s*["\'“”‘’「」『』](.+)["\'“”‘’「」『』]'
)


def _last_match(patterns: List[Pattern], message: str) -> Optional[str]:
    """依次尝试每个模式，返回最后一个匹配成功的模式的首个匹配"""
    value = None
    for pattern in patterns:
        match = pattern.search(message)
        if match:
            value = match.group(0)
    return value


def extract_company(message: str) -> Optional[str]:
    company = None
    for pattern in COMPANY_PATTERNS:
        match = pattern.search(message)
        if match:
            company = COMPANY_PARTICLES.sub('', match.group(0)).strip()
    return company or None


def extract_time(message: str) -> Optional[str]:
    return _last_match(TIME_PATTERNS, message)


def extract_position(message: str) -> Optional[str]:
    for pattern in POSITION_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(0)
    return None


def extract_interview_entities(message: str) -> InterviewEntities:
    return InterviewEntities(
        company=extract_company(message),
        time=extract_time(message),
        position=extract_position(message),
    )


def extract_question_entities(message: str) -> QuestionEntities:
    is_real = any(indicator in message for indicator in REAL_QUESTION_INDICATORS)
    match = QUESTION_CONTENT_PATTERN.search(message)
    return QuestionEntities(
        is_real=is_real,
        question=match.group(1) if match else None,
    )
