#!/usr/bin/env python3
"""
意图识别
按规则表顺序检查小写化后的消息，第一个命中关键词的规则生效；
因此同时包含 "添加面试" 和 "面试题" 的消息识别为添加面试。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from offernavi.assistant.entity_extractor import (
    extract_interview_entities,
    extract_question_entities,
)
from offernavi.assistant.models import Intent, IntentType


@dataclass(frozen=True)
class IntentRule:
    intent: IntentType
    keywords: Tuple[str, ...]
    confidence: float
    extractor: Optional[Callable[[str], object]] = None


INTENT_RULES: List[IntentRule] = [
    IntentRule(
        IntentType.ADD_INTERVIEW,
        ('添加面试', '新增面试', '面试安排', '面试时间', '有面试'),
        0.9,
        extract_interview_entities,
    ),
    IntentRule(
        IntentType.DELETE_INTERVIEW,
        ('删除面试', '取消面试', '移除面试'),
        0.9,
        extract_interview_entities,
    ),
    IntentRule(
        IntentType.ADD_QUESTION,
        ('面试题', '面经', '面试官问了', '复盘', '刚面试'),
        0.8,
        extract_question_entities,
    ),
]

GENERAL_QUERY_CONFIDENCE = 0.5


class IntentClassifier:
    """把助手消息归入固定的几种意图之一"""

    def __init__(self, rules: Optional[List[IntentRule]] = None) -> None:
        self.rules = rules if rules is not None else INTENT_RULES

    def match_rule(self, message: str) -> Optional[IntentRule]:
        lowered = message.lower()
        for rule in self.rules:
            if any(keyword in lowered for keyword in rule.keywords):
                return rule
        return None

    def identify_intent(self, message: str) -> Intent:
        rule = self.match_rule(message)
        if rule is None:
            return Intent(IntentType.GENERAL_QUERY, GENERAL_QUERY_CONFIDENCE, None)

        entities = rule.extractor(message) if rule.extractor else None
        return Intent(rule.intent, rule.confidence, entities)


_default_classifier = IntentClassifier()


def identify_intent(message: str) -> Intent:
    return _default_classifier.identify_intent(message)
