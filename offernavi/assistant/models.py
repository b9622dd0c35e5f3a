#!/usr/bin/env python3
"""
AI 助手的数据结构
消息、意图、实体、操作与助手回复
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class MessageType(str, Enum):
    USER = "user"
    AI = "ai"


class IntentType(str, Enum):
    ADD_INTERVIEW = "add_interview"
    DELETE_INTERVIEW = "delete_interview"
    ADD_QUESTION = "add_question"
    GENERAL_QUERY = "general_query"


class ActionType(str, Enum):
    INTERVIEW_ADDED = "interview_added"
    INTERVIEW_DELETED = "interview_deleted"
    QUESTION_ADDED = "question_added"


# 回复下方操作链接的文字
ACTION_LABELS: Dict[ActionType, str] = {
    ActionType.INTERVIEW_ADDED: "查看面试详情",
    ActionType.INTERVIEW_DELETED: "撤销删除",
    ActionType.QUESTION_ADDED: "查看完整内容",
}


@dataclass(frozen=True)
class InterviewEntities:
    """从消息中抽取的面试实体"""
    company: Optional[str] = None
    time: Optional[str] = None  # 原始时间短语，未解析
    position: Optional[str] = None


@dataclass(frozen=True)
class QuestionEntities:
    """从消息中抽取的面试题实体"""
    is_real: bool = False
    question: Optional[str] = None


@dataclass(frozen=True)
class Intent:
    type: IntentType
    confidence: float
    entities: Any = None  # InterviewEntities | QuestionEntities | None


@dataclass(frozen=True)
class Action:
    type: ActionType
    data: Dict[str, Any]

    @property
    def label(self) -> str:
        return ACTION_LABELS.get(self.type, "查看详情")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": self.data}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        return cls(type=ActionType(data["type"]), data=data.get("data") or {})


@dataclass(frozen=True)
class Message:
    """聊天消息，创建后不可修改"""
    type: MessageType
    content: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    actions: List[Action] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "actions": [a.to_dict() for a in self.actions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            type=MessageType(data["type"]),
            content=data.get("content", ""),
            timestamp=data.get("timestamp") or datetime.now().isoformat(),
            actions=[Action.from_dict(a) for a in data.get("actions") or []],
        )


@dataclass
class AssistantReply:
    """处理器的返回：回复文本 + 操作列表"""
    content: str
    actions: List[Action] = field(default_factory=list)
