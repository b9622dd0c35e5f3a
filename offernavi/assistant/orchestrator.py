#!/usr/bin/env python3
"""
聊天编排
接收用户原始文本：意图识别 → 处理器 → 生成回复，并维护有上限的聊天记录
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from offernavi.assistant.answer_templates import AnswerGenerator, WELCOME_MESSAGE
from offernavi.assistant.handlers import AssistantContext, CompletionClient, dispatch, undo_action
from offernavi.assistant.intent_classifier import IntentClassifier
from offernavi.assistant.models import Action, Message, MessageType
from offernavi.store.chat_history import ChatHistoryStore
from offernavi.store.interview_store import InterviewStore

logger = logging.getLogger(__name__)

REPLY_UNEXPECTED_ERROR = '抱歉，我遇到了一些问题。请稍后再试，或者尝试重新描述您的需求。'
REPLY_RESTORED = '面试已恢复'
EXPORT_VERSION = '1.0'


class ChatOrchestrator:
    """
    AI 助手的入口。

    并发调用之间没有任何互斥：同时处理两条消息时，存储的修改可能交错。
    """

    def __init__(
        self,
        store: InterviewStore,
        history_store: Optional[ChatHistoryStore] = None,
        completion: Optional[CompletionClient] = None,
        classifier: Optional[IntentClassifier] = None,
        answer_generator: Optional[AnswerGenerator] = None,
        history_limit: int = 50,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.history_store = history_store
        self.completion = completion
        self.classifier = classifier or IntentClassifier()
        self.answer_generator = answer_generator or AnswerGenerator()
        self.history_limit = history_limit
        self.clock = clock
        self.history: List[Message] = self._load_history()

    def _load_history(self) -> List[Message]:
        if self.history_store is None:
            return []
        try:
            return self.history_store.load(self.history_limit)
        except Exception as e:
            logger.error(f"Failed to load chat history: {e}")
            return []

    def _save_history(self) -> None:
        self.history = self.history[-self.history_limit:]
        if self.history_store is None:
            return
        try:
            self.history_store.save(self.history)
        except Exception as e:
            logger.error(f"Failed to save chat history: {e}")

    def _append(self, message: Message) -> Message:
        self.history.append(message)
        return message

    def _timestamp(self) -> str:
        return self.clock().isoformat()

    def welcome(self) -> Optional[Message]:
        """聊天记录为空时返回欢迎消息"""
        if self.history:
            return None
        return Message(MessageType.AI, WELCOME_MESSAGE, self._timestamp())

    async def handle_message(self, text: str) -> Message:
        """处理一条用户消息，返回助手回复"""
        content = (text or "").strip()
        if not content:
            raise ValueError("message must not be empty")

        # 大模型只看到当前消息之前的对话
        previous = list(self.history)
        self._append(Message(MessageType.USER, content, self._timestamp()))

        try:
            intent = self.classifier.identify_intent(content)
            logger.info(f"Intent for '{content[:30]}': {intent.type.value} ({intent.confidence})")

            ctx = AssistantContext(
                store=self.store,
                completion=self.completion,
                history=previous,
                answer_generator=self.answer_generator,
                clock=self.clock,
            )
            reply = await dispatch(content, intent, ctx)
            ai_message = Message(MessageType.AI, reply.content, self._timestamp(), list(reply.actions))
        except Exception as e:
            logger.error(f"Failed to process message: {e}", exc_info=True)
            ai_message = Message(MessageType.AI, REPLY_UNEXPECTED_ERROR, self._timestamp())

        self._append(ai_message)
        self._save_history()
        return ai_message

    def undo(self, action: Action) -> Optional[Dict[str, Any]]:
        """执行回复里的撤销操作；目前只有删除可以撤销"""
        restored = undo_action(action, self.store)
        if restored is not None:
            logger.info(REPLY_RESTORED)
        return restored

    def replace_history(self, messages: List[Message]) -> int:
        """用外部提交的聊天记录覆盖当前记录（同步 / 恢复备份）"""
        self.history = list(messages)
        self._save_history()
        return len(self.history)

    def clear_history(self) -> None:
        self.history = []
        if self.history_store is not None:
            self.history_store.clear()

    def export_history(self) -> Dict[str, Any]:
        return {
            "chat_history": [m.to_dict() for m in self.history],
            "export_time": self._timestamp(),
            "version": EXPORT_VERSION,
        }


# 全局实例
_orchestrator: Optional[ChatOrchestrator] = None

def get_orchestrator() -> ChatOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        from offernavi.core.config import get_settings
        from offernavi.llm.qwen_client import get_qwen_client
        from offernavi.store.chat_history import get_chat_history_store
        from offernavi.store.interview_store import get_interview_store

        _orchestrator = ChatOrchestrator(
            store=get_interview_store(),
            history_store=get_chat_history_store(),
            completion=get_qwen_client(),
            history_limit=get_settings().chat_history_limit,
        )
    return _orchestrator
