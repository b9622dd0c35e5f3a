#!/usr/bin/env python3
"""
聊天记录存储
助手面板的消息列表，只保留最近的若干条
"""

import json
from typing import List, Optional
import logging

from offernavi.core.config import get_settings
from offernavi.core.chat_schema import ChatSchema
from offernavi.core.database import DatabaseManager, get_db_manager
from offernavi.assistant.models import Message, MessageType, Action

logger = logging.getLogger(__name__)


class ChatHistoryStore:
    """聊天记录存储（SQLite）"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None, limit: Optional[int] = None):
        self.db_manager = db_manager or get_db_manager()
        self.limit = limit or get_settings().chat_history_limit

    def load(self, limit: Optional[int] = None) -> List[Message]:
        """按时间顺序返回最近 limit 条消息"""
        limit = limit or self.limit
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT message_type, content, timestamp, actions_json
                FROM chat_messages
                ORDER BY id DESC
                LIMIT ?
            """, (limit,))
            rows = cursor.fetchall()

        messages = []
        for row in reversed(rows):
            actions = json.loads(row["actions_json"]) if row["actions_json"] else []
            messages.append(Message(
                type=MessageType(row["message_type"]),
                content=row["content"],
                timestamp=row["timestamp"],
                actions=[Action.from_dict(a) for a in actions],
            ))
        return messages

    def save(self, messages: List[Message]) -> int:
        """整体覆盖保存，只写入最近 limit 条；返回写入条数"""
        recent = messages[-self.limit:]
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM chat_messages")
            cursor.executemany("""
                INSERT INTO chat_messages (message_type, content, timestamp, actions_json)
                VALUES (?, ?, ?, ?)
            """, [
                (
                    m.type.value,
                    m.content,
                    m.timestamp,
                    json.dumps([a.to_dict() for a in m.actions], ensure_ascii=False) if m.actions else None,
                )
                for m in recent
            ])
            ChatSchema.trim_chat_messages(cursor, self.limit)

        logger.debug(f"Saved {len(recent)} chat messages")
        return len(recent)

    def clear(self) -> None:
        with self.db_manager.get_connection() as conn:
            conn.execute("DELETE FROM chat_messages")
        logger.info("Chat history cleared")

    def count(self) -> int:
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM chat_messages")
            return cursor.fetchone()[0]


# 全局实例
_chat_history_store: Optional[ChatHistoryStore] = None

def get_chat_history_store() -> ChatHistoryStore:
    global _chat_history_store
    if _chat_history_store is None:
        _chat_history_store = ChatHistoryStore()
    return _chat_history_store
