#!/usr/bin/env python3
"""
AI 助手聊天记录的数据库表结构
聊天消息按写入顺序保存，操作 (actions) 以 JSON 形式存储
"""

import sqlite3
import logging

logger = logging.getLogger(__name__)


class ChatSchema:
    """
    聊天记录相关表结构管理。
    """

    @staticmethod
    def create_chat_tables(cursor: sqlite3.Cursor):
        """创建聊天消息表"""

        # chat_messages 表：助手面板中的每一条消息
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chat_messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                message_type TEXT NOT NULL CHECK (message_type IN ('user', 'ai')),
                content TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                actions_json TEXT,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)

        logger.info("聊天记录表创建完成")

    @staticmethod
    def create_chat_indexes(cursor: sqlite3.Cursor):
        """创建聊天记录索引"""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_chat_messages_timestamp ON chat_messages(timestamp);",
            "CREATE INDEX IF NOT EXISTS idx_chat_messages_type ON chat_messages(message_type);",
        ]

        for sql in indexes:
            try:
                cursor.execute(sql)
            except sqlite3.Error as e:
                logger.warning(f"聊天记录索引创建失败: {e}")

    @staticmethod
    def migrate_chat_schema(cursor: sqlite3.Cursor):
        """执行聊天记录表结构迁移"""
        ChatSchema.create_chat_tables(cursor)
        ChatSchema.create_chat_indexes(cursor)

    @staticmethod
    def trim_chat_messages(cursor: sqlite3.Cursor, keep: int) -> int:
        """
        只保留最近 keep 条消息，删除更早的记录。
        返回删除的条数。
        """
        cursor.execute("""
            DELETE FROM chat_messages
            WHERE id NOT IN (
                SELECT id FROM chat_messages ORDER BY id DESC LIMIT ?
            )
        """, (keep,))
        return cursor.rowcount


def apply_chat_migration(db_manager):
    """
    通过数据库管理器应用聊天记录表结构。
    应用启动时调用。
    """
    with db_manager.get_connection() as conn:
        cursor = conn.cursor()
        ChatSchema.migrate_chat_schema(cursor)
        conn.commit()
        logger.info("聊天记录迁移完成")
