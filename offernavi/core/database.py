import sqlite3
import os
from typing import Optional, Dict, Any
from contextlib import contextmanager
from offernavi.core.config import get_database_path
from offernavi.core.chat_schema import apply_chat_migration
import logging

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_database_path()
        self._ensure_db_directory()
        self._initialize_database()

    def _ensure_db_directory(self):
        db_dir = os.path.dirname(self.db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")

    @contextmanager
    def get_connection(self):
        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=30.0,
        )
        conn.row_factory = sqlite3.Row
        # 必需的 PRAGMA
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute("PRAGMA synchronous = NORMAL;")

        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            conn.close()

    def _initialize_database(self):
        with self.get_connection() as conn:
            cur = conn.cursor()

            # interviews：seq 保证插入顺序，id 为对外标识
            cur.execute("""
                CREATE TABLE IF NOT EXISTS interviews (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    company TEXT NOT NULL DEFAULT '',
                    datetime TEXT NOT NULL DEFAULT '',
                    position TEXT NOT NULL DEFAULT '',
                    job_description TEXT NOT NULL DEFAULT '',
                    notes TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)

            # interview_questions：模拟题 (mock) 与真实面经 (real)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS interview_questions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    interview_id TEXT NOT NULL,
                    kind TEXT NOT NULL CHECK (kind IN ('mock', 'real')),
                    question TEXT NOT NULL DEFAULT '',
                    answer TEXT NOT NULL DEFAULT '',
                    feedback TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (interview_id) REFERENCES interviews(id) ON DELETE CASCADE
                );
            """)

            self._create_indexes(cur)

        # 聊天记录表
        apply_chat_migration(self)

        logger.info("Database initialized successfully")

    def _create_indexes(self, cur):
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_interviews_datetime ON interviews(datetime);",
            "CREATE INDEX IF NOT EXISTS idx_interviews_company ON interviews(company);",
            "CREATE INDEX IF NOT EXISTS idx_interview_questions_interview_id ON interview_questions(interview_id);",
            "CREATE INDEX IF NOT EXISTS idx_interview_questions_kind ON interview_questions(kind);",
        ]
        for sql in indexes:
            try:
                cur.execute(sql)
            except sqlite3.Error as e:
                logger.warning(f"Index creation failed: {e}")

    def health_check(self) -> Dict[str, Any]:
        try:
            with self.get_connection() as conn:
                cur = conn.cursor()
                cur.execute("SELECT 1")
                cur.execute("SELECT COUNT(*) FROM interviews")
                interview_count = cur.fetchone()[0]
                cur.execute("SELECT COUNT(*) FROM interview_questions")
                question_count = cur.fetchone()[0]
                cur.execute("SELECT COUNT(*) FROM chat_messages")
                message_count = cur.fetchone()[0]
                cur.execute("PRAGMA page_count")
                page_count = cur.fetchone()[0]
                cur.execute("PRAGMA page_size")
                page_size = cur.fetchone()[0]
                db_size_mb = (page_count * page_size) / (1024 * 1024)
                return {
                    "status": "healthy",
                    "database_path": self.db_path,
                    "interviews_count": interview_count,
                    "questions_count": question_count,
                    "chat_messages_count": message_count,
                    "database_size_mb": round(db_size_mb, 2),
                    "wal_mode": True,
                }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}


# 全局实例（首次使用时创建）
_db_manager: Optional[DatabaseManager] = None

def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
