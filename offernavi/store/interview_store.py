#!/usr/bin/env python3
"""
面试数据存储
面试安排、模拟面试题与真实面经的增删改查，全部为同步调用，
找不到记录时返回 None 而不是抛出异常
"""

import uuid
import sqlite3
from datetime import datetime, date
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterable
import logging

from offernavi.core.database import DatabaseManager, get_db_manager

logger = logging.getLogger(__name__)

INTERVIEW_FIELDS = ("company", "datetime", "position", "job_description", "notes")
QUESTION_KINDS = ("mock", "real")


@dataclass
class Question:
    """面试题数据类"""
    id: str
    question: str
    answer: str = ""
    feedback: Optional[str] = None
    created_at: Optional[str] = None
    kind: str = "mock"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "created_at": self.created_at,
        }
        if self.kind == "real":
            data["feedback"] = self.feedback or ""
        return data


@dataclass
class Interview:
    """面试安排数据类"""
    id: str
    company: str
    datetime: str  # YYYY-MM-DDTHH:MM
    position: str = ""
    job_description: str = ""
    notes: str = ""
    mock_questions: List[Question] = field(default_factory=list)
    real_questions: List[Question] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def scheduled_at(self) -> Optional[datetime]:
        """面试时间；格式无法识别时返回 None"""
        try:
            return datetime.fromisoformat(self.datetime)
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "company": self.company,
            "datetime": self.datetime,
            "position": self.position,
            "job_description": self.job_description,
            "notes": self.notes,
            "mock_questions": [q.to_dict() for q in self.mock_questions],
            "real_questions": [q.to_dict() for q in self.real_questions],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def generate_id() -> str:
    return uuid.uuid4().hex


class InterviewStore:
    """面试数据存储（SQLite）"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()

    # ---------- 面试 ----------

    def add_interview(self, data: Dict[str, Any]) -> Interview:
        """新增面试

        Args:
            data: 面试字段；可带 mock_questions / real_questions，
                  用于撤销删除时整体恢复

        Returns:
            Interview: 新建的面试（新 id）
        """
        now = datetime.now().isoformat()
        interview = Interview(
            id=generate_id(),
            company=data.get("company") or "",
            datetime=data.get("datetime") or "",
            position=data.get("position") or "",
            job_description=data.get("job_description") or "",
            notes=data.get("notes") or "",
            created_at=now,
            updated_at=now,
        )

        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            self._insert_interview(cursor, interview)
            for kind in QUESTION_KINDS:
                for item in data.get(f"{kind}_questions") or []:
                    question = self._build_question(kind, item, now)
                    self._insert_question(cursor, interview.id, question)
                    self._question_list(interview, kind).append(question)

        logger.info(f"Added interview {interview.id}: {interview.company} @ {interview.datetime}")
        return interview

    def update_interview(self, interview_id: str, partial: Dict[str, Any]) -> Optional[Interview]:
        """合并更新面试字段，只接受面试本身的字段"""
        updates = {k: v for k, v in partial.items() if k in INTERVIEW_FIELDS and v is not None}
        ignored = set(partial) - set(updates)
        if ignored:
            logger.debug(f"update_interview ignored fields: {sorted(ignored)}")

        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            if not self._exists(cursor, interview_id):
                return None

            updates["updated_at"] = datetime.now().isoformat()
            assignments = ", ".join(f"{column} = ?" for column in updates)
            cursor.execute(
                f"UPDATE interviews SET {assignments} WHERE id = ?",
                (*updates.values(), interview_id),
            )

        logger.info(f"Updated interview {interview_id}")
        return self.get_interview_by_id(interview_id)

    def delete_interview(self, interview_id: str) -> Optional[Interview]:
        """删除面试，返回被删除的完整记录（含题目）"""
        interview = self.get_interview_by_id(interview_id)
        if interview is None:
            return None

        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM interviews WHERE id = ?", (interview_id,))

        logger.info(f"Deleted interview {interview_id}: {interview.company}")
        return interview

    def get_all_interviews(self) -> List[Interview]:
        """按插入顺序返回全部面试"""
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM interviews ORDER BY seq")
            return self._hydrate(cursor, cursor.fetchall())

    def get_interview_by_id(self, interview_id: str) -> Optional[Interview]:
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM interviews WHERE id = ?", (interview_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._hydrate(cursor, [row])[0]

    def get_interviews_by_date(self, day: date) -> List[Interview]:
        """某一天的面试（只比较日期部分）"""
        prefix = day.strftime("%Y-%m-%d")
        return [i for i in self.get_all_interviews() if i.datetime.startswith(prefix)]

    def get_interviews_in_range(self, start: datetime, end: datetime) -> List[Interview]:
        """时间区间内的面试，两端包含"""
        result = []
        for interview in self.get_all_interviews():
            scheduled = interview.scheduled_at
            if scheduled is not None and start <= scheduled <= end:
                result.append(interview)
        return result

    def search_interviews(self, keyword: str) -> List[Interview]:
        """在公司、职位、岗位描述、备注中做不区分大小写的包含匹配"""
        interviews = self.get_all_interviews()
        if not keyword or not keyword.strip():
            return interviews

        lowered = keyword.lower()
        return [
            i for i in interviews
            if lowered in i.company.lower()
            or lowered in i.position.lower()
            or lowered in i.job_description.lower()
            or lowered in i.notes.lower()
        ]

    # ---------- 面试题 ----------

    def add_mock_question(self, interview_id: str, data: Dict[str, Any]) -> Optional[Question]:
        return self._add_question(interview_id, "mock", data)

    def add_real_question(self, interview_id: str, data: Dict[str, Any]) -> Optional[Question]:
        return self._add_question(interview_id, "real", data)

    def update_question(self, interview_id: str, question_id: str, data: Dict[str, Any]) -> Optional[Question]:
        """更新题目的 question / answer / feedback"""
        updates = {k: data[k] for k in ("question", "answer", "feedback") if data.get(k) is not None}

        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM interview_questions WHERE id = ? AND interview_id = ?",
                (question_id, interview_id),
            )
            if cursor.fetchone() is None:
                return None

            if updates:
                assignments = ", ".join(f"{column} = ?" for column in updates)
                cursor.execute(
                    f"UPDATE interview_questions SET {assignments} WHERE id = ?",
                    (*updates.values(), question_id),
                )
                self._touch(cursor, interview_id)

            cursor.execute("SELECT * FROM interview_questions WHERE id = ?", (question_id,))
            return self._row_to_question(cursor.fetchone())

    def delete_question(self, interview_id: str, question_id: str, kind: str = "mock") -> Optional[Question]:
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM interview_questions WHERE id = ? AND interview_id = ? AND kind = ?",
                (question_id, interview_id, kind),
            )
            row = cursor.fetchone()
            if row is None:
                return None

            cursor.execute("DELETE FROM interview_questions WHERE id = ?", (question_id,))
            self._touch(cursor, interview_id)

        logger.info(f"Deleted {kind} question {question_id} from interview {interview_id}")
        return self._row_to_question(row)

    # ---------- 批量与统计 ----------

    def replace_all(self, interviews: Iterable[Dict[str, Any]]) -> int:
        """用给定数据整体替换（恢复备份 / 同步），保留原有 id 与时间戳"""
        now = datetime.now().isoformat()
        count = 0

        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM interviews")
            for data in interviews:
                interview = Interview(
                    id=data.get("id") or generate_id(),
                    company=data.get("company") or "",
                    datetime=data.get("datetime") or "",
                    position=data.get("position") or "",
                    job_description=data.get("job_description") or "",
                    notes=data.get("notes") or "",
                    created_at=data.get("created_at") or now,
                    updated_at=data.get("updated_at") or now,
                )
                self._insert_interview(cursor, interview)
                for kind in QUESTION_KINDS:
                    for item in data.get(f"{kind}_questions") or []:
                        question = self._build_question(kind, item, now, keep_id=True)
                        self._insert_question(cursor, interview.id, question)
                count += 1

        logger.info(f"Replaced interview data with {count} records")
        return count

    def clear_all(self) -> None:
        with self.db_manager.get_connection() as conn:
            conn.execute("DELETE FROM interviews")
        logger.info("Cleared all interviews")

    def get_statistics(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """面试统计：总数、本月、即将进行、已完成、公司数、题目数"""
        now = now or datetime.now()
        interviews = self.get_all_interviews()

        this_month = upcoming = completed = 0
        for interview in interviews:
            scheduled = interview.scheduled_at
            if scheduled is None:
                continue
            if scheduled.year == now.year and scheduled.month == now.month:
                this_month += 1
            if scheduled > now:
                upcoming += 1
            elif scheduled < now:
                completed += 1

        return {
            "total": len(interviews),
            "this_month": this_month,
            "upcoming": upcoming,
            "completed": completed,
            "companies": len({i.company for i in interviews}),
            "questions": sum(len(i.mock_questions) + len(i.real_questions) for i in interviews),
        }

    # ---------- 内部工具 ----------

    def _add_question(self, interview_id: str, kind: str, data: Dict[str, Any]) -> Optional[Question]:
        now = datetime.now().isoformat()
        question = self._build_question(kind, data, now)

        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            if not self._exists(cursor, interview_id):
                logger.warning(f"Cannot add {kind} question, interview not found: {interview_id}")
                return None
            self._insert_question(cursor, interview_id, question)
            self._touch(cursor, interview_id)

        logger.info(f"Added {kind} question {question.id} to interview {interview_id}")
        return question

    @staticmethod
    def _build_question(kind: str, data: Dict[str, Any], now: str, keep_id: bool = False) -> Question:
        return Question(
            id=(data.get("id") if keep_id else None) or generate_id(),
            question=data.get("question") or "",
            answer=data.get("answer") or "",
            feedback=(data.get("feedback") or "") if kind == "real" else None,
            created_at=data.get("created_at") or now,
            kind=kind,
        )

    @staticmethod
    def _insert_interview(cursor: sqlite3.Cursor, interview: Interview):
        cursor.execute("""
            INSERT INTO interviews
            (id, company, datetime, position, job_description, notes, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            interview.id, interview.company, interview.datetime, interview.position,
            interview.job_description, interview.notes, interview.created_at, interview.updated_at
        ))

    @staticmethod
    def _insert_question(cursor: sqlite3.Cursor, interview_id: str, question: Question):
        cursor.execute("""
            INSERT INTO interview_questions
            (id, interview_id, kind, question, answer, feedback, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            question.id, interview_id, question.kind, question.question,
            question.answer, question.feedback, question.created_at
        ))

    @staticmethod
    def _exists(cursor: sqlite3.Cursor, interview_id: str) -> bool:
        cursor.execute("SELECT 1 FROM interviews WHERE id = ?", (interview_id,))
        return cursor.fetchone() is not None

    @staticmethod
    def _touch(cursor: sqlite3.Cursor, interview_id: str):
        cursor.execute(
            "UPDATE interviews SET updated_at = ? WHERE id = ?",
            (datetime.now().isoformat(), interview_id),
        )

    @staticmethod
    def _question_list(interview: Interview, kind: str) -> List[Question]:
        return interview.mock_questions if kind == "mock" else interview.real_questions

    @staticmethod
    def _row_to_question(row: sqlite3.Row) -> Question:
        return Question(
            id=row["id"],
            question=row["question"],
            answer=row["answer"],
            feedback=row["feedback"],
            created_at=row["created_at"],
            kind=row["kind"],
        )

    def _hydrate(self, cursor: sqlite3.Cursor, rows: List[sqlite3.Row]) -> List[Interview]:
        """把面试行和它们的题目组装成 Interview 对象"""
        interviews = [
            Interview(
                id=row["id"],
                company=row["company"],
                datetime=row["datetime"],
                position=row["position"],
                job_description=row["job_description"],
                notes=row["notes"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]
        if not interviews:
            return interviews

        by_id = {i.id: i for i in interviews}
        placeholders = ", ".join("?" for _ in by_id)
        cursor.execute(
            f"SELECT * FROM interview_questions WHERE interview_id IN ({placeholders}) ORDER BY seq",
            tuple(by_id),
        )
        for row in cursor.fetchall():
            question = self._row_to_question(row)
            self._question_list(by_id[row["interview_id"]], question.kind).append(question)

        return interviews


# 全局实例
_interview_store: Optional[InterviewStore] = None

def get_interview_store() -> InterviewStore:
    global _interview_store
    if _interview_store is None:
        _interview_store = InterviewStore()
    return _interview_store
