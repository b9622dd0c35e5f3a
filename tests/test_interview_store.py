#!/usr/bin/env python3
"""
面试数据存储测试
面试增删改查、面试题、筛选、整体替换与统计
"""

import os
import sys
import tempfile
import unittest
from datetime import date, datetime

# 把项目根目录加入 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from offernavi.core.database import DatabaseManager
from offernavi.store.interview_store import InterviewStore, Interview


def remove_db_files(db_path):
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


class TestInterviewStore(unittest.TestCase):
    """面试存储测试"""

    def setUp(self):
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.db_path = self.test_db.name
        self.test_db.close()

        self.db_manager = DatabaseManager(self.db_path)
        self.store = InterviewStore(self.db_manager)

    def tearDown(self):
        remove_db_files(self.db_path)

    def _add(self, company, when, **extra):
        data = {"company": company, "datetime": when}
        data.update(extra)
        return self.store.add_interview(data)

    def test_add_and_get_interview(self):
        created = self._add("腾讯", "2025-06-15T14:00", position="后端工程师")

        self.assertTrue(created.id)
        self.assertEqual(created.created_at, created.updated_at)

        loaded = self.store.get_interview_by_id(created.id)
        self.assertIsInstance(loaded, Interview)
        self.assertEqual(loaded.company, "腾讯")
        self.assertEqual(loaded.position, "后端工程师")
        self.assertEqual(loaded.scheduled_at, datetime(2025, 6, 15, 14, 0))

    def test_missing_interview_returns_none(self):
        self.assertIsNone(self.store.get_interview_by_id("missing"))
        self.assertIsNone(self.store.update_interview("missing", {"notes": "x"}))
        self.assertIsNone(self.store.delete_interview("missing"))
        self.assertIsNone(self.store.add_mock_question("missing", {"question": "q"}))

    def test_insertion_order(self):
        later = self._add("B公司", "2025-07-01T10:00")
        earlier = self._add("A公司", "2025-06-01T10:00")

        ids = [i.id for i in self.store.get_all_interviews()]
        self.assertEqual(ids, [later.id, earlier.id])

    def test_update_interview_merges_fields(self):
        created = self._add("腾讯", "2025-06-15T14:00", notes="一面")

        updated = self.store.update_interview(created.id, {"position": "产品经理", "id": "ignored"})

        self.assertEqual(updated.id, created.id)
        self.assertEqual(updated.position, "产品经理")
        self.assertEqual(updated.notes, "一面")
        self.assertGreaterEqual(updated.updated_at, created.updated_at)

    def test_delete_returns_full_record_and_cascades(self):
        created = self._add("腾讯", "2025-06-15T14:00")
        self.store.add_real_question(created.id, {"question": "介绍一下项目", "feedback": "不够具体"})

        deleted = self.store.delete_interview(created.id)

        self.assertEqual(deleted.company, "腾讯")
        self.assertEqual(len(deleted.real_questions), 1)
        self.assertEqual(self.store.get_all_interviews(), [])

        with self.db_manager.get_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM interview_questions").fetchone()[0]
        self.assertEqual(count, 0)

    def test_add_interview_with_questions(self):
        created = self.store.add_interview({
            "company": "腾讯",
            "datetime": "2025-06-15T14:00",
            "mock_questions": [{"id": "old", "question": "自我介绍", "answer": "..."}],
            "real_questions": [{"question": "手写快排", "feedback": "顺利"}],
        })

        loaded = self.store.get_interview_by_id(created.id)
        self.assertEqual([q.question for q in loaded.mock_questions], ["自我介绍"])
        self.assertNotEqual(loaded.mock_questions[0].id, "old")
        self.assertEqual(loaded.real_questions[0].feedback, "顺利")

    def test_question_lifecycle(self):
        created = self._add("腾讯", "2025-06-15T14:00")

        mock = self.store.add_mock_question(created.id, {"question": "为什么选择我们"})
        real = self.store.add_real_question(created.id, {"question": "讲讲 TCP"})
        self.assertEqual(mock.kind, "mock")
        self.assertEqual(real.kind, "real")
        self.assertNotIn("feedback", mock.to_dict())
        self.assertEqual(real.to_dict()["feedback"], "")

        updated = self.store.update_question(created.id, mock.id, {"answer": "参考答案"})
        self.assertEqual(updated.answer, "参考答案")
        self.assertEqual(updated.question, "为什么选择我们")
        self.assertIsNone(self.store.update_question(created.id, "missing", {"answer": "x"}))

        # 类型不符时不删除
        self.assertIsNone(self.store.delete_question(created.id, mock.id, "real"))
        deleted = self.store.delete_question(created.id, mock.id, "mock")
        self.assertEqual(deleted.id, mock.id)

        loaded = self.store.get_interview_by_id(created.id)
        self.assertEqual(loaded.mock_questions, [])
        self.assertEqual(len(loaded.real_questions), 1)

    def test_filters(self):
        self._add("腾讯", "2025-06-15T14:00", position="后端")
        self._add("字节跳动", "2025-06-15T09:00", notes="二面 backend")
        self._add("阿里巴巴", "2025-07-01T10:00")

        by_date = self.store.get_interviews_by_date(date(2025, 6, 15))
        self.assertEqual({i.company for i in by_date}, {"腾讯", "字节跳动"})

        in_range = self.store.get_interviews_in_range(
            datetime(2025, 6, 15, 10, 0), datetime(2025, 7, 1, 10, 0)
        )
        self.assertEqual([i.company for i in in_range], ["腾讯", "阿里巴巴"])

        self.assertEqual([i.company for i in self.store.search_interviews("BACKEND")], ["字节跳动"])
        self.assertEqual([i.company for i in self.store.search_interviews("后端")], ["腾讯"])
        self.assertEqual(len(self.store.search_interviews("  ")), 3)

    def test_replace_all_keeps_ids(self):
        self._add("旧数据", "2025-01-01T10:00")

        count = self.store.replace_all([
            {
                "id": "keep-me",
                "company": "腾讯",
                "datetime": "2025-06-15T14:00",
                "created_at": "2025-06-01T00:00:00",
                "mock_questions": [{"id": "q-1", "question": "自我介绍"}],
            },
            {"company": "美团", "datetime": "2025-06-20T10:00"},
        ])

        self.assertEqual(count, 2)
        interviews = self.store.get_all_interviews()
        self.assertEqual([i.company for i in interviews], ["腾讯", "美团"])
        self.assertEqual(interviews[0].id, "keep-me")
        self.assertEqual(interviews[0].created_at, "2025-06-01T00:00:00")
        self.assertEqual(interviews[0].mock_questions[0].id, "q-1")

    def test_clear_all(self):
        self._add("腾讯", "2025-06-15T14:00")
        self.store.clear_all()
        self.assertEqual(self.store.get_all_interviews(), [])

    def test_statistics(self):
        first = self._add("腾讯", "2025-06-15T14:00")
        self._add("腾讯", "2025-06-01T10:00")
        self._add("美团", "2025-07-01T10:00")
        self.store.add_mock_question(first.id, {"question": "q1"})
        self.store.add_real_question(first.id, {"question": "q2"})

        stats = self.store.get_statistics(now=datetime(2025, 6, 10, 12, 0))

        self.assertEqual(stats, {
            "total": 3,
            "this_month": 2,
            "upcoming": 2,
            "completed": 1,
            "companies": 2,
            "questions": 2,
        })


if __name__ == '__main__':
    unittest.main()
