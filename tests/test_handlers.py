import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, ANY

from offernavi.assistant import handlers
from offernavi.assistant.answer_templates import AnswerGenerator, LOCAL_RESPONSE_DEFAULT
from offernavi.assistant.handlers import (
    AssistantContext,
    dispatch,
    handle_add_interview,
    handle_add_question,
    handle_delete_interview,
    handle_general_query,
    undo_action,
    REPLY_TIME_FORMAT_HINT,
    REPLY_ADD_INTERVIEW_FAILED,
    REPLY_DELETE_TARGET_MISSING,
    REPLY_DELETE_NOT_FOUND,
    REPLY_NO_INTERVIEWS,
    REPLY_GENERIC_FAILURE,
)
from offernavi.assistant.models import (
    Action,
    ActionType,
    Intent,
    IntentType,
    InterviewEntities,
    Message,
    MessageType,
    QuestionEntities,
)
from offernavi.store.interview_store import Interview, InterviewStore, Question

NOW = datetime(2025, 6, 10, 9, 30, 0)


def make_ctx(store=None, completion=None, history=None):
    return AssistantContext(
        store=store or MagicMock(spec=InterviewStore),
        completion=completion,
        history=history or [],
        answer_generator=AnswerGenerator(0, 0),
        clock=lambda: NOW,
    )


def interview_intent(**entities):
    return Intent(IntentType.ADD_INTERVIEW, 0.9, InterviewEntities(**entities))


def delete_intent(**entities):
    return Intent(IntentType.DELETE_INTERVIEW, 0.9, InterviewEntities(**entities))


# ---------- add_interview ----------

@pytest.mark.asyncio
async def test_add_interview_missing_company_does_not_touch_store():
    ctx = make_ctx()
    reply = await handle_add_interview("明天面试", interview_intent(time="明天"), ctx)

    assert reply.content == "好的，我来帮您添加面试。请补充以下信息：公司名称"
    assert reply.actions == []
    assert ctx.store.method_calls == []


@pytest.mark.asyncio
async def test_add_interview_missing_both_fields():
    reply = await handle_add_interview("添加面试", interview_intent(), make_ctx())
    assert reply.content.endswith("公司名称、面试时间")


@pytest.mark.asyncio
async def test_add_interview_unparseable_time():
    ctx = make_ctx()
    reply = await handle_add_interview("...", interview_intent(company="腾讯", time="2点"), ctx)

    assert reply.content == REPLY_TIME_FORMAT_HINT
    ctx.store.add_interview.assert_not_called()


@pytest.mark.asyncio
async def test_add_interview_success():
    ctx = make_ctx()
    ctx.store.add_interview.side_effect = lambda data: Interview(id="new", **data)

    reply = await handle_add_interview(
        "...", interview_intent(company="腾讯", time="明天下午2点", position="后端工程师"), ctx
    )

    ctx.store.add_interview.assert_called_once_with({
        "company": "腾讯",
        "datetime": "2025-06-11T14:00",
        "position": "后端工程师",
        "job_description": "",
        "notes": "由AI助手自动添加于 2025/06/10 09:30:00",
    })
    assert reply.content == "已成功为您添加面试：腾讯 后端工程师（6月11日星期三 14:00）。"
    assert reply.actions[0].type == ActionType.INTERVIEW_ADDED
    assert reply.actions[0].data["id"] == "new"
    assert reply.actions[0].label == "查看面试详情"


@pytest.mark.asyncio
async def test_add_interview_store_failure():
    ctx = make_ctx()
    ctx.store.add_interview.side_effect = RuntimeError("disk full")

    reply = await handle_add_interview("...", interview_intent(company="腾讯", time="明天"), ctx)
    assert reply.content == REPLY_ADD_INTERVIEW_FAILED
    assert reply.actions == []


# ---------- delete_interview ----------

def two_tencent_interviews():
    return [
        Interview(id="a", company="腾讯", datetime="2025-06-11T14:00", position="后端"),
        Interview(id="b", company="腾讯科技", datetime="2025-06-12T10:00"),
        Interview(id="c", company="美团", datetime="2025-06-11T10:00"),
    ]


@pytest.mark.asyncio
async def test_delete_requires_company_or_time():
    ctx = make_ctx()
    reply = await handle_delete_interview("取消面试", delete_intent(), ctx)

    assert reply.content == REPLY_DELETE_TARGET_MISSING
    assert ctx.store.method_calls == []


@pytest.mark.asyncio
async def test_delete_ambiguous_lists_matches():
    ctx = make_ctx()
    ctx.store.get_all_interviews.return_value = two_tencent_interviews()

    reply = await handle_delete_interview("...", delete_intent(company="腾讯"), ctx)

    assert reply.content.startswith("找到多条匹配的面试记录：\n")
    assert "1. 腾讯 后端 (6月11日星期三 14:00)" in reply.content
    assert "2. 腾讯科技  (6月12日星期四 10:00)" in reply.content
    assert reply.content.endswith("请提供更具体的信息来确定要删除哪一条。")
    ctx.store.delete_interview.assert_not_called()


@pytest.mark.asyncio
async def test_delete_narrowed_by_date():
    ctx = make_ctx()
    interviews = two_tencent_interviews()
    ctx.store.get_all_interviews.return_value = interviews
    ctx.store.delete_interview.return_value = interviews[0]

    reply = await handle_delete_interview("...", delete_intent(company="腾讯", time="明天"), ctx)

    ctx.store.delete_interview.assert_called_once_with("a")
    assert reply.content == "已删除面试：腾讯 后端"
    assert reply.actions[0].type == ActionType.INTERVIEW_DELETED
    assert reply.actions[0].data["company"] == "腾讯"
    assert reply.actions[0].label == "撤销删除"


@pytest.mark.asyncio
async def test_delete_time_only_filters_all_interviews():
    ctx = make_ctx()
    interviews = two_tencent_interviews()
    ctx.store.get_all_interviews.return_value = interviews
    ctx.store.delete_interview.return_value = interviews[1]

    reply = await handle_delete_interview("...", delete_intent(time="后天"), ctx)

    ctx.store.delete_interview.assert_called_once_with("b")
    assert reply.content.startswith("已删除面试：腾讯科技")


@pytest.mark.asyncio
async def test_delete_unparseable_time_without_company_matches_nothing():
    ctx = make_ctx()
    ctx.store.get_all_interviews.return_value = [
        Interview(id="x", company="美团", datetime="2025-08-01T10:00"),
    ]

    reply = await handle_delete_interview("取消今天的面试", delete_intent(time="今天"), ctx)

    assert reply.content == REPLY_DELETE_NOT_FOUND
    assert reply.actions == []
    ctx.store.delete_interview.assert_not_called()


@pytest.mark.asyncio
async def test_delete_company_with_unparseable_time_keeps_company_matches():
    ctx = make_ctx()
    interviews = two_tencent_interviews()
    ctx.store.get_all_interviews.return_value = interviews
    ctx.store.delete_interview.return_value = interviews[2]

    reply = await handle_delete_interview("...", delete_intent(company="美团", time="这周"), ctx)

    ctx.store.delete_interview.assert_called_once_with("c")
    assert reply.content.startswith("已删除面试：美团")


@pytest.mark.asyncio
async def test_delete_unknown_company_does_not_fall_back_to_time():
    ctx = make_ctx()
    ctx.store.get_all_interviews.return_value = two_tencent_interviews()

    reply = await handle_delete_interview("...", delete_intent(company="网易", time="后天"), ctx)

    assert reply.content == REPLY_DELETE_NOT_FOUND
    ctx.store.delete_interview.assert_not_called()


# ---------- add_question ----------

@pytest.mark.asyncio
async def test_add_question_without_interviews():
    ctx = make_ctx()
    ctx.store.get_all_interviews.return_value = []

    reply = await handle_add_question("...", Intent(IntentType.ADD_QUESTION, 0.8, QuestionEntities()), ctx)
    assert reply.content == REPLY_NO_INTERVIEWS


@pytest.mark.asyncio
async def test_add_mock_question_targets_most_recent_interview():
    ctx = make_ctx()
    ctx.store.get_all_interviews.return_value = [
        Interview(id="old", company="美团", datetime="2025-05-01T10:00"),
        Interview(id="latest", company="腾讯", datetime="2025-07-01T10:00", job_description="后端开发"),
        Interview(id="mid", company="字节跳动", datetime="2025-06-01T10:00"),
    ]
    ctx.store.add_mock_question.return_value = Question(id="q1", question="为什么选择我们公司")
    ctx.store.update_question.side_effect = lambda iid, qid, data: Question(
        id=qid, question="为什么选择我们公司", answer=data["answer"]
    )

    intent = Intent(IntentType.ADD_QUESTION, 0.8, QuestionEntities(False, "为什么选择我们公司"))
    reply = await handle_add_question("...", intent, ctx)

    ctx.store.add_mock_question.assert_called_once_with("latest", {"question": "为什么选择我们公司", "answer": ""})
    ctx.store.update_question.assert_called_once_with("latest", "q1", {"answer": ANY})
    ctx.store.add_real_question.assert_not_called()

    assert reply.content == "已为您添加模拟面试题到 腾讯 的面试记录，并生成了参考答案。"
    action = reply.actions[0]
    assert action.type == ActionType.QUESTION_ADDED
    assert action.data["type"] == "mock"
    assert action.data["interview"]["id"] == "latest"
    assert action.data["question"]["answer"].startswith("我选择贵公司主要基于")


@pytest.mark.asyncio
async def test_add_real_question_uses_message_when_no_quoted_content():
    ctx = make_ctx()
    ctx.store.get_all_interviews.return_value = [Interview(id="i1", company="腾讯", datetime="2025-06-09T10:00")]
    ctx.store.add_real_question.return_value = Question(id="q1", question="刚面试完", kind="real")
    ctx.store.update_question.return_value = None

    intent = Intent(IntentType.ADD_QUESTION, 0.8, QuestionEntities(True, None))
    reply = await handle_add_question("刚面试完", intent, ctx)

    ctx.store.add_real_question.assert_called_once_with(
        "i1", {"question": "刚面试完", "answer": "", "feedback": ""}
    )
    ctx.store.update_question.assert_called_once()
    assert reply.actions[0].data["type"] == "real"
    assert reply.actions[0].data["question"]["answer"].startswith("【面试复盘分析】")


# ---------- general_query ----------

@pytest.mark.asyncio
async def test_general_query_uses_completion_with_history():
    history = [Message(MessageType.USER, "你好", "2025-06-10T09:00:00")]
    completion = MagicMock()
    completion.complete = AsyncMock(return_value="模型回答")
    ctx = make_ctx(completion=completion, history=history)

    reply = await handle_general_query("怎么准备群面", Intent(IntentType.GENERAL_QUERY, 0.5), ctx)

    assert reply.content == "模型回答"
    completion.complete.assert_awaited_once_with("怎么准备群面", history)


@pytest.mark.asyncio
async def test_general_query_falls_back_to_local_response():
    completion = MagicMock()
    completion.complete = AsyncMock(side_effect=RuntimeError("timeout"))
    ctx = make_ctx(completion=completion)

    reply = await handle_general_query("简历怎么写", Intent(IntentType.GENERAL_QUERY, 0.5), ctx)
    assert reply.content.startswith("关于简历撰写")

    reply = await handle_general_query("随便聊聊", Intent(IntentType.GENERAL_QUERY, 0.5), ctx)
    assert reply.content == LOCAL_RESPONSE_DEFAULT


@pytest.mark.asyncio
async def test_general_query_without_completion_client():
    reply = await handle_general_query("面试技巧有哪些", Intent(IntentType.GENERAL_QUERY, 0.5), make_ctx())
    assert reply.content.startswith("面试成功的关键技巧")


# ---------- dispatch / undo ----------

@pytest.mark.asyncio
async def test_dispatch_catches_handler_errors(monkeypatch):
    async def broken(message, intent, ctx):
        raise RuntimeError("boom")

    monkeypatch.setitem(handlers.INTENT_HANDLERS, IntentType.ADD_INTERVIEW, broken)

    reply = await dispatch("...", interview_intent(company="腾讯"), make_ctx())
    assert reply.content == REPLY_GENERIC_FAILURE


def test_undo_only_supports_deleted_interviews():
    store = MagicMock(spec=InterviewStore)
    assert undo_action(Action(ActionType.INTERVIEW_ADDED, {"id": "x"}), store) is None
    store.add_interview.assert_not_called()

    store.add_interview.return_value = Interview(id="restored", company="腾讯", datetime="2025-06-11T14:00")
    restored = undo_action(Action(ActionType.INTERVIEW_DELETED, {"company": "腾讯"}), store)

    store.add_interview.assert_called_once_with({"company": "腾讯"})
    assert restored["id"] == "restored"
