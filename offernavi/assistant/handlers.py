#!/usr/bin/env python3
"""
AI 助手的意图处理器
每个处理器接收 (消息, 意图, 上下文)，必要时调用数据存储，返回回复文本和操作列表。
处理器之间不保存任何状态；存储异常在这里被捕获并转成提示文本。
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from offernavi.assistant.answer_templates import AnswerGenerator, get_local_response
from offernavi.assistant.datetime_parser import (
    ChineseDateTimeParser,
    format_datetime,
    to_date_key,
    to_interview_datetime,
)
from offernavi.assistant.models import (
    Action,
    ActionType,
    AssistantReply,
    Intent,
    IntentType,
    InterviewEntities,
    Message,
    QuestionEntities,
)
from offernavi.store.interview_store import Interview, InterviewStore

logger = logging.getLogger(__name__)

RECENT_INTERVIEW_WINDOW = 3

MISSING_FIELD_NAMES = {
    "company": "公司名称",
    "time": "面试时间",
}

REPLY_TIME_FORMAT_HINT = '抱歉，我无法理解这个时间格式。请使用类似"明天下午2点"或"6月15日14:00"的格式。'
REPLY_ADD_INTERVIEW_FAILED = '添加面试时出现错误，请稍后重试。'
REPLY_DELETE_TARGET_MISSING = '请告诉我要删除哪家公司的面试，或者具体的面试时间。'
REPLY_DELETE_NOT_FOUND = '没有找到匹配的面试记录。'
REPLY_DELETE_FAILED = '删除面试时出现错误，请稍后重试。'
REPLY_NO_INTERVIEWS = '您还没有面试记录。请先添加面试安排。'
REPLY_ADD_QUESTION_FAILED = '添加面试题时出现错误，请稍后重试。'
REPLY_GENERIC_FAILURE = '处理请求时出现错误，请稍后重试。'


class CompletionClient(Protocol):
    async def complete(self, message: str, history: Sequence[Message] = ()) -> str:
        ...


@dataclass
class AssistantContext:
    """处理器依赖的外部协作者"""
    store: InterviewStore
    completion: Optional[CompletionClient] = None
    history: List[Message] = field(default_factory=list)
    answer_generator: AnswerGenerator = field(default_factory=AnswerGenerator)
    clock: Callable[[], datetime] = datetime.now

    def now(self) -> datetime:
        return self.clock()

    def parse_datetime(self, phrase: str) -> Optional[datetime]:
        return ChineseDateTimeParser(self.now()).parse_datetime(phrase)


def _interview_sort_key(interview: Interview) -> datetime:
    return interview.scheduled_at or datetime.min


def _display_datetime(interview: Interview) -> str:
    scheduled = interview.scheduled_at
    return format_datetime(scheduled) if scheduled else interview.datetime


async def handle_add_interview(message: str, intent: Intent, ctx: AssistantContext) -> AssistantReply:
    entities: InterviewEntities = intent.entities or InterviewEntities()

    missing = [MISSING_FIELD_NAMES[name] for name in ("company", "time") if not getattr(entities, name)]
    if missing:
        return AssistantReply(f"好的，我来帮您添加面试。请补充以下信息：{'、'.join(missing)}")

    scheduled = ctx.parse_datetime(entities.time)
    if scheduled is None:
        logger.info(f"Unparseable interview time: '{entities.time}'")
        return AssistantReply(REPLY_TIME_FORMAT_HINT)

    interview_data = {
        "company": entities.company,
        "datetime": to_interview_datetime(scheduled),
        "position": entities.position or "",
        "job_description": "",
        "notes": f"由AI助手自动添加于 {ctx.now().strftime('%Y/%m/%d %H:%M:%S')}",
    }

    try:
        interview = ctx.store.add_interview(interview_data)
    except Exception as e:
        logger.error(f"Failed to add interview via assistant: {e}")
        return AssistantReply(REPLY_ADD_INTERVIEW_FAILED)

    return AssistantReply(
        f"已成功为您添加面试：{entities.company} {entities.position or ''}（{format_datetime(scheduled)}）。",
        [Action(ActionType.INTERVIEW_ADDED, interview.to_dict())],
    )


def find_matching_interviews(entities: InterviewEntities, ctx: AssistantContext) -> List[Interview]:
    """
    按公司（包含匹配）和日期（只比较日期部分）筛选面试。
    给了公司时在公司结果上再按日期筛选，没给公司时直接在全部面试上按日期筛选。
    没给公司且时间无法解析时没有任何候选。
    """
    interviews = ctx.store.get_all_interviews()
    matched: List[Interview] = []

    if entities.company:
        matched = [i for i in interviews if entities.company in i.company]

    if entities.time:
        target = ctx.parse_datetime(entities.time)
        if target is not None:
            date_key = to_date_key(target)
            candidates = matched if entities.company else interviews
            matched = [i for i in candidates if i.datetime.startswith(date_key)]

    return matched


async def handle_delete_interview(message: str, intent: Intent, ctx: AssistantContext) -> AssistantReply:
    entities: InterviewEntities = intent.entities or InterviewEntities()

    if not entities.company and not entities.time:
        return AssistantReply(REPLY_DELETE_TARGET_MISSING)

    try:
        matched = find_matching_interviews(entities, ctx)

        if not matched:
            return AssistantReply(REPLY_DELETE_NOT_FOUND)

        if len(matched) > 1:
            lines = "\n".join(
                f"{index}. {i.company} {i.position or ''} ({_display_datetime(i)})"
                for index, i in enumerate(matched, start=1)
            )
            return AssistantReply(f"找到多条匹配的面试记录：\n{lines}\n\n请提供更具体的信息来确定要删除哪一条。")

        deleted = ctx.store.delete_interview(matched[0].id)
    except Exception as e:
        logger.error(f"Failed to delete interview via assistant: {e}")
        return AssistantReply(REPLY_DELETE_FAILED)

    if deleted is None:
        return AssistantReply(REPLY_DELETE_NOT_FOUND)

    return AssistantReply(
        f"已删除面试：{deleted.company} {deleted.position or ''}",
        [Action(ActionType.INTERVIEW_DELETED, deleted.to_dict())],
    )


async def handle_add_question(message: str, intent: Intent, ctx: AssistantContext) -> AssistantReply:
    entities: QuestionEntities = intent.entities or QuestionEntities()

    try:
        interviews = ctx.store.get_all_interviews()
    except Exception as e:
        logger.error(f"Failed to load interviews for question: {e}")
        return AssistantReply(REPLY_ADD_QUESTION_FAILED)

    recent = sorted(interviews, key=_interview_sort_key, reverse=True)[:RECENT_INTERVIEW_WINDOW]
    if not recent:
        return AssistantReply(REPLY_NO_INTERVIEWS)

    # 总是挂到最近的一场面试上
    target = recent[0]
    question_text = entities.question or message

    try:
        if entities.is_real:
            stored = ctx.store.add_real_question(
                target.id, {"question": question_text, "answer": "", "feedback": ""}
            )
            kind, content = "real", f"已为您添加真实面经到 {target.company} 的面试记录，并生成了复盘答案。"
        else:
            stored = ctx.store.add_mock_question(target.id, {"question": question_text, "answer": ""})
            kind, content = "mock", f"已为您添加模拟面试题到 {target.company} 的面试记录，并生成了参考答案。"

        if stored is None:
            raise LookupError(f"interview disappeared: {target.id}")

        if kind == "real":
            answer = await ctx.answer_generator.generate_review_answer(question_text)
        else:
            answer = await ctx.answer_generator.generate_mock_answer(question_text, target.job_description)

        # 生成的答案回写到存储
        updated = ctx.store.update_question(target.id, stored.id, {"answer": answer})
    except Exception as e:
        logger.error(f"Failed to add question via assistant: {e}")
        return AssistantReply(REPLY_ADD_QUESTION_FAILED)

    question = (updated or stored).to_dict()
    question["answer"] = answer

    return AssistantReply(
        content,
        [Action(ActionType.QUESTION_ADDED, {"interview": target.to_dict(), "question": question, "type": kind})],
    )


async def handle_general_query(message: str, intent: Intent, ctx: AssistantContext) -> AssistantReply:
    if ctx.completion is None:
        return AssistantReply(get_local_response(message))

    try:
        content = await ctx.completion.complete(message, ctx.history)
    except Exception as e:
        logger.warning(f"Chat completion failed, using local response: {e}")
        return AssistantReply(get_local_response(message))

    return AssistantReply(content)


Handler = Callable[[str, Intent, AssistantContext], Awaitable[AssistantReply]]

INTENT_HANDLERS: Dict[IntentType, Handler] = {
    IntentType.ADD_INTERVIEW: handle_add_interview,
    IntentType.DELETE_INTERVIEW: handle_delete_interview,
    IntentType.ADD_QUESTION: handle_add_question,
    IntentType.GENERAL_QUERY: handle_general_query,
}


async def dispatch(message: str, intent: Intent, ctx: AssistantContext) -> AssistantReply:
    """按意图类型分派处理器；未知意图按一般问询处理"""
    handler = INTENT_HANDLERS.get(intent.type, handle_general_query)
    try:
        return await handler(message, intent, ctx)
    except Exception as e:
        logger.error(f"Handler {intent.type.value} failed: {e}", exc_info=True)
        return AssistantReply(REPLY_GENERIC_FAILURE)


def undo_action(action: Action, store: InterviewStore) -> Optional[Dict[str, Any]]:
    """撤销删除：用被删除的记录重新创建一场面试（id 会变化）"""
    if action.type != ActionType.INTERVIEW_DELETED:
        return None
    restored = store.add_interview(action.data)
    logger.info(f"Restored interview {restored.id} from undo action")
    return restored.to_dict()
