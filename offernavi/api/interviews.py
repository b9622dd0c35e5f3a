from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional
from datetime import date, datetime
import logging

from offernavi.assistant.answer_templates import AnswerGenerator
from offernavi.store.interview_store import InterviewStore, QUESTION_KINDS, get_interview_store

logger = logging.getLogger(__name__)

router = APIRouter()


class QuestionPayload(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = ""
    feedback: str = ""


class InterviewPayload(BaseModel):
    """面试创建请求"""
    company: str = Field(..., min_length=1)
    datetime: str = Field(..., description="YYYY-MM-DDTHH:MM")
    position: str = ""
    job_description: str = ""
    notes: str = ""
    mock_questions: List[QuestionPayload] = []
    real_questions: List[QuestionPayload] = []


class InterviewUpdate(BaseModel):
    """面试更新请求，只更新提交的字段"""
    company: Optional[str] = None
    datetime: Optional[str] = None
    position: Optional[str] = None
    job_description: Optional[str] = None
    notes: Optional[str] = None


class AddQuestionRequest(BaseModel):
    type: str = Field(default="mock", pattern="^(mock|real)$")
    question: QuestionPayload


class GenerateAnswerRequest(BaseModel):
    question: str = Field(..., min_length=1)
    job_description: str = ""
    type: str = Field(default="mock", pattern="^(mock|real)$")


def get_answer_generator() -> AnswerGenerator:
    return AnswerGenerator()


def _require_interview(store: InterviewStore, interview_id: str):
    interview = store.get_interview_by_id(interview_id)
    if interview is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return interview


@router.get("/interviews")
async def list_interviews(
    keyword: Optional[str] = Query(None, description="公司 / 岗位 / 备注关键词"),
    on: Optional[date] = Query(None, alias="date"),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    """面试列表，可按关键词、日期或时间区间筛选"""
    if (start is None) != (end is None):
        raise HTTPException(status_code=400, detail="start 和 end 需要同时提供")

    if keyword:
        interviews = store.search_interviews(keyword)
    elif on is not None:
        interviews = store.get_interviews_by_date(on)
    elif start is not None:
        interviews = store.get_interviews_in_range(start, end)
    else:
        interviews = store.get_all_interviews()

    return {"success": True, "data": [i.to_dict() for i in interviews]}


@router.post("/interviews")
async def create_interview(
    payload: InterviewPayload,
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    interview = store.add_interview(payload.model_dump())
    return {"success": True, "data": interview.to_dict()}


@router.get("/interviews/{interview_id}")
async def get_interview(
    interview_id: str,
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    interview = _require_interview(store, interview_id)
    return {"success": True, "data": interview.to_dict()}


@router.put("/interviews/{interview_id}")
async def update_interview(
    interview_id: str,
    payload: InterviewUpdate,
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    updated = store.update_interview(interview_id, payload.model_dump(exclude_none=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return {"success": True, "data": updated.to_dict()}


@router.delete("/interviews/{interview_id}")
async def delete_interview(
    interview_id: str,
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    deleted = store.delete_interview(interview_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return {"success": True, "data": deleted.to_dict()}


@router.post("/interviews/{interview_id}/questions")
async def add_question(
    interview_id: str,
    request: AddQuestionRequest,
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    """给面试追加一道模拟题或真实面经"""
    data = request.question.model_dump()
    if request.type == "real":
        question = store.add_real_question(interview_id, data)
    else:
        question = store.add_mock_question(interview_id, data)

    if question is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return {"success": True, "data": question.to_dict()}


@router.delete("/interviews/{interview_id}/questions/{question_id}")
async def delete_question(
    interview_id: str,
    question_id: str,
    kind: str = Query("mock", alias="type"),
    store: InterviewStore = Depends(get_interview_store),
) -> Dict[str, Any]:
    if kind not in QUESTION_KINDS:
        raise HTTPException(status_code=400, detail=f"Unknown question type: {kind}")

    deleted = store.delete_question(interview_id, question_id, kind)
    if deleted is None:
        raise HTTPException(status_code=404, detail="Question not found")
    return {"success": True, "data": deleted.to_dict()}


@router.post("/ai/generate-answer")
async def generate_answer(
    request: GenerateAnswerRequest,
    generator: AnswerGenerator = Depends(get_answer_generator),
) -> Dict[str, Any]:
    """模拟题生成参考答案，真实面经生成复盘分析"""
    if request.type == "mock":
        answer = await generator.generate_mock_answer(request.question, request.job_description)
    else:
        answer = await generator.generate_review_answer(request.question)
    return {"success": True, "data": {"answer": answer}}
