from fastapi import APIRouter, Depends
from typing import Dict, Any
import logging

from offernavi.store.chat_history import ChatHistoryStore, get_chat_history_store
from offernavi.store.interview_store import InterviewStore, get_interview_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/statistics")
async def get_statistics(
    store: InterviewStore = Depends(get_interview_store),
    history_store: ChatHistoryStore = Depends(get_chat_history_store),
) -> Dict[str, Any]:
    """面试与聊天统计"""
    stats = store.get_statistics()
    return {
        "success": True,
        "data": {
            "total_interviews": stats["total"],
            "this_month_interviews": stats["this_month"],
            "upcoming_interviews": stats["upcoming"],
            "completed_interviews": stats["completed"],
            "total_chat_messages": history_store.count(),
            "companies_count": stats["companies"],
            "questions_count": stats["questions"],
        },
    }
