from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from offernavi.assistant.api import HistoryItem, to_messages
from offernavi.assistant.orchestrator import ChatOrchestrator, get_orchestrator
from offernavi.store.interview_store import InterviewStore, get_interview_store

logger = logging.getLogger(__name__)

router = APIRouter()

BACKUP_VERSION = "1.0"


class DataSnapshot(BaseModel):
    """同步 / 恢复的数据；未提交的部分保持不变"""
    interviews: Optional[List[Dict[str, Any]]] = None
    chat_history: Optional[List[HistoryItem]] = None


def _apply_snapshot(snapshot: DataSnapshot, store: InterviewStore, orchestrator: ChatOrchestrator) -> Dict[str, int]:
    result = {}
    if snapshot.interviews is not None:
        result["interviews"] = store.replace_all(snapshot.interviews)
    if snapshot.chat_history is not None:
        result["chat_history"] = orchestrator.replace_history(to_messages(snapshot.chat_history))
    return result


@router.post("/sync")
async def sync_data(
    snapshot: DataSnapshot,
    store: InterviewStore = Depends(get_interview_store),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """前端本地数据整体同步到服务端"""
    result = _apply_snapshot(snapshot, store, orchestrator)
    logger.info(f"Data synced: {result}")
    return {
        "success": True,
        "data": result,
        "message": "Data synced successfully",
        "timestamp": datetime.now().isoformat(),
    }


@router.get("/backup")
async def backup_data(
    store: InterviewStore = Depends(get_interview_store),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    """导出全部面试与聊天记录，作为附件下载"""
    now = datetime.now()
    backup = {
        "interviews": [i.to_dict() for i in store.get_all_interviews()],
        "chat_history": [m.to_dict() for m in orchestrator.history],
        "export_time": now.isoformat(),
        "version": BACKUP_VERSION,
    }
    return JSONResponse(
        content=backup,
        headers={"Content-Disposition": f"attachment; filename=backup_{now.strftime('%Y-%m-%d')}.json"},
    )


@router.post("/restore")
async def restore_data(
    snapshot: DataSnapshot,
    store: InterviewStore = Depends(get_interview_store),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    result = _apply_snapshot(snapshot, store, orchestrator)
    logger.info(f"Data restored: {result}")
    return {"success": True, "data": result, "message": "Data restored successfully"}
