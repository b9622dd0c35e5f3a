#!/usr/bin/env python3
"""
AI 助手 API
自然语言助手、撤销操作、Qwen 直连代理以及聊天记录管理
"""

from typing import Dict, List, Optional, Any
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
import logging

from offernavi.assistant.models import Action, ActionType, Message, MessageType
from offernavi.assistant.orchestrator import ChatOrchestrator, get_orchestrator
from offernavi.llm.qwen_client import QwenClient, QwenClientError, get_qwen_client

logger = logging.getLogger(__name__)

# API 路由
assistant_router = APIRouter()


class AssistantMessageRequest(BaseModel):
    """助手消息请求"""
    message: str = Field(..., max_length=2000)


class UndoRequest(BaseModel):
    action: Dict[str, Any]


class ActionItem(BaseModel):
    type: ActionType
    data: Dict[str, Any] = {}


class HistoryItem(BaseModel):
    """聊天记录中的一条消息；类型或操作类型不合法时返回 422"""
    type: MessageType
    content: str = ""
    timestamp: Optional[str] = None
    actions: List[ActionItem] = []


class QwenChatRequest(BaseModel):
    """Qwen 代理请求；message 在处理函数里校验，缺失时返回 400"""
    message: Optional[str] = None
    history: List[HistoryItem] = []


class SaveHistoryRequest(BaseModel):
    messages: List[HistoryItem] = []


def to_messages(items: List[HistoryItem]) -> List[Message]:
    return [Message.from_dict(item.model_dump(mode="json")) for item in items]


@assistant_router.post("/ai/assistant")
async def assistant_message(
    request: AssistantMessageRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """处理一条助手消息，返回回复和可执行操作"""
    try:
        reply = await orchestrator.handle_message(request.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    data = reply.to_dict()
    data["action_labels"] = [action.label for action in reply.actions]
    return {"success": True, "data": data}


@assistant_router.get("/ai/assistant/welcome")
async def assistant_welcome(
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    welcome = orchestrator.welcome()
    return {"success": True, "data": welcome.to_dict() if welcome else None}


@assistant_router.post("/ai/assistant/undo")
async def assistant_undo(
    request: UndoRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """撤销回复里的操作，目前只支持撤销删除"""
    try:
        action = Action.from_dict(request.action)
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid action: {e}")

    restored = orchestrator.undo(action)
    if restored is None:
        raise HTTPException(status_code=400, detail=f"Action cannot be undone: {action.type.value}")

    return {"success": True, "data": restored, "message": "面试已恢复"}


@assistant_router.post("/ai/qwen-chat")
async def qwen_chat(
    request: QwenChatRequest,
    client: QwenClient = Depends(get_qwen_client),
) -> Dict[str, Any]:
    """通义千问直连代理"""
    if not client.api_key:
        raise HTTPException(status_code=500, detail="缺少环境变量 QWEN_API_KEY，请先配置后重试")

    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="参数 message 必填")

    try:
        content = await client.complete(request.message, to_messages(request.history))
    except QwenClientError as e:
        logger.error(f"Qwen proxy failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {"success": True, "data": {"content": content}}


@assistant_router.get("/chat-history")
async def get_chat_history(
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    return {"success": True, "data": [m.to_dict() for m in orchestrator.history]}


@assistant_router.post("/chat-history")
async def save_chat_history(
    request: SaveHistoryRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    saved = orchestrator.replace_history(to_messages(request.messages))
    return {"success": True, "data": {"saved": saved}, "message": "Chat history saved"}


@assistant_router.delete("/chat-history")
async def clear_chat_history(
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    orchestrator.clear_history()
    logger.info("Chat history cleared")
    return {"success": True, "message": "Chat history cleared"}


@assistant_router.get("/chat-history/export")
async def export_chat_history(
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    return {"success": True, "data": orchestrator.export_history()}
