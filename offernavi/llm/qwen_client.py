import httpx
import logging
from typing import List, Dict, Any, Optional, Sequence

from offernavi.core.config import get_settings
from offernavi.assistant.models import Message, MessageType

logger = logging.getLogger(__name__)
settings = get_settings()

SYSTEM_PROMPT = "你是一个专业的秋招面试助手，帮助求职者管理安排、准备面试、复盘与求职建议。回答清晰、结构化、可执行。"


class QwenClientError(Exception):
    """Qwen 调用失败：缺少密钥、网络错误、非 2xx 响应或返回内容为空"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QwenClient:
    """
    通义千问 (OpenAI 兼容模式) 的异步客户端
    单次请求，不重试；失败由调用方回退到本地回复
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.qwen_api_key
        self.base_url = (base_url or settings.qwen_base_url).rstrip("/")
        self.model = model or settings.qwen_model
        self.timeout = settings.qwen_timeout
        self._client = httpx.AsyncClient(transport=transport)
        logger.info(f"QwenClient initialized - Base URL: {self.base_url}, Model: {self.model}")

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """发送 HTTP 请求的内部函数"""
        try:
            response = await self._client.request(
                method,
                f"{self.base_url}{endpoint}",
                timeout=self.timeout,
                **kwargs
            )
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error occurred: {e.response.status_code} - {e.response.text}")
            raise QwenClientError(f"Qwen API 错误: {e.response.text}", e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error(f"Request to Qwen failed: {e}")
            raise QwenClientError(f"请求 Qwen 失败: {e}") from e

    @staticmethod
    def build_messages(message: str, history: Sequence[Message]) -> List[Dict[str, str]]:
        """system 提示 + 历史消息 + 当前问题"""
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for item in history:
            role = "user" if item.type == MessageType.USER else "assistant"
            messages.append({"role": role, "content": item.content})
        messages.append({"role": "user", "content": message})
        return messages

    async def chat(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """调用 /chat/completions，返回原始 JSON"""
        if not self.api_key:
            raise QwenClientError("缺少环境变量 QWEN_API_KEY，请先配置后重试")

        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "temperature": settings.qwen_temperature,
        }
        response = await self._request(
            "POST",
            "/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            return response.json()
        except ValueError as e:
            raise QwenClientError("Qwen 返回了非 JSON 数据", response.status_code) from e

    async def complete(self, message: str, history: Sequence[Message] = ()) -> str:
        """根据历史对话生成回复文本，内容为空时视为失败"""
        data = await self.chat(self.build_messages(message, history))
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not content:
            raise QwenClientError("Qwen 返回内容为空")
        return content

    async def close(self) -> None:
        """关闭底层 HTTP 客户端"""
        await self._client.aclose()

    def health_check(self) -> Dict[str, Any]:
        return {
            "configured": bool(self.api_key),
            "model": self.model,
            "base_url": self.base_url,
        }


# 全局实例
_qwen_client: Optional[QwenClient] = None

def get_qwen_client() -> QwenClient:
    global _qwen_client
    if _qwen_client is None:
        _qwen_client = QwenClient()
    return _qwen_client
