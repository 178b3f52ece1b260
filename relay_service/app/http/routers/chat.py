from contextlib import aclosing
from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from relay_service.core.logging import logger
from relay_service.core.types import Message

router = APIRouter(tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[Message] = Field(..., description="The conversation so far, oldest first.")
    model_name: str = Field(..., alias="modelName", description="The name of the model to use.")


@router.post("/chat")
async def chat(request: Request, body: ChatRequest):
    logger.info(f"/chat called: model_name={body.model_name}, messages={len(body.messages)}")
    chat_service = request.app.state.chat_svc

    async def event_generator():
        try:
            frames = chat_service.stream(messages=body.messages, model_name=body.model_name)
            async with aclosing(frames):
                async for frame in frames:
                    # Check disconnect BEFORE yielding
                    if await request.is_disconnected():
                        logger.info(f"Client disconnected: model_name={body.model_name}")
                        break
                    yield frame
        except Exception as e:
            logger.exception(f"Exception in /chat: {e}")
            raise

    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)
