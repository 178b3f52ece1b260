from typing import List

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(prefix="/models", tags=["models"])


class ModelInfo(BaseModel):
    name: str
    label: str
    provider: str
    stream: bool
    tools: bool


@router.get("", response_model=List[ModelInfo])
def list_models(request: Request):
    """List the models whose provider is configured."""
    return request.app.state.chat_svc.list_models()
