from typing import Any, Dict, List

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(prefix="/tools", tags=["tools"])


class ToolInfo(BaseModel):
    name: str
    description: str
    parameters: Dict[str, Any]
    passthrough: bool
    # Output is ready-made markup (a mermaid block) for the client to render.
    verbatim: bool = False


@router.get("", response_model=List[ToolInfo])
def list_tools(request: Request):
    """List enabled tools with their parameter schemas."""
    return request.app.state.chat_svc.list_tools()
