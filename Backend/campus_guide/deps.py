# campus_guide/deps.py
from typing import Optional

from fastapi import Header, Request
from openai import AsyncAzureOpenAI

from .config import Settings
from .interactions import InteractionProcessor
from .progress import ProgressEngine
from .storage import ChatStore


def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> Optional[str]:
    """
    Signed-in user id sent by the frontend after login.
    Missing or blank means guest mode.
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> ProgressEngine:
    return request.app.state.engine


def get_processor(request: Request) -> InteractionProcessor:
    return request.app.state.processor


def get_llm(request: Request) -> Optional[AsyncAzureOpenAI]:
    return request.app.state.llm


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store
