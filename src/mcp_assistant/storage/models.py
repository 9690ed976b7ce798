"""Data models for stored conversations."""

from pydantic import BaseModel


class ConversationItem(BaseModel):
    """One stored question/answer pair."""

    id: str
    question: str
    answer: str
    timestamp: int  # epoch milliseconds
    is_favorite: bool = False
