from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---- STORED DATA ----
class StoredMessage(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: int


# ---- CHAT INPUT ----
class UIMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = ""
    role: str
    parts: List[Dict[str, Any]] = Field(default_factory=list)
    content: Optional[str] = None


class UserPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    diet_options: List[str] = Field(default_factory=list, alias="dietOptions")
    age: str = ""
    gender: str = ""


class RequestHints(BaseModel):
    city: str = "Unknown"
    country: str = "Unknown"
    latitude: float = 0.0
    longitude: float = 0.0


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[UIMessage] = Field(default_factory=list)
    user_preferences: Optional[UserPreferences] = Field(default=None, alias="userPreferences")
    chat_id: Optional[str] = Field(default=None, alias="chatId")
    prompt_type: Optional[str] = Field(default=None, alias="promptType")


class SaveMessagesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: Optional[str] = Field(default=None, alias="chatId")
    messages: List[StoredMessage] = Field(default_factory=list)
