from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Settings ---

class Language(str, Enum):
    EN = "en"
    KO = "ko"

class StoryModel(str, Enum):
    FAST = "fast"
    DEEP = "deep"

class ImageModel(str, Enum):
    QUALITY = "quality"
    FAST = "fast"

class GameSettings(BaseModel):
    language: Language = Language.EN
    story_model: StoryModel = StoryModel.FAST
    image_model: ImageModel = ImageModel.QUALITY

# --- Shared Models ---

class Turn(BaseModel):
    """One role-tagged message of the conversation history."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str

class StoryResponse(BaseModel):
    """
    Structured reply of the story model. `imagePrompt` is always English,
    whatever the display language.
    """
    model_config = ConfigDict(populate_by_name=True)

    story: str
    choices: List[str]
    inventory: List[str]
    quest: str
    image_prompt: str = Field(alias="imagePrompt")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

class GameState(BaseModel):
    story: str
    image: str = ""
    choices: List[str] = []
    inventory: List[str] = []
    quest: str = ""

# --- Request Models ---

class GameCreate(BaseModel):
    settings: GameSettings = GameSettings()

class ChoiceIn(BaseModel):
    text: str = Field(min_length=1)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("choice text must not be blank")
        return value

class SettingsUpdate(BaseModel):
    language: Optional[Language] = None
    story_model: Optional[StoryModel] = None
    image_model: Optional[ImageModel] = None

# --- Response Models ---

class ChoiceView(BaseModel):
    index: int
    text: str
    disabled: bool

class SidebarView(BaseModel):
    quest_label: str
    quest: str
    inventory_label: str
    inventory: List[str]
    empty_inventory_text: Optional[str] = None

class SettingOption(BaseModel):
    value: str
    label: str

class SettingsView(BaseModel):
    label: str
    language: Language
    story_model: StoryModel
    image_model: ImageModel
    options: Dict[str, List[SettingOption]]
    new_game_label: str

class GameView(BaseModel):
    session_id: str
    title: str
    story: Optional[str] = None
    image: str = ""
    image_overlay: Optional[str] = None
    loading_text: Optional[str] = None
    turn_loading: bool
    image_loading: bool
    choices: List[ChoiceView]
    custom_action_label: str
    sidebar: Optional[SidebarView] = None
    settings: SettingsView
    error: Optional[str] = None
