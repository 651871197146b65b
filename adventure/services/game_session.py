import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from adventure.core.i18n import t
from adventure.schemas.game import (
    GameSettings,
    GameState,
    ImageModel,
    Language,
    SettingsUpdate,
    StoryModel,
    StoryResponse,
    Turn,
)
from adventure.services import image_generator, sse_service, story_generator

StoryClient = Callable[[List[Turn], str, Language, StoryModel], Awaitable[StoryResponse]]
ImageClient = Callable[[str, ImageModel], Awaitable[str]]
EventPublisher = Callable[..., Awaitable[None]]


class TurnInProgressError(Exception):
    """Raised when a turn is requested while another one is still running."""


class GameSession:
    """
    One player's game: conversation history, visible state, settings and
    loading flags. The session drives the turn loop itself and allows at most
    one turn in flight at a time.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        settings: Optional[GameSettings] = None,
        story_client: StoryClient = story_generator.get_next_story_part,
        image_client: ImageClient = image_generator.generate_image,
        publish: EventPublisher = sse_service.publish_game_event,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.settings = settings or GameSettings()
        self.story_client = story_client
        self.image_client = image_client
        self.publish = publish

        self.history: List[Turn] = []
        self.state: Optional[GameState] = None
        self.turn_loading = False
        self.image_loading = False
        self.error: Optional[str] = None
        self.updated_at = datetime.now(timezone.utc)

        self._task: Optional[asyncio.Task] = None
        # Bumped on every reset; writes from an older epoch are dropped.
        self._epoch = 0

    def touch(self):
        self.updated_at = datetime.now(timezone.utc)

    @property
    def language(self) -> Language:
        return self.settings.language

    def _begin_turn(self, choice: str) -> str:
        if not (choice or "").strip():
            raise ValueError("A turn needs a non-empty choice.")
        if self.turn_loading:
            raise TurnInProgressError(f"Session {self.session_id} already has a turn in flight.")
        self.turn_loading = True
        self.image_loading = True
        self.error = None
        self.touch()
        return choice

    async def process_turn(self, choice: str):
        """
        Runs one full turn: story text first, then the scene image.
        """
        choice = self._begin_turn(choice)
        await self._run_turn(choice, self._epoch)

    def submit_turn(self, choice: str) -> asyncio.Task:
        """
        Schedules a turn on the session's task slot and returns immediately.
        """
        choice = self._begin_turn(choice)
        self._task = asyncio.create_task(self._run_turn(choice, self._epoch))
        return self._task

    async def _run_turn(self, choice: str, epoch: int):
        history = list(self.history)
        language = self.settings.language
        phase = "story"
        try:
            story = await self.story_client(history, choice, language, self.settings.story_model)
            if epoch != self._epoch:
                logging.info(f"Dropping stale story part for session {self.session_id}")
                return

            previous_image = self.state.image if self.state else ""
            self.state = GameState(
                story=story.story,
                image=previous_image,
                choices=story.choices,
                inventory=story.inventory,
                quest=story.quest,
            )
            self.history = history + [
                Turn(role="user", text=choice),
                Turn(role="model", text=story.to_json()),
            ]
            self.touch()
            await self.publish(self.session_id, "story_ready", {"state": self.state.model_dump()})

            phase = "image"
            image = await self.image_client(story.image_prompt, self.settings.image_model)
            if epoch != self._epoch:
                logging.info(f"Dropping stale image for session {self.session_id}")
                return

            self.state = self.state.model_copy(update={"image": image})
            self.image_loading = False
            self.touch()
            await self.publish(self.session_id, "image_ready", {"image": image})
        except Exception as e:
            if epoch != self._epoch:
                return
            logging.error(f"Error processing turn for session {self.session_id} during {phase} phase: {e}")
            self._fail(phase, language)
            await self.publish(self.session_id, "turn_error", {"message": self.error, "phase": phase})
        finally:
            if epoch == self._epoch:
                self.turn_loading = False
                self.image_loading = False

    def _fail(self, phase: str, language: Language):
        if phase == "image":
            self.error = t("image_error", language.value)
            return
        self.error = t("turn_error", language.value)
        if self.state is None:
            self.state = GameState(story=self.error, choices=[])

    def _reset(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._epoch += 1
        self.history = []
        self.state = None
        self.turn_loading = False
        self.image_loading = False
        self.error = None
        self.touch()

    def begin_prompt(self) -> str:
        return t("begin_prompt", self.language.value)

    async def start_game(self):
        """
        Discards history and state, then plays the opening turn.
        """
        self._reset()
        logging.info(f"Starting new game for session {self.session_id} (language: {self.language.value})")
        await self.process_turn(self.begin_prompt())

    def submit_new_game(self) -> asyncio.Task:
        self._reset()
        logging.info(f"Starting new game for session {self.session_id} (language: {self.language.value})")
        return self.submit_turn(self.begin_prompt())

    def apply_settings(self, update: SettingsUpdate) -> bool:
        """
        Applies new settings for the next generation call. Returns True when
        the language changed, which invalidates the current game.
        """
        language_changed = update.language is not None and update.language != self.settings.language
        self.settings = self.settings.model_copy(update=update.model_dump(exclude_none=True))
        self.touch()
        return language_changed

    async def update_settings(self, update: SettingsUpdate):
        if self.apply_settings(update):
            await self.start_game()

    def close(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._epoch += 1
