from adventure.core.i18n import t
from adventure.schemas.game import (
    ChoiceView,
    GameView,
    ImageModel,
    Language,
    SettingOption,
    SettingsView,
    SidebarView,
    StoryModel,
)
from adventure.services.game_session import GameSession


def _settings_view(session: GameSession) -> SettingsView:
    lang = session.language.value
    return SettingsView(
        label=t("settings", lang),
        language=session.settings.language,
        story_model=session.settings.story_model,
        image_model=session.settings.image_model,
        options={
            "language": [SettingOption(value=o.value, label=t(f"option_{o.value}", lang)) for o in Language],
            "story_model": [SettingOption(value=o.value, label=t(f"option_{o.value}", lang)) for o in StoryModel],
            "image_model": [SettingOption(value=o.value, label=t(f"option_{o.value}", lang)) for o in ImageModel],
        },
        new_game_label=t("new_game", lang),
    )


def render_view(session: GameSession) -> GameView:
    """
    Renders what the player sees from the session state and loading flags.
    Choices are disabled while a turn runs; the image region carries an
    overlay while the image is still in flight.
    """
    lang = session.language.value
    state = session.state

    sidebar = None
    choices = []
    if state is not None:
        sidebar = SidebarView(
            quest_label=t("quest", lang),
            quest=state.quest,
            inventory_label=t("inventory", lang),
            inventory=state.inventory,
            empty_inventory_text=None if state.inventory else t("empty_inventory", lang),
        )
        choices = [
            ChoiceView(index=i, text=text, disabled=session.turn_loading)
            for i, text in enumerate(state.choices, start=1)
        ]

    return GameView(
        session_id=session.session_id,
        title=t("title", lang),
        story=state.story if state else None,
        image=state.image if state else "",
        image_overlay=t("image_loading", lang) if session.image_loading else None,
        loading_text=t("loading", lang) if session.turn_loading else None,
        turn_loading=session.turn_loading,
        image_loading=session.image_loading,
        choices=choices,
        custom_action_label=t("custom_action", lang),
        sidebar=sidebar,
        settings=_settings_view(session),
        error=session.error,
    )
