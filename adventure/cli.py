import asyncio
import logging
from typing import Optional

import typer
import uvicorn

from adventure.core.config import settings
from adventure.core.i18n import t
from adventure.schemas.game import GameView, ImageModel, Language, SettingsUpdate, StoryModel
from adventure.services.game_session import GameSession, TurnInProgressError
from adventure.services.presenter import render_view

cli_app = typer.Typer()

HELP_TEXT = "Commands: <number> pick a choice | any text: custom action | :new | :lang en|ko | :story fast|deep | :image quality|fast | :quit"


def describe_image(image: str) -> str:
    if not image:
        return ""
    mime = image[5:image.find(";")] if image.startswith("data:") else "image"
    return f"[scene illustrated: {mime}, {len(image) // 1024} KB]"


def render_text(view: GameView) -> str:
    """
    Renders a view for the terminal.
    """
    lines = [f"=== {view.title} ==="]
    if view.error:
        lines.append(f"! {view.error}")
    if view.story:
        lines.extend(["", view.story, ""])
    if view.image:
        lines.append(describe_image(view.image))
    if view.sidebar:
        lines.append(f"{view.sidebar.quest_label}: {view.sidebar.quest}")
        items = ", ".join(view.sidebar.inventory) or view.sidebar.empty_inventory_text
        lines.append(f"{view.sidebar.inventory_label}: {items}")
    for choice in view.choices:
        lines.append(f"  {choice.index}) {choice.text}")
    return "\n".join(lines)


def parse_command(line: str, view: GameView):
    """
    Maps one line of player input to an intent: ("choice", text),
    ("action", text), ("settings", SettingsUpdate), ("new", None),
    ("quit", None) or ("help", None).
    """
    line = line.strip()
    if not line:
        return "help", None
    if line.isdigit():
        index = int(line)
        for choice in view.choices:
            if choice.index == index:
                return "choice", choice.text
        return "help", None
    if not line.startswith(":"):
        return "action", line

    name, _, arg = line[1:].partition(" ")
    arg = arg.strip()
    try:
        if name == "new":
            return "new", None
        if name == "quit":
            return "quit", None
        if name == "lang":
            return "settings", SettingsUpdate(language=Language(arg))
        if name == "story":
            return "settings", SettingsUpdate(story_model=StoryModel(arg))
        if name == "image":
            return "settings", SettingsUpdate(image_model=ImageModel(arg))
    except ValueError:
        pass
    return "help", None


async def _play(session: GameSession):
    async def echo_events(session_id: str, event: str, data: Optional[dict] = None):
        if event == "story_ready":
            typer.echo(render_text(render_view(session)))
            typer.echo(t("image_loading", session.language.value))
        elif event == "image_ready":
            typer.echo(describe_image(data["image"]))
        elif event == "turn_error":
            typer.echo(f"! {data['message']}")

    session.publish = echo_events
    typer.echo(t("loading", session.language.value))
    await session.start_game()

    while True:
        view = render_view(session)
        if not view.choices:
            typer.echo(render_text(view))
        line = typer.prompt(t("custom_action", session.language.value), default="", show_default=False)
        intent, payload = parse_command(line, view)
        try:
            if intent == "quit":
                break
            if intent == "help":
                typer.echo(HELP_TEXT)
            elif intent == "new":
                await session.start_game()
            elif intent == "settings":
                await session.update_settings(payload)
            else:
                await session.process_turn(payload)
        except TurnInProgressError as e:
            typer.echo(str(e))


@cli_app.command()
def play(
    language: Language = typer.Option(Language.EN, help="Story language."),
    story_model: StoryModel = typer.Option(StoryModel.FAST, help="Story model tier."),
    image_model: ImageModel = typer.Option(ImageModel.QUALITY, help="Image model tier."),
):
    """
    Plays the adventure in the terminal.
    """
    logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    session = GameSession()
    session.apply_settings(SettingsUpdate(language=language, story_model=story_model, image_model=image_model))
    asyncio.run(_play(session))


@cli_app.command()
def serve(host: str = "127.0.0.1", port: int = 8000):
    """
    Runs the game API server.
    """
    uvicorn.run("adventure.main:app", host=host, port=port)


if __name__ == "__main__":
    cli_app()
