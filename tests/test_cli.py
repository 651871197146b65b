"""Tests for the terminal client."""
from __future__ import annotations

import functools
import unittest
from unittest import mock

from typer.testing import CliRunner

from adventure import cli
from adventure.schemas.game import GameState, ImageModel, Language, StoryModel
from adventure.services.game_session import GameSession
from adventure.services.presenter import render_view
from fakes import StubImageClient, StubStoryClient, make_story, noop_publish


def _view(choices=("go", "stay")):
    session = GameSession(session_id="s1")
    session.state = GameState(story="A", choices=list(choices), quest="Q", inventory=["torch"])
    return render_view(session)


class ParseCommandTests(unittest.TestCase):
    def test_number_picks_choice(self) -> None:
        self.assertEqual(cli.parse_command("2", _view()), ("choice", "stay"))

    def test_unknown_number_is_help(self) -> None:
        self.assertEqual(cli.parse_command("7", _view()), ("help", None))

    def test_free_text_is_custom_action(self) -> None:
        self.assertEqual(cli.parse_command(" climb the tree ", _view()), ("action", "climb the tree"))

    def test_settings_commands(self) -> None:
        intent, update = cli.parse_command(":lang ko", _view())
        self.assertEqual((intent, update.language), ("settings", Language.KO))
        self.assertEqual(cli.parse_command(":story deep", _view())[1].story_model, StoryModel.DEEP)
        self.assertEqual(cli.parse_command(":image fast", _view())[1].image_model, ImageModel.FAST)

    def test_bad_setting_is_help(self) -> None:
        self.assertEqual(cli.parse_command(":lang fr", _view()), ("help", None))

    def test_control_commands(self) -> None:
        self.assertEqual(cli.parse_command(":new", _view()), ("new", None))
        self.assertEqual(cli.parse_command(":quit", _view()), ("quit", None))
        self.assertEqual(cli.parse_command("", _view()), ("help", None))


class RenderTextTests(unittest.TestCase):
    def test_renders_story_sidebar_and_choices(self) -> None:
        text = cli.render_text(_view())
        self.assertIn("A", text)
        self.assertIn("Quest: Q", text)
        self.assertIn("Inventory: torch", text)
        self.assertIn("  1) go", text)
        self.assertIn("  2) stay", text)

    def test_describe_image(self) -> None:
        self.assertEqual(cli.describe_image(""), "")
        self.assertTrue(cli.describe_image("data:image/png;base64,AAAA").startswith("[scene illustrated: image/png"))


class PlayCommandTests(unittest.TestCase):
    def test_play_session(self) -> None:
        story_client = StubStoryClient(make_story("Opening", ["go"]), make_story("Onward", ["rest"]))
        factory = functools.partial(
            GameSession, story_client=story_client, image_client=StubImageClient(), publish=noop_publish
        )
        with mock.patch.object(cli, "GameSession", factory):
            result = CliRunner().invoke(cli.cli_app, ["play"], input="1\n:quit\n")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Opening", result.output)
        self.assertIn("Onward", result.output)
        self.assertEqual(story_client.calls[1]["choice"], "go")


if __name__ == "__main__":
    unittest.main()
