import pytest

import game
from common import ScriptedIO


class TestParseChoice:
    @pytest.mark.parametrize("text, expected", [
        ("3", game.Choice(game.ChoiceKind.NUMBER, 3)),
        (" 0 ", game.Choice(game.ChoiceKind.NUMBER, 0)),
        (" x ", game.Choice(game.ChoiceKind.EXIT)),
        ("X", game.Choice(game.ChoiceKind.EXIT)),
        ("?", game.Choice(game.ChoiceKind.HELP)),
        ("6", game.Choice(game.ChoiceKind.INVALID)),
        ("-1", game.Choice(game.ChoiceKind.INVALID)),
        ("abc", game.Choice(game.ChoiceKind.INVALID)),
        ("", game.Choice(game.ChoiceKind.INVALID)),
        ("²", game.Choice(game.ChoiceKind.INVALID)),
    ])
    def test_classification(self, text, expected):
        assert game.parse_choice(text, 6) == expected

    def test_help_disabled(self):
        assert game.parse_choice("?", 2, allow_help=False).kind is game.ChoiceKind.INVALID


class TestGetUserChoice:
    def test_invalid_then_valid(self):
        io = ScriptedIO(["9", "nope", "1"])
        assert io.ui().get_user_choice("Pick", ["a", "b"], on_help=lambda: None) == 1
        assert io.lines.count("Invalid choice. Please enter a valid number, '?', or 'X'.") == 2

    def test_help_reissues_prompt(self):
        calls = []
        io = ScriptedIO(["?", "0"])
        assert io.ui().get_user_choice("Pick", ["a"], on_help=lambda: calls.append(1)) == 0
        assert calls == [1]
        assert io.lines.count("\nPick") == 2

    def test_exit_raises(self):
        io = ScriptedIO(["X"])
        with pytest.raises(game.ExitRequested):
            io.ui().get_user_choice("Pick", ["a"], on_help=lambda: None)

    def test_help_without_handler_is_invalid(self):
        io = ScriptedIO(["?", "0"])
        assert io.ui().get_user_choice("Pick", ["a"]) == 0
        assert " ? - Help" not in io.lines
