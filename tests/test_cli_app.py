import json
from pathlib import Path

import pytest

from taleweave.domain.defs import ChoiceOptionDef
from taleweave.domain.save_record import SaveRecord
from taleweave.presentation.cli import app, config
from taleweave.presentation.cli.app import ConsoleSink, _choice_label, _main_menu_options
from taleweave.presentation.cli.save_slots import FileStore
from taleweave.services.presentation import (
    BackgroundChangedEvent,
    ChoiceView,
    DialogueLineEvent,
    EpisodeEndedEvent,
    NarrationLineEvent,
)
from taleweave.services.save_service import SaveGateway

_EPISODE = {
    "episodeId": "demo",
    "title": "Demo Night",
    "start": "hello",
    "nodes": {
        "hello": {"type": "say", "who": "Mira", "text": "Evening.", "next": "pick"},
        "pick": {
            "type": "choice",
            "text": "Where to?",
            "options": [
                {"id": "vault", "label": "Vault", "next": "rich", "req": {"keys": 1}},
                {"id": "docks", "label": "Docks", "next": "done", "gain": {"gold": 2}},
            ],
        },
        "rich": {"type": "end", "summary": "Rich!"},
        "done": {"type": "end", "summary": "Gold: {gold}"},
    },
}


def _feed_input(monkeypatch, answers: list[str]) -> None:
    remaining = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(remaining))


@pytest.fixture
def sandbox(monkeypatch, tmp_path: Path) -> Path:
    content_dir = tmp_path / "episodes"
    content_dir.mkdir()
    (content_dir / "demo.json").write_text(json.dumps(_EPISODE), encoding="utf-8")
    monkeypatch.setenv("TALEWEAVE_CONTENT_DIR", str(content_dir))
    monkeypatch.delenv("TALEWEAVE_DEBUG", raising=False)
    monkeypatch.setattr(config, "get_save_dir", lambda: tmp_path / "saves")
    monkeypatch.setattr(config, "get_default_config_path", lambda: tmp_path / "config.json")
    return tmp_path


def test_main_menu_shows_continue_only_when_resumable() -> None:
    assert [label for label, _ in _main_menu_options(can_continue=False)] == ["New Game", "Options", "Quit"]
    assert [label for label, _ in _main_menu_options(can_continue=True)] == [
        "New Game",
        "Continue",
        "Options",
        "Quit",
    ]


def test_choice_label_marks_locked_options() -> None:
    option = ChoiceOptionDef(option_id="a", label="Buy", next_node_id="x", gain={"energy": -1})

    assert _choice_label(ChoiceView(option=option, selectable=True, cost_note=" (1 energy)")) == "Buy (1 energy)"
    assert _choice_label(ChoiceView(option=option, selectable=False)) == "Buy (locked)"


def test_console_sink_renders_lines_and_stage_directions(capsys) -> None:
    sink = ConsoleSink()

    sink.render(BackgroundChangedEvent(bg="harbor"))
    sink.render(DialogueLineEvent(who="Mira", text="Hello"))
    sink.render(NarrationLineEvent(text=""))
    sink.render(EpisodeEndedEvent(summary=None))

    assert capsys.readouterr().out == "[Background: harbor]\nMira: Hello\n"


def test_console_sink_refuses_locked_option(monkeypatch, capsys) -> None:
    locked = ChoiceOptionDef(option_id="a", label="Vault", next_node_id="x", req={"keys": 1})
    open_option = ChoiceOptionDef(option_id="b", label="Docks", next_node_id="y")
    views = [ChoiceView(option=locked, selectable=False), ChoiceView(option=open_option, selectable=True)]
    _feed_input(monkeypatch, ["zero", "9", "1", "2"])

    selected = ConsoleSink().present_choices(views, {})

    assert selected is open_option
    out = capsys.readouterr().out
    assert "Please enter a number." in out
    assert "That option is locked." in out


def test_console_sink_step_mode_waits_after_lines(monkeypatch) -> None:
    prompts = []
    monkeypatch.setattr("builtins.input", lambda prompt="": prompts.append(prompt) or "")

    ConsoleSink(text_mode="step").render(DialogueLineEvent(who="Mira", text="Hi"))

    assert prompts == [""]


def test_main_plays_new_game_and_saves_terminal_position(monkeypatch, capsys, sandbox: Path) -> None:
    _feed_input(monkeypatch, ["1", "2", "3"])

    app.main()

    out = capsys.readouterr().out
    assert "Mira: Evening." in out
    assert "Vault (locked)" in out
    assert "Gold: 2" in out
    assert "The End" in out
    assert out.rstrip().endswith("Goodbye!")
    record = SaveGateway(FileStore(sandbox / "saves")).load()
    assert record == SaveRecord(episode_id="demo", node_id="", resources={"gold": 2})


def test_main_continues_from_saved_node(monkeypatch, capsys, sandbox: Path) -> None:
    SaveGateway(FileStore(sandbox / "saves")).save(
        SaveRecord(episode_id="demo", node_id="pick", resources={"keys": 1})
    )
    _feed_input(monkeypatch, ["2", "1", "3"])

    app.main()

    out = capsys.readouterr().out
    assert "Mira: Evening." not in out
    assert "Rich!" in out


def test_main_ignores_save_from_other_episode(monkeypatch, capsys, sandbox: Path) -> None:
    SaveGateway(FileStore(sandbox / "saves")).save(SaveRecord(episode_id="other", node_id="pick"))
    _feed_input(monkeypatch, ["3"])

    app.main()

    assert "Continue" not in capsys.readouterr().out


def test_main_reports_missing_node(monkeypatch, capsys, sandbox: Path) -> None:
    SaveGateway(FileStore(sandbox / "saves")).save(SaveRecord(episode_id="demo", node_id="ghost"))
    _feed_input(monkeypatch, ["2", "4"])

    app.main()

    assert "Episode aborted: Node ghost not found" in capsys.readouterr().out


def test_options_menu_toggles_text_mode(monkeypatch, sandbox: Path) -> None:
    _feed_input(monkeypatch, ["1"])

    updated = app._options_menu({"text_display_mode": "instant"})

    assert updated == {"text_display_mode": "step"}
    assert config.load_config(sandbox / "config.json") == {"text_display_mode": "step"}


def test_main_without_episodes(monkeypatch, capsys, tmp_path: Path) -> None:
    monkeypatch.setenv("TALEWEAVE_CONTENT_DIR", str(tmp_path / "empty"))
    monkeypatch.setattr(config, "get_save_dir", lambda: tmp_path / "saves")

    app.main()

    assert "No episodes found." in capsys.readouterr().out


def test_main_reports_resource_conflict(monkeypatch, capsys, sandbox: Path) -> None:
    clash = {
        "episodeId": "demo",
        "title": "Demo Night",
        "start": "grant",
        "nodes": {
            "grant": {"type": "set", "vars": {"mood": "calm"}, "next": "bump"},
            "bump": {"type": "set", "vars": {"mood": "+1"}, "next": "done"},
            "done": {"type": "end"},
        },
    }
    (sandbox / "episodes" / "demo.json").write_text(json.dumps(clash), encoding="utf-8")
    _feed_input(monkeypatch, ["1", "4"])

    app.main()

    out = capsys.readouterr().out
    assert "Episode aborted: Resource 'mood' holds text 'calm'" in out
    record = SaveGateway(FileStore(sandbox / "saves")).load()
    assert record == SaveRecord(episode_id="demo", node_id="bump", resources={"mood": "calm"})


def test_main_offers_last_played_episode_first(monkeypatch, capsys, sandbox: Path) -> None:
    second = dict(_EPISODE, episodeId="second", title="Second Night")
    (sandbox / "episodes" / "second.json").write_text(json.dumps(second), encoding="utf-8")
    config.save_config({"last_episode": "second"}, sandbox / "config.json")
    _feed_input(monkeypatch, ["1", "3"])

    app.main()

    out = capsys.readouterr().out
    assert "1. second (last played)" in out
    assert "2. demo" in out
    assert "Second Night" in out


def test_main_remembers_selected_episode(monkeypatch, sandbox: Path) -> None:
    _feed_input(monkeypatch, ["3"])

    app.main()

    assert config.load_config(sandbox / "config.json")["last_episode"] == "demo"


def test_main_uses_configured_content_dir(monkeypatch, capsys, sandbox: Path) -> None:
    monkeypatch.delenv("TALEWEAVE_CONTENT_DIR")
    config.save_config({"content_dir": str(sandbox / "episodes")}, sandbox / "config.json")
    _feed_input(monkeypatch, ["3"])

    app.main()

    assert "Demo Night" in capsys.readouterr().out
