"""
Tests for the command-line entry point: argument parsing, configuration,
engine wiring and the interactive command handlers.
"""

import json
from pathlib import Path

import pytest

from hexflower.data_models import HexCoord
from hexflower.main import (
    HexFlowerCLI,
    HexFlowerConfig,
    create_config_from_args,
    create_engine,
    main,
    parse_arguments,
    run_demo,
)
from hexflower.navigation import BoundaryPolicy


@pytest.fixture
def config(tmp_path):
    return HexFlowerConfig(data_dir=tmp_path, seed=42)


@pytest.fixture
def cli(config):
    return HexFlowerCLI(create_engine(config))


class TestArguments:
    """Tests for parse_arguments / create_config_from_args."""

    def test_defaults(self):
        args = parse_arguments([])
        config = create_config_from_args(args)
        assert config.data_dir == Path("data")
        assert config.default_radius == 2
        assert config.enable_edge_wrapping is False
        assert config.show_navigation_roll is True
        assert config.seed is None
        assert args.demo is None

    def test_all_flags(self, tmp_path):
        args = parse_arguments([
            "--data-dir", str(tmp_path), "--radius", "3", "--wrap",
            "--no-roll-display", "--seed", "7", "--demo", "5", "-v",
        ])
        config = create_config_from_args(args)
        assert config.data_dir == tmp_path
        assert config.default_radius == 3
        assert config.enable_edge_wrapping is True
        assert config.show_navigation_roll is False
        assert config.seed == 7
        assert config.verbose is True
        assert args.demo == 5


class TestHexFlowerConfig:
    """Tests for HexFlowerConfig."""

    def test_string_data_dir(self):
        config = HexFlowerConfig(data_dir="somewhere")
        assert config.store_path == Path("somewhere") / "hexflowers.json"

    def test_engine_config(self):
        engine_config = HexFlowerConfig(default_radius=4, enable_edge_wrapping=True,
                                        show_navigation_roll=False).to_engine_config()
        assert engine_config.default_radius == 4
        assert engine_config.boundary_policy == BoundaryPolicy.WRAPPING
        assert engine_config.show_navigation_roll is False

    def test_bounded_by_default(self):
        assert HexFlowerConfig().to_engine_config().boundary_policy == BoundaryPolicy.BOUNDED


class TestCreateEngine:
    """Tests for create_engine."""

    def test_records_seed(self, config, run_log):
        create_engine(config)
        assert run_log.get_seed() == 42

    def test_reloads_store(self, config):
        first = create_engine(config)
        flower = first.create()
        first.navigate(flower.id, 7)

        second = create_engine(config)
        assert second.get_flower(flower.id).current_position == HexCoord(0, 1)

    def test_seeded_walks_repeat(self, tmp_path):
        def walk(subdir):
            engine = create_engine(HexFlowerConfig(data_dir=tmp_path / subdir, seed=3))
            flower = engine.create()
            return [engine.navigate(flower.id).roll_total for _ in range(10)]

        assert walk("a") == walk("b")


class TestCLICommands:
    """Tests for the interactive command handlers."""

    def test_create_and_list(self, cli, capsys):
        cli.process_command("create Weather 2")
        cli.process_command("list")
        out = capsys.readouterr().out
        assert "Created 'Weather'" in out
        assert "19 hexes" in out
        assert "* " in out
        assert cli.selected_id is not None

    def test_create_invalid_radius(self, cli, capsys):
        cli.process_command("create Big 9")
        assert "Cannot create Hex Flower" in capsys.readouterr().out
        assert len(cli.engine) == 0

    def test_create_quoted_name(self, cli):
        cli.process_command('create "Dungeon Mood" 1')
        assert cli.engine.get_flower(cli.selected_id).name == "Dungeon Mood"

    def test_nav_with_total(self, cli, capsys):
        cli.process_command("create Weather 2")
        cli.process_command("nav 7")
        out = capsys.readouterr().out
        assert "Roll 7 -> d (S): moved" in out
        assert cli.engine.get_flower(cli.selected_id).current_position == HexCoord(0, 1)

    def test_nav_rolls(self, cli):
        cli.process_command("create Weather 2")
        cli.process_command("nav")
        assert len(cli.engine.get_flower(cli.selected_id).history) == 1

    def test_nav_invalid_total(self, cli, capsys):
        cli.process_command("create Weather 2")
        cli.process_command("nav 13")
        assert "Cannot navigate" in capsys.readouterr().out

    def test_nav_without_flower(self, cli, capsys):
        cli.process_command("nav")
        assert "No Hex Flower selected" in capsys.readouterr().out

    def test_set_and_show(self, cli, capsys):
        cli.process_command("create Weather 2")
        cli.process_command('set 0 0 label=Clear "content=Blue skies"')
        cli.process_command("show")
        out = capsys.readouterr().out
        assert "label:   Clear" in out
        assert "content: Blue skies" in out

    def test_set_unknown_hex(self, cli, capsys):
        cli.process_command("create Weather 1")
        cli.process_command("set 4 4 label=X")
        assert "No hex at (4, 4)" in capsys.readouterr().out

    def test_set_unknown_field(self, cli, capsys):
        cli.process_command("create Weather 1")
        cli.process_command("set 0 0 mood=grim")
        assert "Unknown field 'mood'" in capsys.readouterr().out

    def test_history_and_reset(self, cli, capsys):
        cli.process_command("create Weather 2")
        cli.process_command("nav 7")
        cli.process_command("history")
        assert "(0, 0) -> (0, 1) d (move)" in capsys.readouterr().out
        cli.process_command("reset")
        cli.process_command("history")
        assert "No movement yet." in capsys.readouterr().out

    def test_odds(self, cli, capsys):
        cli.process_command("odds")
        out = capsys.readouterr().out
        assert "d ( S): 6, 7" in out
        assert "30.6%" in out

    def test_export_import(self, cli, tmp_path, capsys):
        cli.process_command("create Weather 1")
        original = cli.selected_id
        path = tmp_path / "weather.json"
        cli.process_command(f"export {path}")
        assert json.loads(path.read_text(encoding="utf-8"))["radius"] == 1

        cli.process_command(f"import {path}")
        assert cli.selected_id != original
        assert len(cli.engine) == 2
        assert "Imported 'Weather'" in capsys.readouterr().out

    def test_import_bad_file(self, cli, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{}", encoding="utf-8")
        cli.process_command(f"import {path}")
        assert "Import failed" in capsys.readouterr().out
        assert len(cli.engine) == 0

    def test_select_and_delete(self, cli, capsys):
        cli.process_command("create One 1")
        first = cli.selected_id
        cli.process_command("create Two 1")
        cli.process_command(f"select {first}")
        assert cli.selected_id == first
        cli.process_command("delete")
        assert first not in cli.engine
        assert cli.selected_id is None

    def test_unknown_command(self, cli, capsys):
        cli.process_command("fly")
        assert "Unknown command: fly" in capsys.readouterr().out

    def test_quit(self, cli):
        cli.running = True
        cli.process_command("quit")
        assert cli.running is False

    def test_run_loop(self, cli, monkeypatch, capsys):
        inputs = iter(["create Weather 1", "nav 7", "", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt: next(inputs))
        cli.run()
        assert "Farewell." in capsys.readouterr().out


class TestMain:
    """Tests for the non-interactive entry point."""

    def test_demo(self, tmp_path, capsys):
        main(["--data-dir", str(tmp_path), "--demo", "3", "--seed", "1"])
        out = capsys.readouterr().out
        assert "Demo: 'Demo Weather'" in out
        assert out.count("Roll ") == 3
        stored = json.loads((tmp_path / "hexflowers.json").read_text(encoding="utf-8"))
        assert stored["hexFlowers"] == []

    def test_run_demo(self, config, run_log, capsys):
        engine = create_engine(config)
        run_demo(engine, 2)
        assert len(run_log.get_navigations()) == 2
        assert len(engine) == 0

    def test_invalid_radius_is_a_usage_error(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--data-dir", str(tmp_path), "--radius", "9", "--demo", "1"])
        assert excinfo.value.code == 2
        err = capsys.readouterr().err
        assert err.startswith("hexflower: error:")
        assert "9" in err
