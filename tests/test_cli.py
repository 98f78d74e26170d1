"""
Tests for the click command-line host.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from simorder.cli import main
from simorder.utils.logging_setup import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI points the package logger at the runner's stream; reset it afterwards."""
    yield
    setup_logging()


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def request_file(tmp_path, example_items, example_hashes):
    path = tmp_path / "request.json"
    path.write_text(json.dumps({"strategy": "mst", "items": example_items, "hashes": example_hashes}))
    return path


class TestOrderCommand:
    """Test `simorder order`."""

    def test_orders_in_process(self, runner, request_file, tmp_path):
        out = tmp_path / "ordered.json"
        result = runner.invoke(main, ["order", str(request_file), "--no-worker", "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text()) == ["A", "B", "C", "D"]

    def test_orders_in_worker(self, runner, request_file, tmp_path):
        out = tmp_path / "ordered.json"
        result = runner.invoke(main, ["order", str(request_file), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text()) == ["A", "B", "C", "D"]

    def test_prints_to_stdout(self, runner, request_file):
        result = runner.invoke(main, ["order", str(request_file), "--no-worker"])
        assert result.exit_code == 0
        assert '"A"' in result.output

    def test_accepts_start_sort_message(self, runner, tmp_path, example_items, example_hashes):
        path = tmp_path / "message.json"
        path.write_text(json.dumps({
            "type": "start_sort",
            "data": {"strategy": "vptree", "items": example_items, "hashes": example_hashes, "focusIndex": 3},
        }))
        out = tmp_path / "ordered.json"
        result = runner.invoke(main, ["order", str(path), "--no-worker", "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())[0] == "D"

    def test_flags_override_request(self, runner, request_file, tmp_path):
        out = tmp_path / "ordered.json"
        result = runner.invoke(main, [
            "order", str(request_file), "--no-worker", "-o", str(out),
            "--strategy", "simple", "--focus-index", "2", "--seed", "1", "--max-comparisons", "2",
        ])

        assert result.exit_code == 0, result.output
        ordered = json.loads(out.read_text())
        assert ordered[0] == "C"
        assert sorted(ordered) == ["A", "B", "C", "D"]

    def test_failure_exits_with_one(self, runner, tmp_path):
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"strategy": "mst", "items": ["a", "b"], "hashes": {"a": "01"}}))

        result = runner.invoke(main, ["order", str(path), "--no-worker"])
        assert result.exit_code == 1
        assert "NoUsableHashes" in result.output

    def test_unknown_strategy_in_file(self, runner, tmp_path, example_items, example_hashes):
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"strategy": "bogo", "items": example_items, "hashes": example_hashes}))

        result = runner.invoke(main, ["order", str(path), "--no-worker"])
        assert result.exit_code == 1
        assert "UnknownStrategy" in result.output

    def test_rejects_non_object_request(self, runner, tmp_path):
        path = tmp_path / "request.json"
        path.write_text("[1, 2, 3]")

        result = runner.invoke(main, ["order", str(path), "--no-worker"])
        assert result.exit_code == 2

    def test_config_supplies_default_strategy(self, runner, tmp_path, example_items, example_hashes):
        config_path = tmp_path / "config.yml"
        config_path.write_text(yaml.dump({"strategy": "vptree"}))
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"items": example_items, "hashes": example_hashes}))
        out = tmp_path / "ordered.json"

        result = runner.invoke(main, [
            "order", str(path), "--no-worker", "--config", str(config_path), "-o", str(out), "-v",
        ])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text()) == ["A", "B", "C", "D"]

    def test_invalid_config_exits_with_two(self, runner, tmp_path, request_file):
        config_path = tmp_path / "config.yml"
        config_path.write_text(yaml.dump({"strategy": "bogo"}))

        result = runner.invoke(main, ["order", str(request_file), "--config", str(config_path)])
        assert result.exit_code == 2

    def test_unresponsive_worker_exits_with_one(self, runner, request_file, monkeypatch):
        def silent_worker(request, config, on_progress):
            raise TimeoutError("No message from ordering worker within 30.0s")

        monkeypatch.setattr("simorder.cli._run_in_worker", silent_worker)
        result = runner.invoke(main, ["order", str(request_file)])

        assert result.exit_code == 1
        assert "stopped responding" in result.output

    def test_log_file_records_operations(self, runner, request_file, tmp_path):
        log_dir = tmp_path / "logs"
        out = tmp_path / "ordered.json"
        result = runner.invoke(main, [
            "order", str(request_file), "--no-worker", "-o", str(out), "-v", "--log-file", str(log_dir),
        ])
        assert result.exit_code == 0, result.output

        log_files = list(log_dir.glob("simorder_*.jsonl"))
        assert len(log_files) == 1
        records = [json.loads(line) for line in log_files[0].read_text().splitlines()]
        started = [r for r in records if r.get("operation") == "order_items"]
        assert started
        assert started[0]["strategy"] == "mst"
        assert started[0]["items"] == 4


class TestConfigCommands:
    """Test `simorder config init|show`."""

    def test_init_writes_defaults(self, runner, tmp_path):
        path = tmp_path / "cfg.yml"
        result = runner.invoke(main, ["config", "init", "--path", str(path)])

        assert result.exit_code == 0
        data = yaml.safe_load(path.read_text())
        assert data["strategy"] == "mst"
        assert data["max_comparisons"] == 1000

    def test_init_asks_before_overwrite(self, runner, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text("strategy: simple\n")

        result = runner.invoke(main, ["config", "init", "--path", str(path)], input="n\n")
        assert result.exit_code == 0
        assert path.read_text() == "strategy: simple\n"

        result = runner.invoke(main, ["config", "init", "--path", str(path), "--force"])
        assert result.exit_code == 0
        assert yaml.safe_load(path.read_text())["strategy"] == "mst"

    def test_show_lists_values(self, runner, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text(yaml.dump({"strategy": "simple", "max_comparisons": None}))

        result = runner.invoke(main, ["config", "show", "--path", str(path)])
        assert result.exit_code == 0
        assert "simple" in result.output
        assert "unlimited" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "simorder" in result.output
