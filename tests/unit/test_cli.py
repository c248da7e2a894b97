"""Tests for the contentful-graph CLI."""

import json
import sqlite3
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from contentful_graph.cli import app
from contentful_graph.core.identity import create_node_id
from tests.unit.snapshots import asset, entry, link, make_snapshot

runner = CliRunner()

POST_ID = create_node_id("space1___post1___Entry")
ASSET_ID = create_node_id("space1___asset1___Asset")


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.json"
    raw = make_snapshot(
        entries=[
            entry("post1", "blogPost", {"title": {"en-US": "Hello"}, "author": {"en-US": link("person1")}}),
            entry("person1", "person", {"name": {"en-US": "Ada"}}),
        ],
        assets=[asset("asset1")],
    )
    path.write_text(json.dumps(raw))
    return path


@pytest.fixture
def data_dir(tmp_path: Path, snapshot_file: Path) -> Path:
    """A data dir with the snapshot already normalized."""
    dst = tmp_path / "data"
    result = runner.invoke(app, ["normalize", str(snapshot_file), "--data-dir", str(dst)])
    assert result.exit_code == 0, result.output
    return dst


def test_normalize_prints_stats(tmp_path: Path, snapshot_file: Path) -> None:
    result = runner.invoke(app, ["normalize", str(snapshot_file), "-d", str(tmp_path / "d")])

    assert result.exit_code == 0
    assert "Normalized 2 content types: 4 entry nodes (0 unchanged)" in result.output
    assert (tmp_path / "d" / "nodes.db").exists()


def test_normalize_twice_skips_unchanged(data_dir: Path, snapshot_file: Path) -> None:
    result = runner.invoke(app, ["normalize", str(snapshot_file), "-d", str(data_dir)])

    assert result.exit_code == 0
    assert "0 entry nodes (4 unchanged)" in result.output


def test_normalize_missing_snapshot(tmp_path: Path) -> None:
    result = runner.invoke(app, ["normalize", str(tmp_path / "nope.json"), "-d", str(tmp_path)])
    assert result.exit_code == 1


def test_normalize_malformed_snapshot_logs_and_exits(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"space": {"sys": {"id": "space1"}}}))
    log_file = tmp_path / "run.log"

    result = runner.invoke(
        app, ["--log-file", str(log_file), "normalize", str(bad), "-d", str(tmp_path / "d")]
    )

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    logger.remove()
    assert "Failed to normalize" in log_file.read_text()


def test_normalize_rejects_newer_database(data_dir: Path, snapshot_file: Path) -> None:
    conn = sqlite3.connect(str(data_dir / "nodes.db"))
    conn.execute("PRAGMA user_version = 99")
    conn.close()

    result = runner.invoke(app, ["normalize", str(snapshot_file), "-d", str(data_dir)])

    assert result.exit_code == 1
    assert not isinstance(result.exception, RuntimeError)


def test_show_prints_node(data_dir: Path) -> None:
    result = runner.invoke(app, ["show", POST_ID, "-d", str(data_dir)])

    assert result.exit_code == 0
    node = json.loads(result.output)
    assert node["title"] == "Hello"
    assert node["author___NODE"] == create_node_id("space1___person1___Entry")
    assert node["internal"]["type"] == "ContentfulBlogPost"


def test_show_unknown_node(data_dir: Path) -> None:
    result = runner.invoke(app, ["show", "nope", "-d", str(data_dir)])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_show_without_database(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show", POST_ID, "-d", str(tmp_path / "empty")])
    assert result.exit_code == 1


def test_image_fixed(data_dir: Path) -> None:
    result = runner.invoke(app, ["image", ASSET_ID, "--width", "300", "-d", str(data_dir)])

    assert result.exit_code == 0
    descriptor = json.loads(result.output)
    assert descriptor["width"] == 300
    assert descriptor["height"] == 150
    assert descriptor["src"].startswith("https://images.ctfassets.net/")
    assert descriptor["base64"] is None


def test_image_fluid(data_dir: Path) -> None:
    result = runner.invoke(app, ["image", ASSET_ID, "--mode", "fluid", "-d", str(data_dir)])

    assert result.exit_code == 0
    assert json.loads(result.output)["sizes"] == "(max-width: 800px) 100vw, 800px"


def test_image_unknown_mode(data_dir: Path) -> None:
    result = runner.invoke(app, ["image", ASSET_ID, "--mode", "tiled", "-d", str(data_dir)])
    assert result.exit_code == 1


def test_image_on_entry_node_fails(data_dir: Path) -> None:
    result = runner.invoke(app, ["image", POST_ID, "-d", str(data_dir)])

    assert result.exit_code == 1
    assert "not an image asset" in result.output


def test_image_data_without_placeholder(
    data_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CONTENTFUL_GRAPH_CACHE_DIR", str(tmp_path / "cache"))

    result = runner.invoke(
        app, ["image-data", ASSET_ID, "--layout", "fixed", "-w", "200", "-d", str(data_dir)]
    )

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert (data["layout"], data["width"], data["height"]) == ("fixed", 200, 100)
    assert data["placeholder"] is None


def test_log_file_receives_debug_logs(tmp_path: Path, snapshot_file: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"

    result = runner.invoke(
        app,
        ["--log-file", str(log_file), "normalize", str(snapshot_file), "-d", str(tmp_path / "d")],
    )

    assert result.exit_code == 0
    logger.remove()
    text = log_file.read_text()
    assert "Reference index:" in text
    assert "Normalized 2 content types" in text
