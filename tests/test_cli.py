#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pyyaml",
#   "pytest",
# ]
# ///
"""Test the propview command line."""

import json
import logging
import sys
from pathlib import Path

import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propview import config as config_module
from propview import logging_utils
from propview.cli import main
from propview.models import to_plain


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "USER_CONFIG", tmp_path / "home" / "config.yaml")
    return tmp_path


@pytest.fixture(autouse=True)
def detach_log_handler():
    """main() attaches a handler bound to the captured stderr; drop it afterwards."""
    level = logging_utils.LOG.level
    yield
    if logging_utils._handler is not None:
        logging_utils.LOG.removeHandler(logging_utils._handler)
        logging_utils._handler = None
    logging_utils.LOG.setLevel(level)


def test_grid(capsys):
    assert main(["grid", "CM98"]) == 0
    out = capsys.readouterr().out
    assert "CM98: 38.5000, -121.0000" in out


def test_grid_from_config(isolated_config, capsys):
    cfg = isolated_config / "propview.yaml"
    cfg.write_text("grid: FN31\n")
    assert main(["--config", str(cfg), "grid"]) == 0
    assert "FN31: 41.5000, -73.0000" in capsys.readouterr().out


def test_grid_invalid():
    with pytest.raises(SystemExit) as exc:
        main(["grid", "ZZ99"])
    assert "Invalid locator" in str(exc.value.code)


def test_locate(capsys):
    assert main(["locate", "41.714775", "-72.727260"]) == 0
    assert capsys.readouterr().out.strip() == "FN31pr"
    assert main(["locate", "--precision", "square", "-33.9", "151.2"]) == 0
    assert capsys.readouterr().out.strip() == "QF56"


def test_path_across_pacific(capsys):
    assert main(["path", "PM95", "CM87"]) == 0
    out = capsys.readouterr().out
    assert "Segments: 2" in out
    assert "Distance:" in out


def test_sun(capsys):
    assert main(["sun", "--time", "2024-06-21T12:00:00Z"]) == 0
    out = capsys.readouterr().out
    assert "Night side:  south" in out
    assert "Declination: 23.4" in out


def test_aurora(capsys):
    assert main(["aurora", "7"]) == 0
    out = capsys.readouterr().out
    assert "Storm" in out
    assert "radius 29°" in out


def test_overlay(capsys):
    assert main(["overlay", "-74", "-72", "6", "--south", "41", "--north", "42"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("1 square cells")
    assert "FN31" in out


def test_analyze(isolated_config, scenario_spots, capsys):
    spot_file = isolated_config / "spots.json"
    spot_file.write_text(json.dumps(to_plain(scenario_spots)))
    assert main(["analyze", str(spot_file)]) == 0
    result = json.loads(capsys.readouterr().out)
    assert [c["band"] for c in result["band_conditions"]] == ["20m", "10m"]
    assert result["statistics"]["total_spots"] == 3


def test_analyze_applies_feed_conventions(isolated_config, capsys):
    """Feed (0, 0) means no location; the locator then supplies one."""
    feed = [{
        "timestamp": "2024-06-21T12:00:00Z", "frequency": 14074000, "band": "20m", "mode": "FT8",
        "snr": -7,
        "transmitter": {"callsign": "W1AW", "locator": "FN31",
                        "location": {"latitude": 0, "longitude": 0}},
        "receiver": {"callsign": "JA1XYZ", "locator": "PM95"},
    }]
    spot_file = isolated_config / "spots.json"
    spot_file.write_text(json.dumps({"spots": feed}))
    assert main(["analyze", str(spot_file)]) == 0
    result = json.loads(capsys.readouterr().out)
    (path,) = result["propagation_paths"]
    assert path["from"] == pytest.approx({"latitude": 41.5, "longitude": -73.0})
    assert path["to"] == pytest.approx({"latitude": 35.5, "longitude": 139.0})


def test_log_level_option_installs_handler():
    assert main(["--log-level", "debug", "aurora", "3"]) == 0
    assert logging_utils._handler in logging_utils.LOG.handlers
    assert logging_utils.LOG.level == logging.DEBUG


def test_analyze_missing_file(isolated_config):
    with pytest.raises(SystemExit):
        main(["analyze", str(isolated_config / "nope.json")])


def test_psk(isolated_config, capsys):
    xml_file = isolated_config / "reports.xml"
    xml_file.write_text(
        '<receptionReports><receptionReport receiverCallsign="JA1XYZ" receiverLocator="PM95"'
        ' senderCallsign="W1AW" senderLocator="FN31" frequency="14074000"'
        ' flowStartSeconds="1718971200" mode="FT8" sNR="-10"/></receptionReports>'
    )
    assert main(["psk", str(xml_file)]) == 0
    spots = json.loads(capsys.readouterr().out)
    assert len(spots) == 1
    assert spots[0]["band"] == "20m"
    assert spots[0]["snr_db"] == -10


def test_requires_command():
    with pytest.raises(SystemExit):
        main([])

