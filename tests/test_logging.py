import json

from learnpath.logging import LoggerRegistry, configure_logging, engine_logger, get_logger


def test_registry_returns_one_logger_per_domain():
    assert LoggerRegistry.get("engine") is engine_logger()
    assert LoggerRegistry.get("srs") is not LoggerRegistry.get("storage")


def test_json_logs(capsys):
    configure_logging(level="DEBUG", json_logs=True)
    get_logger("learnpath.test").info("badge_unlocked", badge_id="first-step")
    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "badge_unlocked"
    assert event["badge_id"] == "first-step"
    assert event["level"] == "info"
    assert event["service"] == "learnpath"


def test_level_filters_events(capsys):
    configure_logging(level="WARNING", json_logs=True)
    log = get_logger("learnpath.test")
    log.info("quiet")
    log.warning("loud")
    err = capsys.readouterr().err
    assert "quiet" not in err
    assert "loud" in err
