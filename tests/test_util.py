import logging

from streamwatch import UNSET, DefaultLogger, Duration, default_humanizer


def test_duration_helpers():
    assert Duration.ms(5) == 5
    assert Duration.second(2) == 2_000
    assert Duration.minute(1) == 60_000
    assert Duration.hour(6) == 21_600_000
    assert Duration.day(1) == 86_400_000


def test_humanizer_durations():
    assert default_humanizer(250) == "250ms"
    assert default_humanizer(-999) == "-999ms"
    assert default_humanizer(1000) == "1s"
    assert default_humanizer(Duration.minute(2)) == "120s"


def test_humanizer_relative():
    assert default_humanizer(10_000, since=10_200) == "just now"
    assert default_humanizer(5_000, since=10_000) == "5s ago"
    assert default_humanizer(15_000, since=10_000) == "5s from now"


def test_unset_is_falsy_singleton():
    assert not UNSET
    assert UNSET is not None
    assert type(UNSET)() is UNSET
    assert repr(UNSET) == "UNSET"


def test_default_logger_joins_args(caplog):
    logger = DefaultLogger()
    pkg = logging.getLogger("streamwatch")
    # records stay on the package logger, so listen there
    pkg.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="streamwatch")
    try:
        logger.info("got stream=True")
        logger.error("getStream failed", "boom")
    finally:
        pkg.removeHandler(caplog.handler)

    messages = [(r.levelname, r.getMessage()) for r in caplog.records if r.name == "streamwatch"]
    assert ("INFO", "got stream=True") in messages
    assert ("ERROR", "getStream failed boom") in messages


def test_default_logger_does_not_repeat_on_root_handlers():
    class Collect(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    root_handler = Collect()
    root = logging.getLogger()
    root.addHandler(root_handler)
    try:
        DefaultLogger().info("hello")
    finally:
        root.removeHandler(root_handler)

    assert logging.getLogger("streamwatch").propagate is False
    assert root_handler.records == []
