import logging
import unittest

from utils import logging_utils
from utils.logging_utils import EnsureTagFilter, build_logging_config, get_tagged_logger


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


class TestLoggingUtils(unittest.TestCase):
    def test_build_logging_config_has_expected_handlers_and_filters(self):
        cfg = build_logging_config(job_name="walktime")
        self.assertIn("stdout", cfg["handlers"])
        self.assertIn("stderr", cfg["handlers"])
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "walktime")
        self.assertEqual(cfg["handlers"]["stderr"]["level"], "WARNING")

    def test_get_tagged_logger_injects_tag(self):
        handler = _ListHandler()
        logger = get_tagged_logger("walktime.tests", tag="custom_tag")
        base_logger = logger.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False
        try:
            logger.info("hello", extra={"candidates": 3})
        finally:
            base_logger.removeHandler(handler)
            base_logger.propagate = True

        record = handler.records[-1]
        self.assertEqual(record.tag, "custom_tag")

    def test_default_tag_is_last_name_segment(self):
        logger = get_tagged_logger("walktime.walk_windows")
        self.assertEqual(logger.extra["tag"], "walk_windows")

    def test_ensure_tag_filter_fills_missing_tag(self):
        record = logging.LogRecord("uvicorn.error", logging.INFO, __file__, 1, "msg", None, None)
        EnsureTagFilter().filter(record)
        self.assertEqual(record.tag, "error")

    def test_setup_logging_override_applies_filters(self):
        root = logging.getLogger()
        orig_handlers = root.handlers[:]
        orig_level = root.level
        try:
            logging_utils.setup_logging(level="INFO", job_name="jobtest", override_existing=True)
            self.assertTrue(
                any(
                    any(f.__class__.__name__ == "JobNameFilter" for f in h.filters)
                    for h in root.handlers
                )
            )
        finally:
            root.handlers = orig_handlers
            root.setLevel(orig_level)
            logging_utils._CONFIGURED = False


if __name__ == "__main__":
    unittest.main()
