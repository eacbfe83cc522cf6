import json
import logging

from pi_price.logging_utils import JsonFormatter


def test_json_formatter_includes_known_extras() -> None:
    record = logging.LogRecord(
        name="pi_price.broadcaster",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="broadcast_sent",
        args=(),
        exc_info=None,
    )
    record.price = "0.52"
    record.unrelated = "x"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["msg"] == "broadcast_sent"
    assert payload["level"] == "INFO"
    assert payload["price"] == "0.52"
    assert "unrelated" not in payload
