import logging

from onboarding.engine import notifications
from onboarding.models import NOTIFICATIONS


def test_render_message_fills_placeholders():
    assert notifications.render_message("{name} moved to live restaurants.", {"name": "Kopi Kita"}) == (
        "Kopi Kita moved to live restaurants."
    )


def test_render_message_falls_back_to_raw_template(caplog):
    with caplog.at_level(logging.WARNING):
        assert notifications.render_message("{missing} approved", {"name": "A"}) == "{missing} approved"
    assert "does not match the payload" in caplog.text


def test_notify_writes_record_with_auto_id(store, executor):
    sink = notifications.NotificationSink(lambda: store, executor=executor)

    sink.notify("S1", "{name} is live", {"name": "A"})

    (record,) = store.collections[NOTIFICATIONS].values()
    assert record["$id"].startswith("auto-")
    assert record["restaurantId"] == "S1"
    assert record["message"] == "A is live"
    assert record["createdAt"]


def test_notify_swallows_store_factory_errors(executor, caplog):
    def broken_factory():
        raise RuntimeError("store not configured")

    sink = notifications.NotificationSink(broken_factory, executor=executor)

    with caplog.at_level(logging.ERROR):
        sink.notify("S1", "{name} is live", {"name": "A"})

    assert "Notification write failed for S1" in caplog.text


def test_notify_survives_shutdown_executor(store, caplog):
    class ClosedExecutor:
        def submit(self, fn, *args):
            raise RuntimeError("cannot schedule new futures after shutdown")

    sink = notifications.NotificationSink(lambda: store, executor=ClosedExecutor())

    with caplog.at_level(logging.WARNING):
        sink.notify("S1", "{name} is live", {"name": "A"})

    assert NOTIFICATIONS not in store.collections
    assert "Could not queue notification for S1" in caplog.text
