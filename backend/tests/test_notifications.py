"""
Tests for the notification channel.
"""
from gallery.services.notifications import LEVEL_ERROR, LEVEL_INFO, NotificationChannel


def test_personal_notifications_are_private():
    channel = NotificationChannel()
    channel.error("Could not update your EXP.", user_id="u1")
    assert [n.level for n in channel.pending("u1")] == [LEVEL_ERROR]
    assert channel.pending("u2") == []


def test_dismissing_personal_notification_removes_it():
    channel = NotificationChannel()
    note = channel.publish("hello", user_id="u1")
    assert channel.dismiss(note.id, "u2") is False
    assert channel.dismiss(note.id, "u1") is True
    assert channel.pending("u1") == []


def test_broadcast_dismissal_is_per_user():
    channel = NotificationChannel()
    note = channel.publish("Maintenance tonight", level=LEVEL_INFO)

    assert channel.dismiss(note.id, "u1") is True
    assert channel.pending("u1") == []
    assert [n.id for n in channel.pending("u2")] == [note.id]
    assert [n.id for n in channel.pending(None)] == [note.id]

    # A second dismissal by the same user finds nothing left to hide
    assert channel.dismiss(note.id, "u1") is False


def test_anonymous_cannot_dismiss():
    channel = NotificationChannel()
    note = channel.publish("Maintenance tonight")
    assert channel.dismiss(note.id, None) is False
    assert len(channel.pending("u1")) == 1


def test_channel_is_bounded():
    channel = NotificationChannel(max_items=3)
    for i in range(5):
        channel.publish(f"n{i}")
    assert [n.message for n in channel.pending()] == ["n2", "n3", "n4"]
