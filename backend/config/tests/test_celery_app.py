from apps.reviews.tasks import recompute_all_book_stats
from config.celery import app


def test_beat_schedules_book_stats_repair():
    entry = app.conf.beat_schedule["recompute-all-book-stats"]
    assert entry["task"] == recompute_all_book_stats.name
    assert entry["schedule"] == 3600
