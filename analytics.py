from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

TREND_WINDOW_DAYS = 30


def window_start(now: Optional[datetime] = None, days: int = TREND_WINDOW_DAYS) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=days)


def mood_trend_pipeline(since: datetime) -> List[Dict[str, Any]]:
    """Aggregation grouping journal entries created since ``since`` by (UTC day, mood).

    ``$avg`` skips entries without a ``moodScore`` and yields null for a group
    that has none.
    """
    return [
        {"$match": {"createdAt": {"$gte": since}}},
        {
            "$group": {
                "_id": {
                    "date": {"$dateToString": {"format": "%Y-%m-%d", "date": "$createdAt"}},
                    "mood": "$mood",
                },
                "count": {"$sum": 1},
                "avgScore": {"$avg": "$moodScore"},
            }
        },
        {"$sort": {"_id.date": 1, "_id.mood": 1}},
    ]


def trend_rows(results: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "date": r["_id"]["date"],
            "mood": r["_id"].get("mood"),
            "count": r["count"],
            "avg_score": r.get("avgScore"),
        }
        for r in results
    ]
