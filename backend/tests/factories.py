"""
Plain builders shared by tests (raw Ticketmaster payloads, auth headers).
"""
from datetime import datetime

from middleware.auth import issue_access_token

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0)


def auth_headers(user_id: int = 1, role: str = "ADMIN") -> dict:
    return {"Authorization": f"Bearer {issue_access_token(user_id=user_id, role=role)}"}


def make_raw_event(
    event_id="evt-1",
    name="Summer Show",
    venue="Arena",
    city="Berlin",
    country="Germany",
    date_time="2024-06-01T18:00:00Z",
    performers=("Band A",),
    status="onsale",
    sale_start="2024-02-01T09:00:00Z",
) -> dict:
    """Raw Ticketmaster Discovery event with the fields the normalizer reads."""
    raw = {
        "id": event_id,
        "name": name,
        "url": f"https://www.ticketmaster.com/event/{event_id}",
        "dates": {
            "start": {"dateTime": date_time},
            "status": {"code": status},
        },
        "sales": {"public": {"startDateTime": sale_start}},
        "_embedded": {
            "attractions": [{"name": p} for p in performers],
        },
    }
    if venue is not None:
        raw["_embedded"]["venues"] = [{
            "name": venue,
            "city": {"name": city},
            "country": {"name": country, "countryCode": "DE"},
            "location": {"longitude": "13.40", "latitude": "52.52"},
        }]
    return raw


def make_attraction(attraction_id="K8vZ917Gku7", name="Band A") -> dict:
    return {
        "id": attraction_id,
        "name": name,
        "url": f"https://www.ticketmaster.com/artist/{attraction_id}",
        "images": [{"url": "https://img.example/a.jpg"}],
        "classifications": [
            {"genre": {"name": "Rock"}, "subGenre": {"name": "Alternative Rock"}},
        ],
    }
