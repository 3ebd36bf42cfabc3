from datetime import timedelta

import pytest

from miniflix.utils.security import create_access_token

from .helpers import (
    EPISODE_ID,
    FEATURE_ID,
    INACTIVE_USER_ID,
    MISSING_ID,
    SHORT_ID,
    USER_ID,
    count_records,
    fetch_records,
    run,
)

API = "/api/v1"


def heartbeat(client, headers, content_id, position, watch_duration=30):
    return client.post(
        f"{API}/contents/{content_id}/playback",
        json={
            "content_id": content_id,
            "current_position": position,
            "watch_duration": watch_duration,
        },
        headers=headers,
    )


def final_write(client, headers, content_id, position, completed, path="final-position"):
    return client.post(
        f"{API}/contents/{content_id}/{path}",
        json={
            "content_id": content_id,
            "final_position": position,
            "watch_duration": position,
            "is_completed": completed,
        },
        headers=headers,
    )


# ==================== AUTH ====================

@pytest.mark.parametrize(
    "method,path",
    [
        ("get", f"{API}/contents/{FEATURE_ID}/stream"),
        ("post", f"{API}/contents/{FEATURE_ID}/playback"),
        ("post", f"{API}/contents/{FEATURE_ID}/final-position"),
        ("post", f"{API}/contents/{FEATURE_ID}/history"),
        ("get", f"{API}/users/viewing-history"),
        ("get", f"{API}/users/continue-watching"),
    ],
)
def test_endpoints_require_a_token(client, seeded, method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_rejected(client, seeded):
    token = create_access_token(USER_ID, expires_delta=timedelta(seconds=-5))
    response = client.get(
        f"{API}/contents/{FEATURE_ID}/stream",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


@pytest.mark.parametrize("subject", ["not-a-number", 4242])
def test_token_for_unknown_subject_is_rejected(client, seeded, subject):
    token = create_access_token(subject)
    response = client.get(
        f"{API}/contents/{FEATURE_ID}/stream",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401


def test_garbage_token_is_rejected(client, seeded):
    response = client.get(
        f"{API}/contents/{FEATURE_ID}/stream",
        headers={"Authorization": "Bearer not.a.jwt"},
    )

    assert response.status_code == 401


def test_inactive_user_is_forbidden(client, seeded):
    token = create_access_token(INACTIVE_USER_ID)
    response = client.get(
        f"{API}/contents/{FEATURE_ID}/stream",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403


# ==================== STREAM ====================

def test_stream_for_unwatched_content_starts_at_zero(client, auth_headers):
    response = client.get(f"{API}/contents/{FEATURE_ID}/stream", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "content_id": FEATURE_ID,
        "streaming_url": "https://media.miniflix.test/videos/feature.mp4",
        "duration": 1200,
        "last_position": 0,
    }
    assert run(count_records()) == 0


def test_stream_keeps_absolute_video_urls(client, auth_headers):
    response = client.get(f"{API}/contents/{SHORT_ID}/stream", headers=auth_headers)

    assert response.json()["streaming_url"] == "https://cdn.example.com/short.mp4"


def test_stream_for_unknown_content_is_404(client, auth_headers):
    response = client.get(f"{API}/contents/{MISSING_ID}/stream", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Content not found"


def test_non_numeric_content_id_is_a_bad_request(client, auth_headers):
    response = client.get(f"{API}/contents/abc/stream", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid request data"


# ==================== WRITES ====================

def test_watch_then_leave_then_resume(client, auth_headers):
    for position in (30, 60, 90):
        assert heartbeat(client, auth_headers, FEATURE_ID, position).json() == {"success": True}

    assert final_write(client, auth_headers, FEATURE_ID, 1100, True).status_code == 200
    assert final_write(client, auth_headers, FEATURE_ID, 1100, True, path="history").status_code == 200

    [record] = run(fetch_records(USER_ID, FEATURE_ID))
    assert record.last_position == 1100
    assert record.watch_duration == 1100
    assert record.is_completed is True

    response = client.get(f"{API}/contents/{FEATURE_ID}/stream", headers=auth_headers)
    assert response.json()["last_position"] == 1100


def test_heartbeat_ignores_reported_watch_duration(client, auth_headers):
    heartbeat(client, auth_headers, EPISODE_ID, 120, watch_duration=30)

    [record] = run(fetch_records(USER_ID, EPISODE_ID))
    assert record.last_position == 120
    assert record.watch_duration == 0


def test_history_accepts_legacy_last_position_field(client, auth_headers):
    response = client.post(
        f"{API}/contents/{EPISODE_ID}/history",
        json={
            "content_id": EPISODE_ID,
            "last_position": 240,
            "watch_duration": 240,
            "is_completed": False,
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    [record] = run(fetch_records(USER_ID, EPISODE_ID))
    assert record.last_position == 240


def test_negative_position_is_a_bad_request(client, auth_headers):
    heartbeat(client, auth_headers, FEATURE_ID, 300)

    response = heartbeat(client, auth_headers, FEATURE_ID, -1)

    assert response.status_code == 400
    [record] = run(fetch_records(USER_ID, FEATURE_ID))
    assert record.last_position == 300


def test_non_numeric_position_is_a_bad_request(client, auth_headers):
    response = client.post(
        f"{API}/contents/{FEATURE_ID}/playback",
        json={"content_id": FEATURE_ID, "current_position": "later"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"]


def test_missing_final_position_is_a_bad_request(client, auth_headers):
    response = client.post(
        f"{API}/contents/{FEATURE_ID}/final-position",
        json={"content_id": FEATURE_ID, "watch_duration": 10},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_body_content_must_match_path(client, auth_headers):
    response = client.post(
        f"{API}/contents/{FEATURE_ID}/playback",
        json={"content_id": EPISODE_ID, "current_position": 10},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert run(count_records()) == 0


def test_writes_to_unknown_content_are_404(client, auth_headers):
    assert heartbeat(client, auth_headers, MISSING_ID, 10).status_code == 404
    assert final_write(client, auth_headers, MISSING_ID, 10, False).status_code == 404
    assert run(count_records()) == 0


# ==================== USER VIEWS ====================

def test_continue_watching_excludes_completed(client, auth_headers):
    heartbeat(client, auth_headers, FEATURE_ID, 100)
    heartbeat(client, auth_headers, EPISODE_ID, 200)
    final_write(client, auth_headers, SHORT_ID, 290, True)

    response = client.get(f"{API}/users/continue-watching", headers=auth_headers)

    assert response.status_code == 200
    assert [item["content_id"] for item in response.json()] == [EPISODE_ID, FEATURE_ID]


def test_continue_watching_limit(client, auth_headers):
    heartbeat(client, auth_headers, FEATURE_ID, 100)
    heartbeat(client, auth_headers, EPISODE_ID, 200)

    response = client.get(f"{API}/users/continue-watching?limit=1", headers=auth_headers)
    assert [item["content_id"] for item in response.json()] == [EPISODE_ID]

    response = client.get(f"{API}/users/continue-watching?limit=-1", headers=auth_headers)
    assert response.status_code == 400


def test_viewing_history_includes_completed_with_progress(client, auth_headers):
    final_write(client, auth_headers, EPISODE_ID, 450, False)
    final_write(client, auth_headers, SHORT_ID, 300, True)

    response = client.get(f"{API}/users/viewing-history", headers=auth_headers)

    items = {item["content_id"]: item for item in response.json()}
    assert items[EPISODE_ID]["progress_percent"] == 75
    assert items[EPISODE_ID]["title"] == "Episode"
    assert items[SHORT_ID]["is_completed"] is True
    assert items[SHORT_ID]["progress_percent"] == 100


# ==================== APP ====================

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "x-request-id" in response.headers


def test_detailed_health_reports_cache_disabled(client):
    body = client.get("/health/detailed").json()

    assert body["database"] == "connected"
    assert body["redis"] == "disabled"


def test_unknown_route(client):
    response = client.get(f"{API}/nowhere")

    assert response.status_code == 404
    assert response.json() == {"detail": "Endpoint not found", "path": f"{API}/nowhere"}
