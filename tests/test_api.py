# tests/test_api.py

import pytest
from sqlmodel import Session

from conftest import PASSWORD, auth_headers
from inspector_booking.db import create_db_engine, get_session
from inspector_booking.main import app

INSPECTOR = "inspector@example.com"

WEEKDAY_WINDOWS = [
    {"day_of_week": d, "start_time": "09:00", "end_time": "17:00", "active": True} for d in range(1, 6)
]


def booking_json(booking_date="2030-01-07", booking_time="09:00", duration=60, **extra):
    return {
        "booking_date": booking_date,
        "booking_time": booking_time,
        "duration_minutes": duration,
        "client_name": "Pat Buyer",
        "client_email": "pat@example.com",
        "client_phone": "(555) 123-4567",
        "property_address": "123 Test St, Austin, TX 78701",
        **extra,
    }


@pytest.fixture
def configured(client, inspector_id):
    res = client.put(
        f"/inspectors/{inspector_id}/availability", json=WEEKDAY_WINDOWS, headers=auth_headers(INSPECTOR)
    )
    assert res.status_code == 200
    return inspector_id


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestAuth:
    def test_register_login_and_me(self, client):
        res = client.post("/users", json={"email": "new@example.com", "password": PASSWORD, "role": "inspector"})
        assert res.status_code == 201

        res = client.post("/auth/login", data={"username": "new@example.com", "password": PASSWORD})
        assert res.status_code == 200
        token = res.json()["access_token"]

        me = client.get("/me", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["email"] == "new@example.com"
        assert me["role"] == "inspector"

    def test_duplicate_email_rejected(self, client, inspector_id):
        res = client.post("/users", json={"email": INSPECTOR, "password": PASSWORD, "role": "inspector"})
        assert res.status_code == 409

    def test_wrong_password(self, client, inspector_id):
        res = client.post("/auth/login", data={"username": INSPECTOR, "password": "not-the-password"})
        assert res.status_code == 401

    def test_missing_token(self, client, inspector_id):
        assert client.get(f"/inspectors/{inspector_id}/availability").status_code == 401

    def test_anonymous_cannot_register_elevated_roles(self, client):
        for role in ("admin", "manager"):
            res = client.post("/users", json={"email": f"{role}2@example.com", "password": PASSWORD, "role": role})
            assert res.status_code == 403

    def test_inspector_cannot_create_admin(self, client, inspector_id):
        res = client.post(
            "/users",
            json={"email": "boss@example.com", "password": PASSWORD, "role": "admin"},
            headers=auth_headers(INSPECTOR),
        )
        assert res.status_code == 403

    def test_admin_creates_manager(self, client, admin_id):
        res = client.post(
            "/users",
            json={"email": "manager@example.com", "password": PASSWORD, "role": "manager"},
            headers=auth_headers("admin@example.com"),
        )

        assert res.status_code == 201
        assert res.json()["role"] == "manager"


class TestInspectorCalendar:
    def test_replace_and_read_availability(self, client, configured):
        res = client.get(f"/inspectors/{configured}/availability", headers=auth_headers(INSPECTOR))

        assert res.status_code == 200
        assert {(w["day_of_week"], w["start_time"], w["end_time"]) for w in res.json()} == {
            (d, "09:00:00", "17:00:00") for d in range(1, 6)
        }

    def test_other_inspector_forbidden(self, client, configured, other_inspector_id):
        res = client.get(f"/inspectors/{configured}/availability", headers=auth_headers("other@example.com"))

        assert res.status_code == 403
        assert res.json()["error"] == "Forbidden"

    def test_admin_may_act_for_inspector(self, client, configured, admin_id):
        res = client.get(f"/inspectors/{configured}/settings", headers=auth_headers("admin@example.com"))

        assert res.status_code == 200
        assert res.json()["max_daily_bookings"] == 4

    def test_day_of_week_out_of_range(self, client, inspector_id):
        bad = [{"day_of_week": 7, "start_time": "09:00", "end_time": "17:00"}]
        res = client.put(f"/inspectors/{inspector_id}/availability", json=bad, headers=auth_headers(INSPECTOR))
        assert res.status_code == 422

    def test_overlapping_windows_rejected(self, client, inspector_id):
        overlapping = [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
            {"day_of_week": 1, "start_time": "11:00", "end_time": "14:00"},
        ]
        res = client.put(
            f"/inspectors/{inspector_id}/availability", json=overlapping, headers=auth_headers(INSPECTOR)
        )

        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"

    def test_blackout_lifecycle(self, client, configured):
        url = f"/inspectors/{configured}/blackout-dates"
        res = client.post(
            url,
            json={"start_date": "2030-01-07", "end_date": "2030-01-08", "reason": "Vacation"},
            headers=auth_headers(INSPECTOR),
        )
        assert res.status_code == 201
        blackout_id = res.json()["id"]

        assert client.get(url, headers=auth_headers(INSPECTOR)).json()[0]["reason"] == "Vacation"
        assert client.delete(f"{url}/{blackout_id}", headers=auth_headers(INSPECTOR)).status_code == 204
        assert client.get(url, headers=auth_headers(INSPECTOR)).json() == []

    def test_settings_patch(self, client, configured):
        res = client.patch(
            f"/inspectors/{configured}/settings",
            json={"buffer_time_minutes": 15},
            headers=auth_headers(INSPECTOR),
        )

        assert res.status_code == 200
        assert res.json()["buffer_time_minutes"] == 15
        assert res.json()["advance_booking_days"] == 30


class TestSlotsAndBookings:
    def test_slots_after_buffered_booking(self, client, configured):
        headers = auth_headers(INSPECTOR)
        client.patch(f"/inspectors/{configured}/settings", json={"max_daily_bookings": 2}, headers=headers)
        res = client.post(f"/inspectors/{configured}/bookings", json=booking_json(duration=180), headers=headers)
        assert res.status_code == 201

        res = client.get(
            f"/inspectors/{configured}/slots",
            params={"start_date": "2030-01-07", "end_date": "2030-01-07", "duration": 180},
            headers=headers,
        )

        assert res.status_code == 200
        assert res.json()["slots"] == [{"date": "2030-01-07", "start": "12:30:00", "end": "15:30:00"}]

    def test_overlapping_staff_booking_conflicts(self, client, configured):
        headers = auth_headers(INSPECTOR)
        first = client.post(f"/inspectors/{configured}/bookings", json=booking_json(), headers=headers)
        assert first.status_code == 201
        assert first.json()["status"] == "confirmed"
        assert first.json()["public_token"] is None

        second = client.post(
            f"/inspectors/{configured}/bookings", json=booking_json(booking_time="09:30"), headers=headers
        )

        assert second.status_code == 409
        assert second.json()["error"] == "SlotUnavailable"

    def test_booking_beyond_horizon(self, client, configured):
        res = client.post(
            f"/inspectors/{configured}/bookings",
            json=booking_json(booking_date="2030-03-04"),
            headers=auth_headers(INSPECTOR),
        )

        assert res.status_code == 422
        assert res.json()["error"] == "OutsideAdvanceWindow"

    def test_status_changes(self, client, configured):
        headers = auth_headers(INSPECTOR)
        booking_id = client.post(
            f"/inspectors/{configured}/bookings", json=booking_json(), headers=headers
        ).json()["id"]
        url = f"/inspectors/{configured}/bookings/{booking_id}/status"

        res = client.patch(url, json={"status": "cancelled", "notes": "Client rescheduled"}, headers=headers)
        assert res.status_code == 200
        assert res.json()["status"] == "cancelled"

        res = client.patch(url, json={"status": "confirmed"}, headers=headers)
        assert res.status_code == 409
        assert res.json()["error"] == "InvalidTransition"

    def test_list_filtered_by_status(self, client, configured):
        headers = auth_headers(INSPECTOR)
        client.post(f"/inspectors/{configured}/bookings", json=booking_json(), headers=headers)
        client.post(
            f"/inspectors/{configured}/bookings", json=booking_json(booking_time="13:00", status="pending"),
            headers=headers,
        )

        res = client.get(f"/inspectors/{configured}/bookings", params={"status": "pending"}, headers=headers)

        assert [b["booking_time"] for b in res.json()] == ["13:00:00"]

    def test_unknown_booking(self, client, configured):
        res = client.get(f"/inspectors/{configured}/bookings/999", headers=auth_headers(INSPECTOR))
        assert res.status_code == 404


class TestPublicWidget:
    def test_summary_hides_blackout_reasons(self, client, configured):
        client.post(
            f"/inspectors/{configured}/blackout-dates",
            json={"start_date": "2030-01-07", "end_date": "2030-01-07", "reason": "Surgery"},
            headers=auth_headers(INSPECTOR),
        )

        body = client.get(f"/public/inspectors/{configured}/availability").json()

        assert body["blackout_dates"] == [{"start_date": "2030-01-07", "end_date": "2030-01-07", "recurring": False}]
        assert "Surgery" not in str(body)
        assert len(body["availability"]) == 5

    def test_disabled_widget(self, client, configured):
        client.patch(
            f"/inspectors/{configured}/settings",
            json={"embed_widget_enabled": False},
            headers=auth_headers(INSPECTOR),
        )

        for res in (
            client.get(f"/public/inspectors/{configured}/availability"),
            client.get(
                f"/public/inspectors/{configured}/slots",
                params={"start_date": "2030-01-07", "end_date": "2030-01-07"},
            ),
            client.post(f"/public/inspectors/{configured}/bookings", json=booking_json(duration=120)),
        ):
            assert res.status_code == 403
            assert res.json()["error"] == "WidgetDisabled"

        listed = client.get(f"/inspectors/{configured}/bookings", headers=auth_headers(INSPECTOR)).json()
        assert listed == []

    def test_public_slots_use_default_duration(self, client, configured):
        res = client.get(
            f"/public/inspectors/{configured}/slots",
            params={"start_date": "2030-01-07", "end_date": "2030-01-07"},
        )

        assert res.status_code == 200
        assert res.json()["duration_minutes"] == 120
        assert [s["start"] for s in res.json()["slots"]] == ["09:00:00", "11:00:00", "13:00:00", "15:00:00"]

    def test_public_booking_and_token_lookup(self, client, configured):
        res = client.post(f"/public/inspectors/{configured}/bookings", json=booking_json(duration=120))

        assert res.status_code == 201
        receipt = res.json()
        assert receipt["booking"]["status"] == "pending"
        token = receipt["public_token"]

        view = client.get(f"/public/bookings/{token}")
        assert view.status_code == 200
        assert view.json()["id"] == receipt["booking"]["id"]
        assert "client_email" not in view.json()

        res = client.patch(f"/public/bookings/{token}/status", json={"status": "cancelled"})
        assert res.status_code == 403
        assert res.json()["error"] == "Forbidden"
        assert client.get(f"/public/bookings/{token}").json()["status"] == "pending"

    def test_slot_shorter_than_bookable_minimum_rejected(self, client, configured):
        res = client.get(
            f"/public/inspectors/{configured}/slots",
            params={"start_date": "2030-01-07", "end_date": "2030-01-07", "duration": 30},
        )

        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"

    def test_unknown_token(self, client):
        assert client.get("/public/bookings/not-a-token").status_code == 404

    def test_unknown_inspector(self, client):
        res = client.get("/public/inspectors/999/availability")
        assert res.status_code == 404
        assert res.json()["error"] == "NotFound"


def test_storage_failure_is_retryable(client, tmp_path):
    broken = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}")

    def _broken_session():
        with Session(broken) as session:
            yield session

    app.dependency_overrides[get_session] = _broken_session
    res = client.get("/public/inspectors/1/availability")

    assert res.status_code == 503
    assert res.json()["error"] == "StorageUnavailable"
    assert res.json()["retryable"] is True
