"""
Tests for the device ingestion endpoints.
"""

import pytest

from conftest import DEVICE_TOKEN, at
from hermetia.database import (
    ACTUATOR_ALERTS,
    COMPONENTS,
    HUMIDITY_HISTORY,
    INCUBATOR_INFO,
    NOTIFICATION_CONFIG,
    TEMPERATURE_HISTORY,
    THRESHOLD_LOGS,
)

HEADERS = {"device-token": DEVICE_TOKEN}


@pytest.fixture
async def thresholds(seeded_db):
    await seeded_db[NOTIFICATION_CONFIG].insert_one({
        "_id": 1, "temp_min": 26, "temp_max": 30, "humidity_min": 60, "humidity_max": 75, "incubator_id": 1,
    })


# =============================================================================
# AUTH
# =============================================================================

async def test_missing_token(client):
    response = await client.post("/api/device/readings", json={"component_id": 1, "temperature": 27})

    assert response.status_code == 401


async def test_wrong_token(client):
    response = await client.post(
        "/api/device/actuator-events",
        json={"component_id": 3},
        headers={"device-token": "nope"},
    )

    assert response.status_code == 401


# =============================================================================
# READINGS
# =============================================================================

async def test_reading_is_stored_and_updates_snapshot(client, seeded_db, email_service):
    response = await client.post(
        "/api/device/readings",
        json={"component_id": 1, "temperature": 28.4, "humidity": 66.0, "recorded_at": "2026-10-19T10:00:00Z"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["recorded_at"] == "2026-10-19T10:00:00.000Z"
    assert body["alerts"] == []
    assert body["recovered"] is False

    temperature = await seeded_db[TEMPERATURE_HISTORY].find_one({})
    assert temperature["recorded_at"] == at(10)
    assert temperature["temperature"] == 28.4
    assert temperature["component_id"] == 1
    assert (await seeded_db[HUMIDITY_HISTORY].find_one({}))["humidity"] == 66.0

    info = await seeded_db[INCUBATOR_INFO].find_one({"_id": 1})
    assert info["current_temperature"] == 28.4
    assert info["current_humidity"] == 66.0
    assert info["sensors"] == [1, 2]

    email_service.send_threshold_alert.assert_not_called()


async def test_reading_only_humidity(client, seeded_db):
    response = await client.post(
        "/api/device/readings", json={"component_id": 2, "humidity": 71.0}, headers=HEADERS
    )

    assert response.status_code == 200
    assert await seeded_db[TEMPERATURE_HISTORY].count_documents({}) == 0
    info = await seeded_db[INCUBATOR_INFO].find_one({"_id": 1})
    assert info["current_temperature"] == 27.5
    assert info["current_humidity"] == 71.0


async def test_reading_creates_snapshot_when_missing(client, seeded_db):
    await seeded_db[INCUBATOR_INFO].delete_many({})

    response = await client.post(
        "/api/device/readings", json={"component_id": 1, "temperature": 27.0}, headers=HEADERS
    )

    assert response.status_code == 200
    info = await seeded_db[INCUBATOR_INFO].find_one({"_id": 1})
    assert info["current_temperature"] == 27.0
    assert info["current_humidity"] == 0.0


async def test_reading_needs_a_value(client):
    response = await client.post("/api/device/readings", json={"component_id": 1}, headers=HEADERS)

    assert response.status_code == 400


async def test_reading_unknown_component(client):
    response = await client.post(
        "/api/device/readings", json={"component_id": 99, "temperature": 27.0}, headers=HEADERS
    )

    assert response.status_code == 404


async def test_reading_from_actuator_is_rejected(client):
    response = await client.post(
        "/api/device/readings", json={"component_id": 5, "temperature": 27.0}, headers=HEADERS
    )

    assert response.status_code == 400


async def test_reading_outside_thresholds_is_logged(client, seeded_db, email_service, thresholds):
    response = await client.post(
        "/api/device/readings",
        json={"component_id": 1, "temperature": 31.5, "humidity": 55.0, "recorded_at": "2026-10-19T10:00:00"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    alerts = response.json()["alerts"]
    assert [(alert["type"], alert["condition"], alert["threshold"]) for alert in alerts] == [
        ("temperature", "above", 30),
        ("humidity", "below", 60),
    ]
    assert alerts[0]["message"] == "Temperature above threshold: 31.5°C (limit: 30°C)"
    assert alerts[0]["component_name"] == "DHT11 A"

    logs = await seeded_db[THRESHOLD_LOGS].find({}).to_list(length=None)
    assert len(logs) == 2
    assert {log["condition"] for log in logs} == {"above", "below"}
    assert all(log["logged_at"] == at(10) and log["incubator_id"] == 1 for log in logs)

    assert email_service.send_threshold_alert.call_count == 2


async def test_reading_on_the_threshold_is_not_an_alert(client, seeded_db, thresholds):
    response = await client.post(
        "/api/device/readings", json={"component_id": 1, "temperature": 30.0, "humidity": 60.0}, headers=HEADERS
    )

    assert response.json()["alerts"] == []
    assert await seeded_db[THRESHOLD_LOGS].count_documents({}) == 0


async def test_reading_brings_back_sensor_taken_offline(client, seeded_db, watchdog, email_service):
    assert await watchdog.check_now(now=at(12)) == [1, 2]

    response = await client.post(
        "/api/device/readings", json={"component_id": 1, "temperature": 27.0}, headers=HEADERS
    )

    assert response.json()["recovered"] is True
    assert (await seeded_db[COMPONENTS].find_one({"_id": 1}))["active"] is True
    assert (await seeded_db[COMPONENTS].find_one({"_id": 2}))["active"] is False
    email_service.send_sensor_recovery_alert.assert_called_once_with(component_id=1, component_name="DHT11 A")


async def test_manual_switch_off_wins_over_watchdog(client, seeded_db, watchdog, email_service):
    await watchdog.check_now(now=at(12))
    assert (await client.put("/api/components", json={"id": 1, "active": True})).status_code == 200
    assert (await client.put("/api/components", json={"id": 1, "active": False})).status_code == 200

    response = await client.post(
        "/api/device/readings", json={"component_id": 1, "temperature": 27.0}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["recovered"] is False
    assert (await seeded_db[COMPONENTS].find_one({"_id": 1}))["active"] is False
    email_service.send_sensor_recovery_alert.assert_not_called()


async def test_confirming_offline_sensor_by_hand_keeps_it_off(client, seeded_db, watchdog, email_service):
    await watchdog.check_now(now=at(12))
    await client.put("/api/components", json={"id": 2, "active": False})

    response = await client.post(
        "/api/device/readings", json={"component_id": 2, "humidity": 70.0}, headers=HEADERS
    )

    assert response.json()["recovered"] is False
    assert (await seeded_db[COMPONENTS].find_one({"_id": 2}))["active"] is False
    assert not await watchdog.is_offline(2)


# =============================================================================
# ACTUATOR EVENTS
# =============================================================================

async def test_actuator_event(client, seeded_db):
    first = await client.post(
        "/api/device/actuator-events",
        json={"component_id": 5, "recorded_at": "2026-10-19T09:30:00Z"},
        headers=HEADERS,
    )
    second = await client.post(
        "/api/device/actuator-events", json={"component_id": 3, "recorded_at": "2026-10-19T11:00:00Z"}, headers=HEADERS
    )

    assert first.status_code == 200
    assert first.json()["alert"] == {
        "id": "1",
        "recorded_at": "2026-10-19T09:30:00.000Z",
        "actuator_id": 5,
        "actuator_name": "Heater",
        "type": "warning",
        "message": "Activation of Heater",
    }
    assert second.json()["alert"]["id"] == "2"

    stored = await seeded_db[ACTUATOR_ALERTS].find_one({"_id": 1})
    assert stored == {"_id": 1, "recorded_at": at(9, 30), "component_id": 5, "incubator_id": 1}

    history = await client.get("/api/alerts/history")
    assert [alert["actuator_name"] for alert in history.json()] == ["Humidifier", "Heater"]


async def test_actuator_event_from_sensor_is_rejected(client):
    response = await client.post("/api/device/actuator-events", json={"component_id": 1}, headers=HEADERS)

    assert response.status_code == 400


async def test_actuator_event_unknown_component(client):
    response = await client.post("/api/device/actuator-events", json={"component_id": 99}, headers=HEADERS)

    assert response.status_code == 404
