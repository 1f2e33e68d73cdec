"""
Tests for the alert configuration and the alert feeds.
"""

from datetime import timedelta

import pytest

from conftest import at
from hermetia.database import ACTUATOR_ALERTS, NOTIFICATION_CONFIG, THRESHOLD_LOGS, utcnow
from hermetia.models import AlertKind, Condition, Severity
from hermetia.services import AlertService
from hermetia.services.alert_service import evaluate_reading, format_number, severity_for, threshold_message


VALID_CONFIG = {"temp_min": 26, "temp_max": 30, "humidity_min": 60, "humidity_max": 75}


def threshold_log(_id, logged_at, kind="temperature", value=31.2, threshold=30, condition="above", component_id=1):
    return {
        "_id": _id,
        "logged_at": logged_at,
        "type": kind,
        "value": value,
        "threshold": threshold,
        "condition": condition,
        "component_id": component_id,
        "incubator_id": 1,
    }


# =============================================================================
# FORMATTING
# =============================================================================

def test_format_number_drops_trailing_zero():
    assert format_number(27.0) == "27"
    assert format_number(27.5) == "27.5"
    assert format_number(30) == "30"


def test_threshold_message():
    assert threshold_message("temperature", "above", 31.2, 30) == (
        "temperature above threshold: 31.2°C (limit: 30°C)"
    )
    assert threshold_message("humidity", "below", 55, 60, capitalize=True) == (
        "Humidity below threshold: 55% (limit: 60%)"
    )


def test_severity():
    assert severity_for(31.2, 30) == Severity.CRITICAL
    assert severity_for(24.0, 26) == Severity.WARNING
    assert severity_for(30, 30) == Severity.WARNING


@pytest.mark.parametrize("kind, value, expected", [
    (AlertKind.TEMPERATURE, 31.0, (Condition.ABOVE, 30)),
    (AlertKind.TEMPERATURE, 25.5, (Condition.BELOW, 26)),
    (AlertKind.TEMPERATURE, 30.0, None),
    (AlertKind.HUMIDITY, 80.0, (Condition.ABOVE, 75)),
    (AlertKind.HUMIDITY, 59.9, (Condition.BELOW, 60)),
    (AlertKind.HUMIDITY, 60.0, None),
])
def test_evaluate_reading(kind, value, expected):
    assert evaluate_reading(kind, value, VALID_CONFIG) == expected


# =============================================================================
# CONFIGURATION
# =============================================================================

async def test_get_config_missing(client):
    response = await client.get("/api/alerts/config")

    assert response.status_code == 404


async def test_save_and_read_config(client, seeded_db):
    saved = await client.post("/api/alerts/config", json=VALID_CONFIG)

    assert saved.status_code == 200
    assert saved.json() == {**VALID_CONFIG, "id": 1, "incubator_id": 1}

    fetched = await client.get("/api/alerts/config")
    assert fetched.json() == saved.json()
    dashboard = await client.get("/api/dashboard/config")
    assert dashboard.json() == saved.json()

    # Saving again updates the singleton instead of adding a document
    await client.post("/api/alerts/config", json={**VALID_CONFIG, "temp_max": 32})
    assert await seeded_db[NOTIFICATION_CONFIG].count_documents({}) == 1
    assert (await client.get("/api/alerts/config")).json()["temp_max"] == 32


async def test_save_config_lists_every_error(client):
    response = await client.post(
        "/api/alerts/config",
        json={"temp_min": 36, "temp_max": 30, "humidity_min": 80, "humidity_max": 50},
    )

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert "Minimum temperature must be between 25°C and 35°C" in errors
    assert "Minimum temperature must be lower than the maximum" in errors
    assert "Maximum humidity must be between 60% and 80%" in errors
    assert "Minimum humidity must be lower than the maximum" in errors
    assert len(errors) == 4


async def test_save_config_missing_field(client):
    response = await client.post("/api/alerts/config", json={"temp_min": 26})

    assert response.status_code == 400


# =============================================================================
# FEEDS
# =============================================================================

async def test_active_alerts_merge_and_order(seeded_db):
    now = at(12)
    await seeded_db[THRESHOLD_LOGS].insert_many([
        threshold_log(1, at(11), value=31.2, threshold=30),
        threshold_log(2, at(9), kind="humidity", value=55, threshold=60, condition="below", component_id=2),
        threshold_log(3, at(10, day=17)),
        threshold_log(4, at(8), component_id=77),
    ])
    await seeded_db[ACTUATOR_ALERTS].insert_many([
        {"_id": 1, "recorded_at": at(10), "component_id": 5, "incubator_id": 1},
        {"_id": 2, "recorded_at": at(7), "component_id": 99, "incubator_id": 1},
    ])

    alerts = await AlertService(seeded_db).active_alerts(now=now)

    assert [alert.recorded_at for alert in alerts] == [
        "2026-10-19T11:00:00.000Z",
        "2026-10-19T10:00:00.000Z",
        "2026-10-19T09:00:00.000Z",
        "2026-10-19T08:00:00.000Z",
        "2026-10-19T07:00:00.000Z",
    ]

    temperature, heater, humidity, orphan_log, orphan_actuator = alerts
    assert temperature.source == "sensor"
    assert temperature.type == Severity.CRITICAL
    assert temperature.component_name == "DHT11 A"
    assert temperature.message == "temperature above threshold: 31.2°C (limit: 30°C)"

    assert heater.source == "actuator"
    assert heater.type == Severity.WARNING
    assert heater.message == "Activated Heater"

    assert humidity.type == Severity.WARNING
    assert humidity.message == "humidity below threshold: 55% (limit: 60%)"

    assert orphan_log.component_name == "Unknown component"
    assert orphan_actuator.component_name == "Unknown actuator"
    assert orphan_actuator.message == "Activated actuator"


async def test_active_alerts_endpoint(client, seeded_db):
    recent = utcnow().replace(microsecond=0) - timedelta(hours=1)
    await seeded_db[THRESHOLD_LOGS].insert_one(threshold_log(1, recent))
    await seeded_db[THRESHOLD_LOGS].insert_one(threshold_log(2, recent - timedelta(days=2)))

    response = await client.get("/api/alerts/active")

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert set(body[0]) == {"id", "recorded_at", "component_id", "component_name", "type", "message", "source"}


async def test_actuator_history(client, seeded_db):
    await seeded_db[ACTUATOR_ALERTS].insert_many([
        {"_id": 1, "recorded_at": at(8), "component_id": 3, "incubator_id": 1},
        {"_id": 2, "recorded_at": at(9), "component_id": 42, "incubator_id": 1},
        {"_id": 3, "recorded_at": at(10), "component_id": 4, "incubator_id": 2},
    ])

    response = await client.get("/api/alerts/history")

    assert response.status_code == 200
    assert response.json() == [
        {
            "id": "2",
            "recorded_at": "2026-10-19T09:00:00.000Z",
            "actuator_id": 42,
            "actuator_name": "Actuator 42",
            "type": "warning",
            "message": "Activation of Actuator 42",
        },
        {
            "id": "1",
            "recorded_at": "2026-10-19T08:00:00.000Z",
            "actuator_id": 3,
            "actuator_name": "Humidifier",
            "type": "warning",
            "message": "Activation of Humidifier",
        },
    ]


async def test_threshold_history(client, seeded_db):
    await seeded_db[THRESHOLD_LOGS].insert_many([
        threshold_log(1, at(8), kind="humidity", value=82, threshold=75, component_id=2),
        threshold_log(2, at(9), component_id=12),
    ])

    response = await client.get("/api/alerts/thresholds")

    assert response.status_code == 200
    newest, oldest = response.json()
    assert newest["component_name"] == "Component 12"
    assert newest["message"] == "Temperature above threshold: 31.2°C (limit: 30°C)"
    assert oldest["component_name"] == "DHT11 B"
    assert oldest["message"] == "Humidity above threshold: 82% (limit: 75%)"
    assert oldest["condition"] == "above"
    assert oldest["value"] == 82


async def test_notifications_are_capped_and_enriched(client, seeded_db):
    await seeded_db[THRESHOLD_LOGS].insert_many([
        threshold_log(i, at(0) + timedelta(minutes=i), component_id=1 if i % 2 else 50)
        for i in range(1, 61)
    ])

    response = await client.get("/api/alerts/notifications")

    assert response.status_code == 200
    body = response.json()
    assert len(body) == AlertService.NOTIFICATION_LIMIT
    assert body[0]["id"] == "60"
    assert body[0]["component_name"] == "Unknown component"
    assert body[0]["component_type"] == "unknown"
    assert body[1]["component_name"] == "DHT11 A"
    assert body[1]["component_type"] == "sensor"
    assert body[1]["incubator_id"] == 1
