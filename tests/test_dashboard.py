"""
Tests for the dashboard and components endpoints.
"""

from datetime import timedelta

from conftest import at
from hermetia.database import COMPONENTS, HUMIDITY_HISTORY, INCUBATOR_INFO, TEMPERATURE_HISTORY, utcnow
from hermetia.models import TimeRange
from hermetia.services import IncubatorService


# =============================================================================
# COMPONENTS
# =============================================================================

async def test_list_components(client):
    response = await client.get("/api/components")

    assert response.status_code == 200
    components = response.json()
    assert [component["id"] for component in components] == [1, 2, 3, 4, 5]
    assert components[3] == {"id": 4, "name": "Fan", "type": "actuator", "active": False}


async def test_update_component(client, seeded_db):
    response = await client.put("/api/components", json={"id": 4, "active": True})

    assert response.status_code == 200
    assert response.json()["active"] is True
    assert (await seeded_db[COMPONENTS].find_one({"_id": 4}))["active"] is True


async def test_update_missing_component(client):
    response = await client.put("/api/components", json={"id": 99, "active": True})

    assert response.status_code == 404


# =============================================================================
# SNAPSHOT
# =============================================================================

async def test_current(client):
    response = await client.get("/api/dashboard/current")

    assert response.status_code == 200
    assert response.json() == {
        "id": 1,
        "current_temperature": 27.5,
        "current_humidity": 70.0,
        "sensors": [1, 2],
        "actuators": [3, 4, 5],
    }


async def test_current_missing(client, seeded_db):
    await seeded_db[INCUBATOR_INFO].delete_many({})

    response = await client.get("/api/dashboard/current")

    assert response.status_code == 404


async def test_sensor_states(client, seeded_db):
    await seeded_db[COMPONENTS].delete_one({"_id": 2})
    # A sensor sitting where the heater should be doesn't count as the heater
    await seeded_db[COMPONENTS].update_one({"_id": 5}, {"$set": {"type": "sensor"}})

    response = await client.get("/api/dashboard/sensors")

    assert response.status_code == 200
    assert response.json() == {
        "dht11_a": True,
        "dht11_b": False,
        "humidifier": True,
        "fan": False,
        "heater": False,
    }


# =============================================================================
# HISTORY
# =============================================================================

async def insert_history(db, temperatures=(), humidities=()):
    for moment, value in temperatures:
        await db[TEMPERATURE_HISTORY].insert_one({"recorded_at": moment, "temperature": value, "component_id": 1})
    for moment, value in humidities:
        await db[HUMIDITY_HISTORY].insert_one({"recorded_at": moment, "humidity": value, "component_id": 1})


async def test_historical_window(seeded_db):
    now = at(12)
    await insert_history(
        seeded_db,
        temperatures=[(at(11, 10), 27.0), (at(11, 50), 28.0), (at(13), 40.0), (at(10, day=18), 26.0), (at(12, 30, day=18), 25.0)],
        humidities=[(at(11, 30), 70.0)],
    )
    service = IncubatorService(seeded_db)

    last_day = await service.historical(TimeRange.LAST_24_HOURS, now=now)
    last_week = await service.historical(TimeRange.LAST_7_DAYS, now=now)

    # 10:00 yesterday is outside the window, 13:00 today is in the future
    assert [point.time for point in last_day] == ["12:00", "11:00"]
    assert last_day[0].temperature == 25.0
    assert last_day[1].temperature == 27.5
    assert last_day[1].humidity == 70.0
    assert (last_day[1].temp_count, last_day[1].hum_count) == (2, 1)

    assert [point.time for point in last_week] == ["18/10 10h", "18/10 12h", "19/10 11h"]


async def test_historical_endpoint_defaults_to_24h(client, seeded_db):
    now = utcnow().replace(microsecond=0)
    await insert_history(
        seeded_db,
        temperatures=[(now - timedelta(hours=1), 27.0), (now - timedelta(days=3), 26.0)],
    )

    default = await client.get("/api/dashboard/historical")
    unknown = await client.get("/api/dashboard/historical?range=1y")
    week = await client.get("/api/dashboard/historical?range=7d")

    assert default.status_code == 200
    assert len(default.json()) == 1
    assert unknown.json() == default.json()
    assert len(week.json()) == 2
    assert set(default.json()[0]) == {"time", "temperature", "humidity", "timestamp", "temp_count", "hum_count"}


async def test_export_json(client, seeded_db):
    moment = utcnow().replace(microsecond=0) - timedelta(hours=2)
    await insert_history(
        seeded_db,
        temperatures=[(moment, 27.0), (moment - timedelta(days=2), 20.0)],
        humidities=[(moment, 71.0)],
    )

    response = await client.get("/api/dashboard/export?range=24h&format=json")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="hermetia_data_24h.json"'
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["temperature"] == 27.0
    assert rows[0]["humidity"] == 71.0
    assert rows[0]["time"] == moment.strftime("%d/%m/%Y, %H:%M:%S")


async def test_export_csv(client, seeded_db):
    moment = utcnow().replace(microsecond=0) - timedelta(days=3)
    await insert_history(seeded_db, temperatures=[(moment, 27.25)])

    response = await client.get("/api/dashboard/export?range=7d&format=csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="hermetia_data_7d.csv"'
    lines = response.text.split("\n")
    assert lines[0] == "Date,Time,Temperature (°C),Humidity (%)"
    assert lines[1] == f"{moment.strftime('%d/%m/%Y')},{moment.strftime('%H:%M:%S')},27.25,0"


async def test_export_unknown_format_is_json(client):
    response = await client.get("/api/dashboard/export?format=xml")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="hermetia_data_24h.json"'
    assert response.json() == []
