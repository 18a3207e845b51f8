import csv
import io

import pytest


@pytest.mark.anyio
async def test_dashboard_stats(async_client, make_bike, admin_headers, readonly_headers):
    sold = await make_bike(frame_number="SOLD-1")
    serviced = await make_bike(frame_number="SERV-1")
    await make_bike(frame_number="STOCK-1")

    await async_client.post(f"/api/v1/bikes/{sold['id']}/checkout", headers=admin_headers)
    resp = await async_client.post(
        "/api/v1/work-orders",
        json={"bike_id": serviced["id"], "description": "Wheel true", "priority": "URGENT"},
        headers=admin_headers,
    )
    assert resp.status_code == 201

    resp = await async_client.get("/api/v1/dashboard/stats", headers=readonly_headers)

    assert resp.status_code == 200, resp.text
    stats = resp.json()
    assert stats["total_bikes"] == 3
    assert stats["bikes_in_stock"] == 1
    assert stats["bikes_in_service"] == 1
    assert stats["bikes_sold"] == 1
    assert stats["total_work_orders"] == 1
    assert stats["open_work_orders"] == 1
    assert stats["urgent_work_orders"] == 1
    assert [s["frame_number"] for s in stats["recent_sales"]] == ["SOLD-1"]
    assert stats["recent_sales"][0]["brand"] == "Giant"


@pytest.mark.anyio
async def test_export_bikes_csv(async_client, make_bike, admin_headers):
    await make_bike(frame_number="CSV-1", notes=None, color='dark "night" blue, matte')

    resp = await async_client.get("/api/v1/export/bikes.csv", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0][:3] == ["ID", "Frame Number", "Brand"]
    assert len(rows) == 2
    row = dict(zip(rows[0], rows[1]))
    assert row["Frame Number"] == "CSV-1"
    assert row["Color"] == 'dark "night" blue, matte'
    assert row["Selling Price"] == "1200.00"
    assert row["Sold At"] == ""


@pytest.mark.anyio
async def test_export_work_orders_csv(async_client, make_bike, admin_headers):
    bike = await make_bike(frame_number="CSV-WO")
    await async_client.post(
        "/api/v1/work-orders",
        json={"bike_id": bike["id"], "description": "Brakes, gears"},
        headers=admin_headers,
    )

    resp = await async_client.get("/api/v1/export/work-orders.csv", headers=admin_headers)

    rows = list(csv.reader(io.StringIO(resp.text)))
    row = dict(zip(rows[0], rows[1]))
    assert row["Bike Frame Number"] == "CSV-WO"
    assert row["Description"] == "Brakes, gears"
    assert row["Created By"] == "Test Admin"
    assert row["Assigned To"] == ""
    assert row["Completed At"] == ""


@pytest.mark.anyio
async def test_health(async_client):
    resp = await async_client.get("/health")
    assert resp.json() == {"status": "healthy"}
