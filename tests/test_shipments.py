from logistics_pro.core.constants import NotificationType, Role, ShipmentStatus
from logistics_pro.models.complaint import Complaint
from logistics_pro.models.notification import Notification
from logistics_pro.models.shipment import QrScan, Shipment, ShipmentStatusHistory


async def _create(client, headers, **fields):
    payload = {"destination_address": "7 Market Street", "recipient_name": "Bob", "weight": "2.50"}
    payload.update(fields)
    return await client.post("/api/shipments", json=payload, headers=headers)


async def _set_status(client, headers, shipment_id, status, **fields):
    return await client.put(
        f"/api/shipments/{shipment_id}/status", json={"status": status, **fields}, headers=headers
    )


# ----- CREATE -----

async def test_client_creates_pending_shipment(client, client_user, auth):
    resp = await _create(client, auth(client_user))

    assert resp.status_code == 201
    shipment = resp.json()["shipment"]
    assert shipment["status"] == "pending"
    assert shipment["customer_id"] == client_user.id
    assert shipment["driver_id"] is None
    assert shipment["tracking_number"].startswith("TRK")
    assert shipment["qr_token"]


async def test_tracking_numbers_are_unique(client, client_user, auth):
    first = await _create(client, auth(client_user))
    second = await _create(client, auth(client_user))

    assert first.json()["shipment"]["tracking_number"] != second.json()["shipment"]["tracking_number"]


async def test_destination_is_required(client, client_user, auth, count_rows):
    resp = await client.post("/api/shipments", json={"description": "box"}, headers=auth(client_user))

    assert resp.status_code == 400
    assert "destination_address" in resp.json()["message"]
    assert await count_rows(Shipment) == 0


async def test_driver_cannot_create_shipment(client, driver, auth):
    resp = await _create(client, auth(driver))

    assert resp.status_code == 403


async def test_admin_creates_on_behalf_of_client(client, admin, client_user, driver, auth):
    resp = await _create(client, auth(admin), customer_id=client_user.id)
    assert resp.status_code == 201
    assert resp.json()["shipment"]["customer_id"] == client_user.id

    bad = await _create(client, auth(admin), customer_id=driver.id)
    assert bad.status_code == 400


# ----- READ -----

async def test_listing_is_scoped_by_role(client, make_user, make_shipment, client_user, driver, admin, auth):
    other_client = await make_user(Role.CLIENT)
    mine = await make_shipment(client_user, driver=driver, status=ShipmentStatus.ASSIGNED)
    theirs = await make_shipment(other_client)

    as_client = await client.get("/api/shipments", headers=auth(client_user))
    as_driver = await client.get("/api/shipments", headers=auth(driver))
    as_admin = await client.get("/api/shipments", headers=auth(admin))

    assert [s["id"] for s in as_client.json()["shipments"]] == [mine.id]
    assert [s["id"] for s in as_driver.json()["shipments"]] == [mine.id]
    assert {s["id"] for s in as_admin.json()["shipments"]} == {mine.id, theirs.id}
    assert as_client.json()["shipments"][0]["driver_name"] == "Dan Driver"


async def test_listing_filters_by_status(client, make_shipment, client_user, admin, auth):
    await make_shipment(client_user)
    delivered = await make_shipment(client_user, status=ShipmentStatus.DELIVERED)

    resp = await client.get("/api/shipments", params={"status": "delivered"}, headers=auth(admin))

    assert [s["id"] for s in resp.json()["shipments"]] == [delivered.id]


async def test_get_shipment_visibility(client, make_user, make_shipment, client_user, auth):
    shipment = await make_shipment(client_user)
    stranger = await make_user(Role.CLIENT)

    assert (await client.get(f"/api/shipments/{shipment.id}", headers=auth(client_user))).status_code == 200
    assert (await client.get(f"/api/shipments/{shipment.id}", headers=auth(stranger))).status_code == 403
    assert (await client.get("/api/shipments/does-not-exist", headers=auth(client_user))).status_code == 404


async def test_track_by_tracking_number(client, make_user, make_shipment, client_user, auth):
    shipment = await make_shipment(client_user)
    stranger = await make_user(Role.CLIENT)

    own = await client.get(f"/api/shipments/track/{shipment.tracking_number}", headers=auth(client_user))
    other = await client.get(f"/api/shipments/track/{shipment.tracking_number}", headers=auth(stranger))
    missing = await client.get("/api/shipments/track/TRK000", headers=auth(client_user))

    assert own.status_code == 200
    assert own.json()["shipment"]["id"] == shipment.id
    assert other.status_code == 403
    assert missing.status_code == 404


# ----- ASSIGN -----

async def test_assign_driver(client, make_shipment, client_user, driver, admin, auth, count_rows):
    shipment = await make_shipment(client_user)

    resp = await client.put(
        f"/api/shipments/{shipment.id}/assign", json={"driver_id": driver.id}, headers=auth(admin)
    )

    assert resp.status_code == 200
    body = resp.json()["shipment"]
    assert body["driver_id"] == driver.id
    assert body["status"] == "assigned"
    assert [h["status"] for h in body["history"]] == ["assigned"]
    assert await count_rows(
        Notification,
        Notification.user_id == driver.id,
        Notification.notification_type == NotificationType.SHIPMENT_ASSIGNED.value,
    ) == 1


async def test_assign_requires_active_approved_driver(client, make_user, make_shipment, client_user, admin, auth):
    shipment = await make_shipment(client_user)
    pending = await make_user(Role.DRIVER, approved=False)

    not_driver = await client.put(
        f"/api/shipments/{shipment.id}/assign", json={"driver_id": client_user.id}, headers=auth(admin)
    )
    unapproved = await client.put(
        f"/api/shipments/{shipment.id}/assign", json={"driver_id": pending.id}, headers=auth(admin)
    )

    assert not_driver.status_code == 400
    assert unapproved.status_code == 400


async def test_assign_is_admin_only(client, make_shipment, client_user, driver, auth):
    shipment = await make_shipment(client_user)

    resp = await client.put(
        f"/api/shipments/{shipment.id}/assign", json={"driver_id": driver.id}, headers=auth(driver)
    )

    assert resp.status_code == 403


# ----- STATUS -----

async def test_every_status_change_adds_one_history_row(client, make_shipment, client_user, driver, auth, count_rows):
    shipment = await make_shipment(client_user, driver=driver, status=ShipmentStatus.ASSIGNED)
    headers = auth(driver)

    for status in ("picked_up", "in_transit", "out_for_delivery"):
        resp = await _set_status(client, headers, shipment.id, status)
        assert resp.status_code == 200

    assert await count_rows(ShipmentStatusHistory, ShipmentStatusHistory.shipment_id == shipment.id) == 3
    assert resp.json()["shipment"]["status"] == "out_for_delivery"


async def test_delivered_captures_position(client, make_shipment, client_user, driver, auth, fetch):
    shipment = await make_shipment(client_user, driver=driver, status=ShipmentStatus.OUT_FOR_DELIVERY)

    resp = await _set_status(
        client, auth(driver), shipment.id, "delivered", latitude=24.7, longitude=46.6, notes="Left at door"
    )

    assert resp.status_code == 200
    body = resp.json()["shipment"]
    assert body["delivered_at"] is not None
    assert body["delivery_latitude"] == 24.7
    assert body["delivery_longitude"] == 46.6
    assert body["history"][-1]["notes"] == "Left at door"
    assert body["history"][-1]["changed_by_id"] == driver.id

    stored = await fetch(Shipment, shipment.id)
    assert stored.status == "delivered"


async def test_status_change_notifies_customer(client, make_shipment, client_user, driver, auth, count_rows):
    shipment = await make_shipment(client_user, driver=driver, status=ShipmentStatus.ASSIGNED)

    await _set_status(client, auth(driver), shipment.id, "picked_up")

    assert await count_rows(
        Notification,
        Notification.user_id == client_user.id,
        Notification.notification_type == NotificationType.SHIPMENT_STATUS.value,
    ) == 1


async def test_unassigned_driver_cannot_change_status(
    client, make_user, make_shipment, client_user, driver, auth, fetch, count_rows
):
    other = await make_user(Role.DRIVER)
    shipment = await make_shipment(client_user, driver=driver, status=ShipmentStatus.ASSIGNED)

    resp = await _set_status(client, auth(other), shipment.id, "picked_up")

    assert resp.status_code == 403
    assert (await fetch(Shipment, shipment.id)).status == "assigned"
    assert await count_rows(ShipmentStatusHistory) == 0


async def test_client_cannot_change_status(client, make_shipment, client_user, auth):
    shipment = await make_shipment(client_user)

    resp = await _set_status(client, auth(client_user), shipment.id, "cancelled")

    assert resp.status_code == 403


async def test_unknown_status_is_rejected(client, make_shipment, client_user, admin, auth):
    shipment = await make_shipment(client_user)

    resp = await _set_status(client, auth(admin), shipment.id, "lost")

    assert resp.status_code == 400


async def test_out_of_order_status_accepted_by_default(client, make_shipment, client_user, admin, auth):
    shipment = await make_shipment(client_user, status=ShipmentStatus.DELIVERED)

    resp = await _set_status(client, auth(admin), shipment.id, "in_transit")

    assert resp.status_code == 200
    assert resp.json()["shipment"]["status"] == "in_transit"


async def test_strict_mode_rejects_out_of_order_status(strict_client, make_shipment, client_user, admin, auth, count_rows):
    shipment = await make_shipment(client_user, status=ShipmentStatus.DELIVERED)

    resp = await _set_status(strict_client, auth(admin), shipment.id, "in_transit")

    assert resp.status_code == 409
    assert resp.json()["current_status"] == "delivered"
    assert await count_rows(ShipmentStatusHistory) == 0


# ----- DELETE -----

async def test_delete_shipment_removes_dependents(
    client, make_shipment, client_user, driver, admin, auth, count_rows, fetch
):
    shipment = await make_shipment(client_user, driver=driver, status=ShipmentStatus.ASSIGNED)
    await client.post(
        "/api/qr/scan",
        json={"shipment_id": shipment.id, "scan_type": "pickup", "latitude": 24.7, "longitude": 46.6},
        headers=auth(driver),
    )
    complaint = await client.post(
        "/api/complaints",
        json={"title": "Late", "description": "Still waiting", "shipment_id": shipment.id},
        headers=auth(client_user),
    )

    resp = await client.delete(f"/api/shipments/{shipment.id}", headers=auth(admin))

    assert resp.status_code == 200
    assert await fetch(Shipment, shipment.id) is None
    assert await count_rows(ShipmentStatusHistory) == 0
    assert await count_rows(QrScan) == 0
    kept = await fetch(Complaint, complaint.json()["complaint"]["id"])
    assert kept is not None
    assert kept.shipment_id is None


async def test_delete_shipment_is_admin_only(client, make_shipment, client_user, auth):
    shipment = await make_shipment(client_user)

    resp = await client.delete(f"/api/shipments/{shipment.id}", headers=auth(client_user))

    assert resp.status_code == 403
