from logistics_pro.core.constants import NotificationType, Role, ShipmentStatus
from logistics_pro.crud.user import count_live_sessions
from logistics_pro.models.complaint import Complaint
from logistics_pro.models.location import DriverLocation
from logistics_pro.models.notification import Notification
from logistics_pro.models.shipment import Shipment
from logistics_pro.models.user import User

from tests.conftest import PASSWORD


async def _login(client, user, password=PASSWORD):
    return await client.post("/api/auth/login", json={"phone": user.phone, "password": password})


# ----- USERS -----

async def test_user_listing(client, admin, client_user, driver, auth):
    everyone = await client.get("/api/admin/users", headers=auth(admin))
    drivers = await client.get("/api/admin/users", params={"role": "driver"}, headers=auth(admin))

    assert everyone.json()["count"] == 3
    assert [u["id"] for u in drivers.json()["users"]] == [driver.id]


async def test_admin_endpoints_reject_other_roles(client, client_user, driver, auth):
    assert (await client.get("/api/admin/users", headers=auth(client_user))).status_code == 403
    assert (await client.get("/api/admin/dashboard", headers=auth(driver))).status_code == 403
    assert (await client.get("/api/admin/dashboard")).status_code == 401


async def test_pending_users(client, admin, make_user, auth):
    pending = await make_user(Role.DRIVER, approved=False)
    await make_user(Role.DRIVER)

    resp = await client.get("/api/admin/pending-users", headers=auth(admin))

    assert [u["id"] for u in resp.json()["users"]] == [pending.id]


async def test_approve_driver(client, admin, make_user, auth, count_rows):
    pending = await make_user(Role.DRIVER, approved=False)
    assert (await _login(client, pending)).status_code == 403

    resp = await client.put(f"/api/admin/users/{pending.id}/approve", json={}, headers=auth(admin))

    assert resp.status_code == 200
    assert resp.json()["user"]["is_approved"] is True
    assert (await _login(client, pending)).status_code == 200
    assert await count_rows(
        Notification,
        Notification.user_id == pending.id,
        Notification.notification_type == NotificationType.ACCOUNT.value,
    ) == 1


async def test_approve_can_change_role(client, super_admin, make_user, auth):
    pending = await make_user(Role.DRIVER, approved=False)

    resp = await client.put(
        f"/api/admin/users/{pending.id}/approve", json={"role": "admin"}, headers=auth(super_admin)
    )

    assert resp.json()["user"]["role"] == "admin"


async def test_plain_admin_cannot_grant_admin_roles(client, admin, make_user, auth, fetch):
    pending = await make_user(Role.DRIVER, approved=False)

    promote_self = await client.put(
        f"/api/admin/users/{admin.id}/approve", json={"role": "super_admin"}, headers=auth(admin)
    )
    promote_other = await client.put(
        f"/api/admin/users/{pending.id}/approve", json={"role": "admin"}, headers=auth(admin)
    )

    assert promote_self.status_code == 403
    assert promote_other.status_code == 403
    assert (await fetch(User, admin.id)).role == "admin"
    stored = await fetch(User, pending.id)
    assert stored.role == "driver"
    assert stored.is_approved is False


async def test_plain_admin_cannot_manage_admin_accounts(client, admin, super_admin, make_user, auth, fetch):
    peer = await make_user(Role.ADMIN)

    disable_super = await client.put(
        f"/api/admin/users/{super_admin.id}/disable", json={"is_active": False}, headers=auth(admin)
    )
    disable_peer = await client.put(
        f"/api/admin/users/{peer.id}/disable", json={"is_active": False}, headers=auth(admin)
    )
    delete_super = await client.delete(f"/api/admin/users/{super_admin.id}", headers=auth(admin))

    assert disable_super.status_code == 403
    assert disable_peer.status_code == 403
    assert delete_super.status_code == 403
    assert (await fetch(User, super_admin.id)).is_active is True
    assert (await fetch(User, peer.id)).is_active is True


async def test_super_admin_manages_admin_accounts(client, super_admin, make_user, auth, fetch):
    peer = await make_user(Role.ADMIN)

    disabled = await client.put(
        f"/api/admin/users/{peer.id}/disable", json={"is_active": False}, headers=auth(super_admin)
    )
    deleted = await client.delete(f"/api/admin/users/{peer.id}", headers=auth(super_admin))

    assert disabled.status_code == 200
    assert deleted.status_code == 200
    assert await fetch(User, peer.id) is None


async def test_withdrawing_approval_revokes_sessions(client, admin, driver, auth, database):
    await _login(client, driver)

    resp = await client.put(
        f"/api/admin/users/{driver.id}/approve", json={"approved": False}, headers=auth(admin)
    )

    assert resp.json()["user"]["is_approved"] is False
    async with database.session_factory() as session:
        assert await count_live_sessions(session, driver.id) == 0
    assert (await _login(client, driver)).json()["pendingApproval"] is True


async def test_disable_and_enable(client, admin, driver, auth, database):
    await _login(client, driver)

    disabled = await client.put(
        f"/api/admin/users/{driver.id}/disable", json={"is_active": False}, headers=auth(admin)
    )
    assert disabled.json()["user"]["is_active"] is False
    async with database.session_factory() as session:
        assert await count_live_sessions(session, driver.id) == 0
    assert (await _login(client, driver)).json()["accountDisabled"] is True
    me = await client.get("/api/auth/me", headers=auth(driver))
    assert me.json()["accountDisabled"] is True

    enabled = await client.put(
        f"/api/admin/users/{driver.id}/disable", json={"is_active": True}, headers=auth(admin)
    )
    assert enabled.json()["user"]["is_active"] is True
    assert (await _login(client, driver)).status_code == 200


async def test_admin_cannot_disable_self(client, admin, auth):
    resp = await client.put(
        f"/api/admin/users/{admin.id}/disable", json={"is_active": False}, headers=auth(admin)
    )

    assert resp.status_code == 400


async def test_delete_driver_clears_references(
    client, admin, driver, client_user, make_shipment, auth, fetch, count_rows
):
    shipment = await make_shipment(client_user, driver=driver, status=ShipmentStatus.ASSIGNED)
    await client.post("/api/location/update", json={"latitude": 1.0, "longitude": 2.0}, headers=auth(driver))
    await client.post("/api/location/gps-disabled", json={}, headers=auth(driver))
    for author in (driver, client_user):
        await client.post(
            "/api/complaints", json={"title": "Damaged", "description": "Box crushed"}, headers=auth(author)
        )

    resp = await client.delete(f"/api/admin/users/{driver.id}", headers=auth(admin))

    assert resp.status_code == 200
    assert await fetch(User, driver.id) is None
    assert await count_rows(DriverLocation) == 0
    assert (await fetch(Shipment, shipment.id)).driver_id is None
    assert await count_rows(Complaint, Complaint.user_id == driver.id) == 0
    assert await count_rows(Complaint, Complaint.user_id == client_user.id) == 1


async def test_cannot_delete_customer_with_shipments(client, admin, client_user, make_shipment, auth, fetch):
    await make_shipment(client_user)

    resp = await client.delete(f"/api/admin/users/{client_user.id}", headers=auth(admin))

    assert resp.status_code == 409
    assert await fetch(User, client_user.id) is not None


async def test_delete_guards(client, admin, auth):
    assert (await client.delete(f"/api/admin/users/{admin.id}", headers=auth(admin))).status_code == 400
    assert (await client.delete("/api/admin/users/missing", headers=auth(admin))).status_code == 404


async def test_create_user(client, admin, auth):
    resp = await client.post(
        "/api/admin/create-user",
        json={"phone": "0522222222", "password": PASSWORD, "name": "Hired Driver", "role": "driver"},
        headers=auth(admin),
    )

    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["role"] == "driver"
    assert user["is_approved"] is True
    assert (await client.post(
        "/api/auth/login", json={"phone": "0522222222", "password": PASSWORD}
    )).status_code == 200


async def test_create_user_duplicate_phone(client, admin, client_user, auth):
    resp = await client.post(
        "/api/admin/create-user",
        json={"phone": client_user.phone, "password": PASSWORD, "name": "Dup"},
        headers=auth(admin),
    )

    assert resp.status_code == 409


async def test_only_super_admin_creates_admins(client, admin, super_admin, auth):
    payload = {"phone": "0533333333", "password": PASSWORD, "name": "New Admin", "role": "admin"}

    denied = await client.post("/api/admin/create-user", json=payload, headers=auth(admin))
    allowed = await client.post("/api/admin/create-user", json=payload, headers=auth(super_admin))

    assert denied.status_code == 403
    assert allowed.status_code == 201
    assert allowed.json()["user"]["role"] == "admin"


# ----- DASHBOARD -----

async def test_dashboard_stats(client, admin, client_user, driver, make_user, make_shipment, auth):
    await make_user(Role.DRIVER, approved=False)
    await make_user(Role.DRIVER, active=False)
    await make_user(Role.CLIENT)
    for status in ShipmentStatus:
        await make_shipment(client_user, driver=driver, status=status)
    await client.post(
        "/api/complaints", json={"title": "Late", "description": "Where is it"}, headers=auth(client_user)
    )
    await client.post("/api/location/update", json={"latitude": 1.0, "longitude": 2.0}, headers=auth(driver))

    resp = await client.get("/api/admin/dashboard", headers=auth(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"] == {
        "active_drivers": 1,
        "total_clients": 2,
        "active_shipments": 5,
        "open_complaints": 1,
        "pending_approvals": 1,
    }
    assert len(body["recent_shipments"]) == len(ShipmentStatus)
    assert body["recent_shipments"][0]["customer_name"] == "Alice Client"
    assert [d["driver_id"] for d in body["drivers_online"]] == [driver.id]


# ----- BOOTSTRAP -----

async def test_super_admin_seed_is_idempotent(settings, database, count_rows):
    from logistics_pro.main import seed_super_admin

    seeded = settings.model_copy(update={"super_admin_phone": "0500000099", "super_admin_password": PASSWORD})
    await seed_super_admin(database, seeded)
    await seed_super_admin(database, seeded)

    assert await count_rows(User, User.role == Role.SUPER_ADMIN.value) == 1
