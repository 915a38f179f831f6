"""
HTTP API tests.

Verifies:
- Authentication is required on every workflow endpoint
- The RFID -> box -> shipment flow end to end over JSON
- Domain errors map to their status codes with an {"error": ...} body
- Admin-only endpoints reject other roles
"""

from conftest import login_headers


SKU = "A252600201234"


class TestAuthEndpoints:
    def test_missing_token(self, client, db_session):
        resp = client.get("/api/box")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Authentication required"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/box", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid or expired token"

    def test_login_bad_password(self, client, operator_user):
        resp = client.post("/api/auth/login", json={"account": "operator", "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid credentials"}

    def test_login_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"account": "operator"})
        assert resp.status_code == 400
        assert "password" in resp.get_json()["error"]

    def test_disabled_account(self, client, inactive_user):
        resp = client.post("/api/auth/login", json={"account": "inactive", "password": "Password123!"})
        assert resp.status_code == 403

    def test_me_and_logout(self, client, operator_headers):
        resp = client.get("/api/auth/me", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.get_json()["code"] == "001"

        assert client.post("/api/auth/logout", headers=operator_headers).status_code == 200
        assert client.get("/api/auth/me", headers=operator_headers).status_code == 401

    def test_refresh(self, client, operator_user):
        login = client.post("/api/auth/login", json={"account": "operator", "password": "Password123!"})
        refresh_token = login.get_json()["tokens"]["refresh_token"]

        resp = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
        assert resp.status_code == 200
        new_access = resp.get_json()["tokens"]["access_token"]
        assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_access}"}).status_code == 200

        # Single use
        assert client.post("/api/auth/refresh", json={"refresh_token": refresh_token}).status_code == 401


class TestPackingFlow:
    def test_rfid_box_shipment_flow(self, client, operator_headers):
        resp = client.post("/api/rfid", json={"sku": SKU, "serial_no": "0001"}, headers=operator_headers)
        assert resp.status_code == 201
        rfid = resp.get_json()["rfid"]
        assert rfid == SKU + "0001"

        resp = client.post("/api/box", json={"code": "001"}, headers=operator_headers)
        assert resp.status_code == 201
        box_no = resp.get_json()["box_no"]
        assert box_no.startswith("B001")

        resp = client.post("/api/box/add-rfid", json={"box_no": box_no, "rfid": rfid}, headers=operator_headers)
        assert resp.status_code == 200
        assert resp.get_json()["product_rfids"] == [rfid]

        resp = client.post("/api/shipment", json={"note": "first"}, headers=operator_headers)
        assert resp.status_code == 201
        shipment_no = resp.get_json()["shipment_no"]
        assert shipment_no.startswith("001")
        assert len(shipment_no) == 16

        resp = client.post(
            "/api/shipment/add-box", json={"shipment_no": shipment_no, "box_no": box_no}, headers=operator_headers
        )
        assert resp.status_code == 200
        assert resp.get_json()["box_count"] == 1

        # Packed boxes are frozen
        resp = client.post("/api/box/remove-rfid", json={"box_no": box_no, "rfid": rfid}, headers=operator_headers)
        assert resp.status_code == 409

        resp = client.post("/api/shipment/ship", json={"shipment_no": shipment_no}, headers=operator_headers)
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "SHIPPED"

        resp = client.post("/api/shipment/ship", json={"shipment_no": shipment_no}, headers=operator_headers)
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Shipment is already shipped"

        resp = client.get(f"/api/rfid/{rfid}", headers=operator_headers)
        assert resp.get_json()["status"] == "shipped"

    def test_batch_rfids_reports_skips(self, client, operator_headers):
        resp = client.post(
            "/api/rfid/batch",
            json={"sku": SKU, "start_serial": 9998, "quantity": 5},
            headers=operator_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["total_created"] == 2
        assert body["failed"] == 3

    def test_batch_boxes_are_sequential(self, client, operator_headers):
        resp = client.post("/api/box/batch", json={"code": "002", "quantity": 3}, headers=operator_headers)
        assert resp.status_code == 201

        listing = client.get("/api/box?status=CREATED", headers=operator_headers).get_json()
        serials = sorted(int(item["box_no"][-5:]) for item in listing["items"])
        assert serials == [1, 2, 3]

    def test_format_errors_are_400(self, client, operator_headers):
        resp = client.post("/api/box", json={"code": "1"}, headers=operator_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Box code must be exactly 3 digits"

        resp = client.post("/api/rfid", json={"sku": "short", "serial_no": "0001"}, headers=operator_headers)
        assert resp.status_code == 400

    def test_unknown_box_is_404(self, client, operator_headers):
        resp = client.get("/api/box/B001202599999", headers=operator_headers)
        assert resp.status_code == 404

    def test_update_note(self, client, operator_headers):
        shipment_no = client.post("/api/shipment", json={}, headers=operator_headers).get_json()["shipment_no"]
        resp = client.patch(f"/api/shipment/{shipment_no}/note", json={"note": "fragile"}, headers=operator_headers)
        assert resp.status_code == 200
        assert resp.get_json()["note"] == "fragile"


class TestAdminEndpoints:
    def test_users_requires_admin(self, client, operator_headers):
        assert client.get("/api/users", headers=operator_headers).status_code == 403

    def test_admin_creates_user(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"account": "packer", "password": "Packer123!", "code": "P01", "name": "Packer"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        login_headers(client, "packer", "Packer123!")

    def test_weak_password_details(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"account": "packer", "password": "weak", "code": "P01", "name": "Packer"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert len(resp.get_json()["details"]) == 4

    def test_logs_admin_only(self, client, admin_headers, supplier_headers):
        assert client.get("/api/logs", headers=supplier_headers).status_code == 403

        resp = client.get("/api/logs?action=LOGIN_SUCCESS", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["pagination"]["total"] == 2

        assert client.get("/api/logs/summary", headers=admin_headers).status_code == 200


class TestSystemEndpoints:
    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["rfid_derivation"] == "concat"

    def test_version(self, client, db_session):
        assert client.get("/version").get_json()["api_version"] == "1.0.0"
