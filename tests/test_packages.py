from models import db
from models.booking import Booking
from models.package import Package


def test_public_listing_hides_inactive_and_sorts_by_price(client, make_package):
    make_package(name="Gold", total="450.00")
    make_package(name="Bronze", total="150.00")
    make_package(name="Retired", total="99.00", deposit="10.00", active=False)

    resp = client.get("/packages")
    assert resp.status_code == 200
    assert [p["name"] for p in resp.get_json()] == ["Bronze", "Gold"]
    assert resp.get_json()[0]["totalPrice"] == "150.00"


def test_create_package(client, admin_headers):
    resp = client.post("/packages", json={
        "name": "Newborn Session",
        "namePt": "Sessão Recém-nascido",
        "totalPrice": 350,
        "depositPrice": "50",
    }, headers=admin_headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["depositPrice"] == "50.00"
    assert body["active"] is True


def test_create_package_validation(client, admin_headers, make_package):
    make_package(name="Silver")
    cases = [
        ({"name": "X", "totalPrice": 100}, 400),
        ({"name": "X", "totalPrice": 100, "depositPrice": 150}, 400),
        ({"name": "X", "totalPrice": "abc", "depositPrice": 10}, 400),
        ({"name": "X", "totalPrice": -5, "depositPrice": 0}, 400),
        ({"name": "Silver", "totalPrice": 100, "depositPrice": 10}, 409),
    ]
    for payload, status in cases:
        assert client.post("/packages", json=payload, headers=admin_headers).status_code == status


def test_create_requires_admin(client):
    resp = client.post("/packages", json={"name": "X", "totalPrice": 1, "depositPrice": 1})
    assert resp.status_code == 401


def test_non_admin_token_is_forbidden(client, app):
    from security.tokens import issue_token
    headers = {"Authorization": f"Bearer {issue_token(2, 'someone@studio.test')}"}
    resp = client.post("/packages", json={"name": "X", "totalPrice": 1, "depositPrice": 1}, headers=headers)
    assert resp.status_code == 403


def test_update_package(client, admin_headers, make_package):
    pkg = make_package(total="300.00", deposit="50.00")

    resp = client.put(f"/packages/{pkg.id}", json={"depositPrice": 75, "descriptionPt": "Duas horas"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["depositPrice"] == "75.00"
    assert resp.get_json()["descriptionPt"] == "Duas horas"

    resp = client.put(f"/packages/{pkg.id}", json={"depositPrice": 400}, headers=admin_headers)
    assert resp.status_code == 400


def test_delete_deactivates_referenced_package(client, admin_headers, make_package):
    pkg = make_package()
    db.session.add(Booking(package_id=pkg.id, payment_type="DEPOSIT", amount_paid=50, status="paid",
                           payment_method="STRIPE", stripe_session_id="cs_1"))
    db.session.commit()

    assert client.delete(f"/packages/{pkg.id}?purge=true", headers=admin_headers).status_code == 204
    assert client.get("/packages").get_json() == []

    db.session.expire_all()
    booking = Booking.query.one()
    assert booking.package.name == pkg.name
    assert booking.package.active is False


def test_purge_removes_unreferenced_package(client, admin_headers, make_package):
    pkg = make_package()
    pkg_id = pkg.id
    assert client.delete(f"/packages/{pkg_id}?purge=true", headers=admin_headers).status_code == 204
    assert db.session.get(Package, pkg_id) is None


def test_get_single_package(client, make_package):
    pkg = make_package(active=False)
    assert client.get(f"/packages/{pkg.id}").status_code == 200
    assert client.get("/packages/unknown").status_code == 404
