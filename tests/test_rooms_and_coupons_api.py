from datetime import date

from app.schemas.coupon import CouponValidate


def test_room_availability(client, make_room, booking_body):
    room = make_room()
    client.post("/api/bookings", json=booking_body(room.id, "2024-01-10", "2024-01-12"))

    busy = client.get(f"/api/rooms/{room.id}/availability",
                      params={"checkIn": "2024-01-11", "checkOut": "2024-01-13"}).json()
    free = client.get(f"/api/rooms/{room.id}/availability",
                      params={"checkIn": "2024-01-12", "checkOut": "2024-01-13"}).json()

    assert busy["available"] is False
    assert free["available"] is True
    assert free["roomId"] == room.id


def test_room_availability_errors(client, make_room):
    room = make_room()

    assert client.get("/api/rooms/999/availability",
                      params={"checkIn": "2024-01-10", "checkOut": "2024-01-11"}).status_code == 404
    assert client.get(f"/api/rooms/{room.id}/availability",
                      params={"checkIn": "2024-01-10", "checkOut": "2024-01-10"}).status_code == 400


def test_validate_coupon(client, make_coupon):
    make_coupon(code="SAVE10", discount_type="percent", discount_value=10.0)

    res = client.post("/api/coupons/validate", json={"code": "save10", "totalAmount": 2000})

    assert res.status_code == 200
    assert res.json()["coupon"]["discountAmount"] == 200
    assert res.json()["coupon"]["code"] == "SAVE10"


def test_validate_coupon_reports_problems(client, make_coupon):
    make_coupon(code="USED", usage_limit=1, used_count=1)
    make_coupon(code="EXPIRED", valid_to=date(2020, 1, 1))

    assert client.post("/api/coupons/validate", json={"code": "NOPE", "totalAmount": 10}).status_code == 404

    used = client.post("/api/coupons/validate", json={"code": "USED", "totalAmount": 10})
    assert used.status_code == 400
    assert used.json()["error"] == "Coupon usage limit exceeded"

    expired = client.post("/api/coupons/validate", json={"code": "EXPIRED", "totalAmount": 10})
    assert expired.status_code == 400


def test_coupon_schema_uses_camel_case_keys():
    assert CouponValidate.model_validate({"code": "A", "totalAmount": 50}).total_amount == 50
    assert CouponValidate(code="A", total_amount=25).total_amount == 25
