"""
Discount code administration.
"""

from conftest import SHIPPING_ADDRESS, auth_headers

ADMIN = "/api/v1/admin/discounts"

async def create_code(client, admin, **overrides):
    body = {"code": "sprng", "discount_type": "percentage", "discount_value": 15, "usage_limit": 3}
    body.update(overrides)
    return await client.post(ADMIN, json=body, headers=auth_headers(admin))

class TestCreate:
    async def test_code_upper_cased(self, client, admin):
        response = await create_code(client, admin)
        assert response.status_code == 201
        body = response.json()
        assert body["code"] == "SPRNG"
        assert body["remaining_uses"] == 3
        assert body["is_active"] is True
        assert body["created_by"] == str(admin.id)

    async def test_duplicate(self, client, admin):
        await create_code(client, admin)
        response = await create_code(client, admin)
        assert response.status_code == 409

    async def test_bad_format(self, client, admin):
        response = await create_code(client, admin, code="TOO-LONG")
        assert response.status_code == 400

    async def test_percentage_out_of_range(self, client, admin):
        response = await create_code(client, admin, discount_value=120)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Percentage discount must be between 1 and 100"

    async def test_usage_limit_out_of_range(self, client, admin):
        response = await create_code(client, admin, usage_limit=11)
        assert response.status_code == 400

    async def test_customer_forbidden(self, client, user):
        response = await create_code(client, user)
        assert response.status_code == 403

class TestManage:
    async def test_list_and_toggle(self, client, admin):
        await create_code(client, admin)
        headers = auth_headers(admin)

        listed = await client.get(ADMIN, headers=headers)
        assert listed.json()["total"] == 1

        toggled = await client.patch(f"{ADMIN}/SPRNG/toggle", headers=headers)
        assert toggled.json()["is_active"] is False

        active = await client.get(ADMIN, params={"is_active": True}, headers=headers)
        assert active.json()["total"] == 0

    async def test_delete_unused(self, client, admin):
        await create_code(client, admin)
        response = await client.delete(f"{ADMIN}/sprng", headers=auth_headers(admin))
        assert response.json() == {"code": "SPRNG", "deleted": True, "deactivated": False}

        missing = await client.get(f"{ADMIN}/SPRNG", headers=auth_headers(admin))
        assert missing.status_code == 404

    async def test_used_code_only_deactivated(self, client, admin, variant):
        await create_code(client, admin)
        await client.post("/api/v1/cart/items", json={"variant_id": str(variant.id), "quantity": 1})
        placed = await client.post(
            "/api/v1/orders",
            json={
                "shipping_address": SHIPPING_ADDRESS,
                "payment_method": "paypal",
                "email": "guest@example.com",
                "discount_code": "SPRNG",
            }
        )
        assert placed.status_code == 201

        detail = await client.get(f"{ADMIN}/SPRNG", headers=auth_headers(admin))
        assert detail.json()["discount"]["used_count"] == 1
        assert [order["id"] for order in detail.json()["orders"]] == [placed.json()["id"]]

        response = await client.delete(f"{ADMIN}/SPRNG", headers=auth_headers(admin))
        assert response.json() == {"code": "SPRNG", "deleted": False, "deactivated": True}
