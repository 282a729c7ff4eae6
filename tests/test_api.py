"""
HTTP API tests

PURPOSE:
    Exercise the FastAPI app the way the frontend does: bearer tokens,
    camelCase bodies and the ``{"message", "code"}`` error envelope.

TEST COVERAGE:
    - Signup, login and the admin bootstrap
    - Ownership and admin-only checks
    - Order -> ship -> delivery OTP -> Delivered over HTTP
    - Cart deltas, wishlist, reviews and catalog lookups
    - Payment order creation and signature verification
    - Chatbot identity checks
"""

import re
import unittest
from unittest.mock import Mock

from fastapi.testclient import TestClient

from storefront.app.main import create_app
from storefront.data.database import build_engine
from storefront.services.payments import RazorpayGateway, signature_for

from tests.fakes import FakeClock, FakeCompletionClient, RecordingTransport, TestConfig

OTP_RE = re.compile(r"delivery OTP is (\d{6})")


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.transport = RecordingTransport()
        self.clock = FakeClock()
        self.http = Mock()
        self.http.post.return_value.json.return_value = {"id": "order_rzp", "amount": 1000, "currency": "INR"}
        gateway = RazorpayGateway(TestConfig.RAZORPAY_KEY_ID, TestConfig.RAZORPAY_KEY_SECRET, session=self.http)
        app = create_app(TestConfig, engine=build_engine("sqlite://"), mail_transport=self.transport,
                         completion_client=FakeCompletionClient(), payment_gateway=gateway, clock=self.clock)
        self.client = TestClient(app)

        self.user_id, self.user_token = self.signup("dana", "dana@example.com")
        self.admin_token = self.make_admin()

    def signup(self, username, email, password="dana-password"):
        response = self.client.post("/api/users/signup",
                                    json={"username": username, "email": email, "password": password})
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        return body["user"]["id"], body["token"]

    def make_admin(self):
        response = self.client.post("/api/users/admin/create", json={
            "secretKey": "let-me-in", "username": "root", "email": "root@example.com", "password": "root-password"})
        self.assertEqual(response.status_code, 201, response.text)
        login = self.client.post("/api/users/login", json={"email": "root@example.com", "password": "root-password"})
        self.assertEqual(login.status_code, 200)
        return login.json()["token"]

    @staticmethod
    def auth(token):
        return {"Authorization": f"Bearer {token}"}

    def place_order(self):
        response = self.client.post("/api/orders/add", headers=self.auth(self.user_token), json={
            "items": [{"productId": "p1", "title": "Wool Sock", "quantity": 2, "price": 6.5},
                      {"productId": "p2", "title": "Canvas Tote", "quantity": 1, "price": 24.0}],
            "totalAmount": 37.0,
            "shippingAddress": "12 Elm Road, Leeds",
        })
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["order"]

    def sent_otps(self):
        return [OTP_RE.search(m["text"]).group(1) for m in self.transport.sent if OTP_RE.search(m["text"])]


class TestAccountsApi(ApiTestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.json()["status"], "healthy")

    def test_login_failure_and_missing_token(self):
        response = self.client.post("/api/users/login", json={"email": "dana@example.com", "password": "nope"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "InvalidCredentials")
        response = self.client.get(f"/api/users/{self.user_id}")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "MissingToken")

    def test_profile_is_owner_or_admin(self):
        other_id, other_token = self.signup("eli", "eli@example.com")
        self.assertEqual(self.client.get(f"/api/users/{self.user_id}", headers=self.auth(other_token)).status_code, 403)
        self.assertEqual(self.client.get(f"/api/users/{self.user_id}", headers=self.auth(self.admin_token)).status_code,
                         200)
        response = self.client.put(f"/api/users/{self.user_id}/edit-profile", headers=self.auth(self.user_token),
                                   json={"username": "dana2", "email": "dana@example.com"})
        self.assertEqual(response.json()["user"]["username"], "dana2")

    def test_admin_only_routes(self):
        response = self.client.get("/api/users", headers=self.auth(self.user_token))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "AdminOnly")
        response = self.client.get("/api/users/activity", headers=self.auth(self.admin_token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual({u["name"] for u in response.json()}, {"dana", "root"})

    def test_second_admin_rejected(self):
        response = self.client.post("/api/users/admin/create", json={
            "secretKey": "let-me-in", "username": "root2", "email": "root2@example.com", "password": "root-password"})
        self.assertEqual(response.status_code, 409)


class TestOrderApi(ApiTestCase):
    def test_ship_then_confirm_delivery_with_otp(self):
        order = self.place_order()
        self.assertEqual(order["status"], "Pending")

        response = self.client.put(f"/api/orders/updateStatus/{order['id']}", headers=self.auth(self.user_token),
                                   json={"status": "Shipped"})
        self.assertEqual(response.status_code, 403)

        response = self.client.put(f"/api/orders/updateStatus/{order['id']}", headers=self.auth(self.admin_token),
                                   json={"status": "Delivered"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "UseOtpVerification")

        response = self.client.put(f"/api/orders/updateStatus/{order['id']}", headers=self.auth(self.admin_token),
                                   json={"status": "Shipped"})
        self.assertEqual(response.status_code, 200, response.text)
        [code] = self.sent_otps()

        wrong = "000000" if code != "000000" else "111111"
        response = self.client.post(f"/api/orders/verify-otp/{order['id']}", headers=self.auth(self.user_token),
                                    json={"userOtp": wrong})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "OtpMismatch")

        response = self.client.post(f"/api/orders/verify-otp/{order['id']}", headers=self.auth(self.user_token),
                                    json={"userOtp": code})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.json()["order"]["otpVerified"])

        status = self.client.get(f"/api/orders/status/{order['id']}", headers=self.auth(self.user_token))
        self.assertEqual(status.json(), {"status": "Delivered"})

    def test_other_users_cannot_touch_an_order(self):
        order = self.place_order()
        _, other_token = self.signup("eli", "eli@example.com")
        response = self.client.get(f"/api/orders/status/{order['id']}", headers=self.auth(other_token))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "NotOwner")

    def test_cancel_items_until_empty(self):
        order = self.place_order()
        response = self.client.post(f"/api/orders/cancel-item/{order['id']}", headers=self.auth(self.user_token),
                                    json={"productId": "p1"})
        self.assertEqual(response.json()["order"]["totalAmount"], 24.0)
        response = self.client.post(f"/api/orders/cancel-item/{order['id']}", headers=self.auth(self.user_token),
                                    json={"productId": "p2"})
        self.assertEqual(response.json()["order"]["status"], "Cancelled")
        self.assertEqual(response.json()["order"]["totalAmount"], 0.0)

    def test_total_mismatch_and_bad_body(self):
        response = self.client.post("/api/orders/add", headers=self.auth(self.user_token), json={
            "items": [{"productId": "p1", "title": "Sock", "quantity": 1, "price": 5}],
            "totalAmount": 50, "shippingAddress": "x"})
        self.assertEqual(response.json()["code"], "TotalMismatch")
        response = self.client.post("/api/orders/add", headers=self.auth(self.user_token), json={"items": "nope"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "InvalidRequest")

    def test_checkout_from_cart_with_saved_address(self):
        headers = self.auth(self.user_token)
        response = self.client.post("/api/users/cart/add", headers=headers, json={
            "items": [{"productId": "p1", "title": "Wool Sock", "price": 6.5, "quantityDelta": 2}]})
        self.assertEqual(response.status_code, 201)
        self.client.post(f"/api/users/addresses/add/{self.user_id}", headers=headers, json={
            "name": "Dana", "phone": "555", "addressLine1": "12 Elm Road", "city": "Leeds",
            "pinCode": "LS1", "state": "WY"})

        response = self.client.post("/api/orders/checkout", headers=headers, json={"addressIndex": 3})
        self.assertEqual(response.json()["code"], "InvalidAddressIndex")
        response = self.client.post("/api/orders/checkout", headers=headers, json={"addressIndex": 0})
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["order"]["shippingAddress"], "Dana, 12 Elm Road, Leeds, WY, LS1")
        self.assertEqual(self.client.get("/api/user/cart/getItems", headers=headers).json()["items"], [])

        orders = self.client.get("/api/orders/getAllOrders", headers=self.auth(self.admin_token)).json()
        self.assertEqual(orders["totalOrders"], 1)

    def test_cart_add_with_one_bad_line_changes_nothing(self):
        headers = self.auth(self.user_token)
        response = self.client.post("/api/users/cart/add", headers=headers, json={"items": [
            {"productId": "p1", "title": "Mug", "price": 5, "quantityDelta": 1},
            {"productId": "p2", "price": 3, "quantityDelta": 1},
        ]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "MissingFields")
        self.assertEqual(self.client.get("/api/user/cart/getItems", headers=headers).json()["items"], [])


class TestCatalogApi(ApiTestCase):
    def test_products_wishlist_and_reviews(self):
        response = self.client.post("/api/products/add", headers=self.auth(self.admin_token), json={
            "title": "Canvas Tote", "category": "bags", "newPrice": 24.0, "img": "tote.jpg"})
        self.assertEqual(response.status_code, 201, response.text)
        product_id = response.json()["product"]["id"]

        self.assertEqual(self.client.get("/api/products/search", params={"query": "tote"}).json()[0]["id"], product_id)
        self.assertEqual(self.client.get(f"/api/products/getProductImage/{product_id}").json(), {"imageUrl": "tote.jpg"})

        headers = self.auth(self.user_token)
        self.assertEqual(self.client.post(f"/api/users/wishlist/add/{product_id}", headers=headers).status_code, 201)
        response = self.client.post(f"/api/users/wishlist/add/{product_id}", headers=headers)
        self.assertEqual(response.json()["code"], "AlreadyInWishlist")

        first = self.client.post(f"/api/users/reviews/add/{product_id}", headers=headers,
                                 json={"review": "Sturdy", "rating": 4})
        second = self.client.post(f"/api/users/reviews/add/{product_id}", headers=headers,
                                  json={"review": "Sturdy and roomy", "rating": 5})
        self.assertEqual((first.status_code, second.status_code), (201, 200))
        reviews = self.client.get(f"/api/product/reviews/{product_id}").json()
        self.assertEqual(len(reviews), 1)
        self.assertEqual(reviews[0]["userName"], "dana")


class TestPaymentsApi(ApiTestCase):
    def test_create_order_requires_login(self):
        self.assertEqual(self.client.post("/api/create-order", json={"amountInRupees": 10}).status_code, 401)
        response = self.client.post("/api/create-order", headers=self.auth(self.user_token),
                                    json={"amountInRupees": 10})
        self.assertEqual(response.json()["id"], "order_rzp")
        self.assertEqual(self.http.post.call_args.kwargs["json"]["amount"], 1000)
        self.assertEqual(self.http.post.call_args.kwargs["json"]["notes"]["userId"], self.user_id)

    def test_verify_payment(self):
        good = signature_for(TestConfig.RAZORPAY_KEY_SECRET, "order_rzp", "pay_1")
        body = {"razorpay_order_id": "order_rzp", "razorpay_payment_id": "pay_1", "razorpay_signature": good}
        self.assertEqual(self.client.post("/api/verify-payment", json=body).json()["success"], True)
        response = self.client.post("/api/verify-payment", json=dict(body, razorpay_signature="0" * 64))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "InvalidSignature")


class TestChatbotApi(ApiTestCase):
    def test_anonymous_greeting(self):
        response = self.client.post("/api/chatbot", json={"message": "hello"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["intent"], "greeting")

    def test_body_user_must_match_token(self):
        response = self.client.post("/api/chatbot", headers=self.auth(self.user_token),
                                    json={"message": "my cart", "userId": "f" * 24})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "UserMismatch")

    def test_signed_in_order_lookup(self):
        order = self.place_order()
        response = self.client.post("/api/chatbot", headers=self.auth(self.user_token),
                                    json={"message": f"track order {order['id']}"})
        body = response.json()
        self.assertEqual(body["intent"], "track_order")
        self.assertTrue(body["contextProvided"])
        self.assertIn("Current order status: Pending.", body["reply"])

    def test_empty_message(self):
        response = self.client.post("/api/chatbot", json={"message": ""})
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
