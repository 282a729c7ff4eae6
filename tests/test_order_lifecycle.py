#!/usr/bin/env python3
"""
Order lifecycle tests

PURPOSE:
    Exercise the order state machine against a real (in-memory) database:
    creation, shipment OTP issuance, OTP verification, item cancellation,
    return requests and notification side effects.

TEST COVERAGE:
    - OTP fields present only while Shipped and unverified
    - Direct Delivered transition rejected
    - Every OTP verification failure leaves the order unchanged
    - Attempt limiting
    - Item cancellation totals and forced cancellation
    - Notification failures never break the parent operation
"""

import re
import unittest

from storefront.app.errors import (NotFoundError, OtpAttemptsExceeded, StateConflictError,
                                   ValidationError)
from storefront.data.models import Cart, Order, OrderStatus, User
from storefront.services.notifier import MAX_RECORDED_FAILURES, Notification
from storefront.services.order_lifecycle import OrderLifecycleManager
from storefront.services.otp import OtpGenerator

from tests.fakes import FakeClock, RecordingNotifier, memory_session

OTP_RE = re.compile(r"OTP is (\d{6})")


def otp_from(notification):
    return OTP_RE.search(notification.text).group(1)


class LifecycleTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = memory_session()
        self.clock = FakeClock()
        self.notifier = RecordingNotifier()
        self.otp = OtpGenerator(ttl_minutes=10, clock=self.clock, rounds=4)
        self.manager = OrderLifecycleManager(self.db, self.notifier, self.otp, max_otp_attempts=5)
        self.user = User(username="ada", email="ada@example.com", password_hash="x", role="user", attributes={})
        self.db.add(self.user)
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def two_item_order(self):
        return self.manager.create_order(
            self.user.id,
            [
                {"productId": "p-1", "title": "Trail Runner", "quantity": 1, "price": 60.0},
                {"productId": "p-2", "title": "Canvas Tote", "quantity": 2, "price": 20.0},
            ],
            "12 Long Road, Flat 3, Springfield, 12345",
            total_amount=100.0,
        )

    def ship(self, order):
        self.manager.update_status(order.id, "Shipped")
        return otp_from(self.notifier.sent[-1])

    def assert_otp_cleared(self, order):
        self.assertIsNone(order.delivery_otp)
        self.assertIsNone(order.otp_expires_at)


class TestCreateOrder(LifecycleTestCase):
    def test_creates_pending_order_and_confirms(self):
        order = self.two_item_order()
        self.assertEqual(order.status, OrderStatus.pending)
        self.assertAlmostEqual(order.total_amount, 100.0)
        self.assertEqual(len(order.items), 2)
        self.assertEqual(self.notifier.kinds(), ["order_confirmation"])
        self.assertEqual(self.notifier.sent[0].to, "ada@example.com")

    def test_total_mismatch_rejected_before_insert(self):
        with self.assertRaises(ValidationError) as ctx:
            self.manager.create_order(self.user.id, [{"productId": "p-1", "title": "A", "quantity": 2, "price": 10}],
                                      "Somewhere, Town", total_amount=25)
        self.assertEqual(ctx.exception.code, "TotalMismatch")
        self.assertEqual(self.db.query(Order).count(), 0)

    def test_quantity_must_be_positive(self):
        with self.assertRaises(ValidationError) as ctx:
            self.manager.create_order(self.user.id, [{"productId": "p-1", "title": "A", "quantity": 0, "price": 10}],
                                      "Somewhere, Town")
        self.assertEqual(ctx.exception.code, "InvalidQuantity")

    def test_cannot_create_as_shipped(self):
        with self.assertRaises(ValidationError) as ctx:
            self.manager.create_order(self.user.id, [{"productId": "p-1", "title": "A", "quantity": 1, "price": 10}],
                                      "Somewhere, Town", status="Shipped")
        self.assertEqual(ctx.exception.code, "InvalidStatus")

    def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            self.manager.create_order("f" * 24, [{"productId": "p-1", "title": "A", "quantity": 1, "price": 10}],
                                      "Somewhere, Town")


class TestStatusTransitions(LifecycleTestCase):
    def test_direct_delivered_is_rejected(self):
        order = self.two_item_order()
        with self.assertRaises(StateConflictError) as ctx:
            self.manager.update_status(order.id, "Delivered")
        self.assertEqual(ctx.exception.code, "UseOtpVerification")
        self.assertEqual(order.status, OrderStatus.pending)

    def test_unknown_status(self):
        order = self.two_item_order()
        with self.assertRaises(ValidationError):
            self.manager.update_status(order.id, "Teleported")

    def test_shipping_issues_hashed_six_digit_code(self):
        order = self.two_item_order()
        code = self.ship(order)
        self.assertEqual(len(code), 6)
        self.assertEqual(order.status, OrderStatus.shipped)
        self.assertNotEqual(order.delivery_otp, code)
        self.assertEqual(order.otp_expires_at, self.clock() + self.otp.ttl)
        self.assertFalse(order.otp_verified)
        self.assertIn("10 minutes", self.notifier.sent[-1].text)

    def test_reshipping_issues_fresh_expiry(self):
        order = self.two_item_order()
        self.ship(order)
        first_expiry = order.otp_expires_at
        self.clock.advance(minutes=3)
        self.ship(order)
        self.assertGreater(order.otp_expires_at, first_expiry)
        self.assertEqual(order.otp_attempts, 0)

    def test_leaving_shipped_clears_otp(self):
        order = self.two_item_order()
        self.ship(order)
        self.manager.update_status(order.id, "Processing")
        self.assertEqual(order.status, OrderStatus.processing)
        self.assert_otp_cleared(order)
        self.assertEqual(self.notifier.kinds()[-1], "status_update")

    def test_missing_order(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.manager.update_status("0" * 24, "Processing")
        self.assertEqual(ctx.exception.code, "OrderNotFound")


class TestVerifyDeliveryOtp(LifecycleTestCase):
    def test_full_delivery_scenario(self):
        order = self.two_item_order()
        code = self.ship(order)
        wrong = "000000" if code != "000000" else "111111"

        with self.assertRaises(StateConflictError) as ctx:
            self.manager.verify_delivery_otp(order.id, wrong)
        self.assertEqual(ctx.exception.code, "OtpMismatch")
        self.assertEqual(order.status, OrderStatus.shipped)
        self.assertIsNotNone(order.delivery_otp)

        self.manager.verify_delivery_otp(order.id, code)
        self.assertEqual(order.status, OrderStatus.delivered)
        self.assertTrue(order.otp_verified)
        self.assert_otp_cleared(order)
        self.assertEqual(self.notifier.kinds().count("delivery_otp"), 1)
        self.assertEqual(self.notifier.kinds().count("delivered"), 1)

    def test_not_shipped(self):
        order = self.two_item_order()
        with self.assertRaises(StateConflictError) as ctx:
            self.manager.verify_delivery_otp(order.id, "123456")
        self.assertEqual(ctx.exception.code, "NotShippedState")

    def test_expired_code_leaves_state(self):
        order = self.two_item_order()
        code = self.ship(order)
        self.clock.advance(minutes=10, seconds=1)
        with self.assertRaises(StateConflictError) as ctx:
            self.manager.verify_delivery_otp(order.id, code)
        self.assertEqual(ctx.exception.code, "OtpExpired")
        self.assertEqual(order.status, OrderStatus.shipped)
        self.assertIsNotNone(order.delivery_otp)

    def test_code_valid_at_exact_expiry(self):
        order = self.two_item_order()
        code = self.ship(order)
        self.clock.advance(minutes=10)
        self.manager.verify_delivery_otp(order.id, code)
        self.assertEqual(order.status, OrderStatus.delivered)

    def test_no_otp_issued(self):
        order = self.two_item_order()
        # legacy row that reached Shipped without a code
        order.status = OrderStatus.shipped
        self.db.commit()
        with self.assertRaises(StateConflictError) as ctx:
            self.manager.verify_delivery_otp(order.id, "123456")
        self.assertEqual(ctx.exception.code, "NoOtpIssued")

    def test_attempts_are_limited(self):
        order = self.two_item_order()
        code = self.ship(order)
        wrong = "000000" if code != "000000" else "111111"
        for _ in range(5):
            with self.assertRaises(StateConflictError):
                self.manager.verify_delivery_otp(order.id, wrong)
        with self.assertRaises(OtpAttemptsExceeded):
            self.manager.verify_delivery_otp(order.id, code)
        self.assertEqual(order.status, OrderStatus.shipped)

        # a new shipment resets the counter
        fresh = self.ship(order)
        self.manager.verify_delivery_otp(order.id, fresh)
        self.assertEqual(order.status, OrderStatus.delivered)

    def test_missing_code(self):
        order = self.two_item_order()
        with self.assertRaises(ValidationError):
            self.manager.verify_delivery_otp(order.id, "  ")


class TestCancelItemAndReturns(LifecycleTestCase):
    def test_cancel_one_then_last(self):
        order = self.two_item_order()
        self.manager.cancel_item(order.id, "p-2")
        self.assertAlmostEqual(order.total_amount, 60.0)
        self.assertEqual(order.status, OrderStatus.pending)
        self.assertEqual([i["productId"] for i in order.items], ["p-1"])

        self.manager.cancel_item(order.id, "p-1")
        self.assertAlmostEqual(order.total_amount, 0.0)
        self.assertEqual(order.status, OrderStatus.cancelled)
        self.assertEqual(order.items, [])
        self.assertEqual(self.notifier.kinds().count("item_removed"), 2)

    def test_cancel_last_item_of_shipped_order_clears_otp(self):
        order = self.manager.create_order(self.user.id, [{"productId": "p-9", "title": "Sock", "quantity": 1,
                                                          "price": 12.0}], "1 Lane, Town, 99999")
        self.ship(order)
        self.manager.cancel_item(order.id, "p-9")
        self.assertEqual(order.status, OrderStatus.cancelled)
        self.assert_otp_cleared(order)

    def test_unknown_product(self):
        order = self.two_item_order()
        with self.assertRaises(NotFoundError) as ctx:
            self.manager.cancel_item(order.id, "p-404")
        self.assertEqual(ctx.exception.code, "ProductNotInOrder")
        self.assertAlmostEqual(order.total_amount, 100.0)

    def test_return_request_is_unconditional(self):
        order = self.two_item_order()
        self.ship(order)
        self.manager.request_return(order.id)
        self.assertEqual(order.status, OrderStatus.return_requested)
        self.assert_otp_cleared(order)
        self.assertEqual(self.notifier.kinds()[-1], "return_requested")


class TestNotificationFailures(LifecycleTestCase):
    def test_failed_email_does_not_undo_shipment(self):
        self.notifier.fail = True
        order = self.two_item_order()
        self.manager.update_status(order.id, "Shipped")
        self.db.expire_all()
        stored = self.db.get(Order, order.id)
        self.assertEqual(stored.status, OrderStatus.shipped)
        self.assertIsNotNone(stored.delivery_otp)
        self.assertEqual([f.notification.kind for f in self.notifier.failures],
                         ["order_confirmation", "delivery_otp"])

    def test_failure_log_keeps_only_recent_entries(self):
        notifier = RecordingNotifier(fail=True)
        for n in range(MAX_RECORDED_FAILURES + 10):
            self.assertFalse(notifier.notify(Notification("ada@example.com", f"Update {n}", "text")))
        self.assertEqual(len(notifier.failures), MAX_RECORDED_FAILURES)
        self.assertEqual(notifier.failures[0].notification.subject, "Update 10")
        self.assertEqual(notifier.failures[-1].notification.subject, f"Update {MAX_RECORDED_FAILURES + 9}")


class TestCheckout(LifecycleTestCase):
    def test_checkout_turns_cart_into_order(self):
        self.db.add(Cart(user_id=self.user.id, items=[
            {"productId": "p-1", "title": "Trail Runner", "price": 60.0, "quantity": 1},
            {"productId": "p-2", "title": "Canvas Tote", "price": 20.0, "quantity": 2},
        ], attributes={}))
        self.db.commit()
        order = self.manager.checkout(self.user.id, "5 Hill St, Springfield, 12345")
        self.assertAlmostEqual(order.total_amount, 100.0)
        self.assertEqual(self.db.query(Cart).count(), 0)

    def test_emptied_legacy_line_is_not_billed(self):
        self.user.attributes = {"cart": [
            {"productId": "p-2", "title": "Canvas Tote", "price": 24.0, "quantity": 0},
            {"productId": "gc-10", "title": "Gift card", "price": 10, "quantity": 1},
        ]}
        self.db.commit()
        order = self.manager.checkout(self.user.id, "5 Hill St, Springfield, 12345")
        self.assertAlmostEqual(order.total_amount, 10.0)
        self.assertEqual([line["title"] for line in order.items], ["Gift card"])
        self.assertNotIn("cart", self.user.attributes)

    def test_empty_cart(self):
        with self.assertRaises(ValidationError) as ctx:
            self.manager.checkout(self.user.id, "5 Hill St, Springfield")
        self.assertEqual(ctx.exception.code, "EmptyCart")


class TestListing(LifecycleTestCase):
    def test_list_all_pages_and_attaches_owner(self):
        for _ in range(3):
            self.two_item_order()
        result = self.manager.list_all(page=1, limit=2, sort_by="bogus", sort_order="asc")
        self.assertEqual(result["totalOrders"], 3)
        self.assertEqual(len(result["orders"]), 2)
        self.assertEqual(result["orders"][0]["user"]["email"], "ada@example.com")

    def test_list_for_user(self):
        order = self.two_item_order()
        listed = self.manager.list_for_user(self.user.id)
        self.assertEqual(listed[0]["id"], order.id)
        self.assertEqual(listed[0]["status"], "Pending")
        self.assertEqual(len(listed[0]["items"]), 2)


if __name__ == "__main__":
    unittest.main()
