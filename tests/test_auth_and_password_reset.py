"""
Account and password reset tests

PURPOSE:
    Signup/login/admin bootstrap plus the forgot-password flow
    (emailed OTP -> single-use reset token -> new password).
"""

import re
import unittest
from datetime import timedelta

import jwt

from storefront.app.errors import (AuthorizationError, ForbiddenError, OtpAttemptsExceeded,
                                   StateConflictError, ValidationError)
from storefront.services.otp import OtpGenerator
from storefront.services.password_reset import GENERIC_SENT_MESSAGE, PasswordResetService
from storefront.services.users import UserService
from storefront.utils.security import PasswordHasher, TokenService

from tests.fakes import FakeClock, RecordingNotifier, memory_session

RESET_CODE_RE = re.compile(r"reset code is (\d{6})")


class AccountTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.db = memory_session()
        self.clock = FakeClock()
        self.notifier = RecordingNotifier()
        self.hasher = PasswordHasher(rounds=4)
        self.tokens = TokenService("unit-secret", expires_days=7, reset_minutes=15)
        self.users = UserService(self.db, self.hasher, self.tokens, self.notifier, "TestShop")
        self.resets = PasswordResetService(self.db, self.hasher, self.tokens, self.notifier,
                                           OtpGenerator(ttl_minutes=15, clock=self.clock, rounds=4),
                                           max_attempts=5)
        self.user, self.token = self.users.signup("nora", "Nora@Example.com", "correct-horse")

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def request_code(self):
        self.assertEqual(self.resets.request_reset("nora@example.com"), GENERIC_SENT_MESSAGE)
        return RESET_CODE_RE.search(self.notifier.sent[-1].text).group(1)


class TestAccounts(AccountTestCase):
    def test_signup_normalizes_email_and_welcomes(self):
        self.assertEqual(self.user.email, "nora@example.com")
        self.assertNotEqual(self.user.password_hash, "correct-horse")
        self.assertEqual(self.notifier.kinds(), ["welcome"])
        self.assertEqual(self.users.authenticate(self.token).id, self.user.id)

    def test_duplicate_signup(self):
        with self.assertRaises(StateConflictError) as ctx:
            self.users.signup("nora", "other@example.com", "correct-horse")
        self.assertEqual(ctx.exception.code, "UsernameTaken")
        with self.assertRaises(StateConflictError) as ctx:
            self.users.signup("nora2", "NORA@example.com", "correct-horse")
        self.assertEqual(ctx.exception.code, "EmailTaken")

    def test_weak_password(self):
        with self.assertRaises(ValidationError) as ctx:
            self.users.signup("ivy", "ivy@example.com", "short")
        self.assertEqual(ctx.exception.code, "WeakPassword")

    def test_login_does_not_reveal_which_part_is_wrong(self):
        for email, password in (("nora@example.com", "wrong-password"), ("nobody@example.com", "correct-horse")):
            with self.assertRaises(AuthorizationError) as ctx:
                self.users.login(email, password)
            self.assertEqual(ctx.exception.code, "InvalidCredentials")
        user, token = self.users.login("NORA@example.com", "correct-horse")
        self.assertEqual(user.id, self.user.id)

    def test_expired_and_tampered_tokens(self):
        expired = jwt.encode({"user": {"id": self.user.id}, "exp": self.clock() - timedelta(minutes=1)},
                             "unit-secret", algorithm="HS256")
        with self.assertRaises(AuthorizationError) as ctx:
            self.users.authenticate(expired)
        self.assertEqual(ctx.exception.code, "TokenExpired")
        with self.assertRaises(AuthorizationError) as ctx:
            self.users.authenticate(self.token.rsplit(".", 1)[0] + ".forged-signature")
        self.assertEqual(ctx.exception.code, "InvalidToken")

    def test_admin_bootstrap(self):
        with self.assertRaises(ForbiddenError):
            self.users.create_admin("guess", "real-secret", "boss", "boss@example.com", "boss-password")
        admin = self.users.create_admin("real-secret", "real-secret", "boss", "boss@example.com", "boss-password")
        self.assertTrue(admin.is_admin)
        with self.assertRaises(StateConflictError) as ctx:
            self.users.create_admin("real-secret", "real-secret", "boss2", "boss2@example.com", "boss-password")
        self.assertEqual(ctx.exception.code, "AdminExists")


class TestPasswordReset(AccountTestCase):
    def test_unknown_email_gets_same_answer(self):
        self.assertEqual(self.resets.request_reset("ghost@example.com"), GENERIC_SENT_MESSAGE)
        self.assertEqual(self.notifier.kinds(), ["welcome"])

    def test_full_flow_and_reuse_rejected(self):
        code = self.request_code()
        reset_token = self.resets.validate_otp("nora@example.com", code)
        self.resets.reset_password(reset_token, "battery-staple")
        self.assertEqual(self.notifier.kinds()[-1], "password_changed")
        self.users.login("nora@example.com", "battery-staple")

        with self.assertRaises(StateConflictError) as ctx:
            self.resets.reset_password(reset_token, "another-password")
        self.assertEqual(ctx.exception.code, "ResetTokenUsed")

    def test_token_from_an_older_flow_is_rejected(self):
        first = self.resets.validate_otp("nora@example.com", self.request_code())
        second_code = self.request_code()
        self.resets.validate_otp("nora@example.com", second_code)
        with self.assertRaises(StateConflictError) as ctx:
            self.resets.reset_password(first, "battery-staple")
        self.assertEqual(ctx.exception.code, "ResetFlowInvalid")

    def test_wrong_code_then_attempt_limit(self):
        code = self.request_code()
        wrong = "000000" if code != "000000" else "111111"
        for _ in range(5):
            with self.assertRaises(StateConflictError) as ctx:
                self.resets.validate_otp("nora@example.com", wrong)
            self.assertEqual(ctx.exception.code, "OtpMismatch")
        with self.assertRaises(OtpAttemptsExceeded):
            self.resets.validate_otp("nora@example.com", code)

    def test_expired_code(self):
        code = self.request_code()
        self.clock.advance(minutes=16)
        with self.assertRaises(StateConflictError) as ctx:
            self.resets.validate_otp("nora@example.com", code)
        self.assertEqual(ctx.exception.code, "OtpExpired")
        with self.assertRaises(StateConflictError) as ctx:
            self.resets.validate_otp("nora@example.com", code)
        self.assertEqual(ctx.exception.code, "NoOtpIssued")

    def test_same_password_rejected(self):
        reset_token = self.resets.validate_otp("nora@example.com", self.request_code())
        with self.assertRaises(ValidationError) as ctx:
            self.resets.reset_password(reset_token, "correct-horse")
        self.assertEqual(ctx.exception.code, "PasswordReused")

    def test_garbage_reset_token(self):
        with self.assertRaises(ValidationError) as ctx:
            self.resets.reset_password("not-a-token", "battery-staple")
        self.assertEqual(ctx.exception.code, "InvalidResetToken")


if __name__ == "__main__":
    unittest.main()
