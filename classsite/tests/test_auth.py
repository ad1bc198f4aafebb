import tempfile
import time
import unittest
from datetime import timedelta
from unittest.mock import patch

from jose import jwt

from classsite.auth import AuthGate, CredentialStore
from classsite.errors import AuthenticationError, InvalidTokenError, MissingTokenError
from classsite.filestore import JsonFileBackend
from classsite.security import get_password_hash, verify_password


class PasswordHashTests(unittest.TestCase):
    def test_hash_is_salted_and_verifies(self):
        first = get_password_hash("s3cret", rounds=4)
        second = get_password_hash("s3cret", rounds=4)
        self.assertNotEqual(first, second)
        self.assertNotIn("s3cret", first)
        self.assertTrue(verify_password("s3cret", first))
        self.assertFalse(verify_password("wrong", first))

    def test_non_bcrypt_hash_does_not_verify(self):
        self.assertFalse(verify_password("s3cret", "s3cret"))


class AuthGateTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.backend = JsonFileBackend(tmp.name)
        self.credentials = CredentialStore(self.backend.users, bcrypt_rounds=4)
        self.credentials.bootstrap("admin", "s3cret")
        self.gate = AuthGate(self.credentials, secret="test-secret")

    def test_bootstrap_is_idempotent(self):
        user = self.backend.users.get_by_username("admin")
        with patch("classsite.auth.get_password_hash") as hasher:
            again = self.credentials.bootstrap("admin", "s3cret")
        hasher.assert_not_called()
        self.assertEqual(again.id, user.id)
        self.assertEqual(again.password_hash, user.password_hash)
        self.assertEqual(self.backend.users._records.count(), 1)

    def test_login_and_authorize(self):
        result = self.gate.login("admin", "s3cret")
        self.assertEqual(result["user"]["username"], "admin")
        claims = self.gate.authorize(result["token"])
        self.assertEqual(claims.username, "admin")
        self.assertEqual(claims.role, "admin")
        self.assertEqual(claims.id, result["user"]["id"])

    def test_token_expires_after_24_hours(self):
        token = self.gate.login("admin", "s3cret")["token"]
        payload = jwt.get_unverified_claims(token)
        self.assertEqual(set(payload), {"id", "username", "role", "exp"})
        self.assertAlmostEqual(payload["exp"] - time.time(), 24 * 3600, delta=60)
        issued = self.gate.authorize(token)
        self.assertEqual(issued.username, "admin")

    def test_bad_credentials(self):
        with self.assertRaises(AuthenticationError) as wrong_password:
            self.gate.login("admin", "nope")
        with self.assertRaises(AuthenticationError) as unknown_user:
            self.gate.login("nobody", "s3cret")
        self.assertEqual(wrong_password.exception.message, unknown_user.exception.message)

    def test_missing_token(self):
        with self.assertRaises(MissingTokenError) as ctx:
            self.gate.authorize(None)
        self.assertEqual(ctx.exception.status_code, 401)
        with self.assertRaises(MissingTokenError):
            self.gate.authorize("")

    def test_expired_token(self):
        gate = AuthGate(
            self.credentials, secret="test-secret", expires_in=timedelta(seconds=-1)
        )
        token = gate.login("admin", "s3cret")["token"]
        with self.assertRaises(InvalidTokenError) as ctx:
            self.gate.authorize(token)
        self.assertEqual(ctx.exception.status_code, 403)

    def test_tampered_token(self):
        token = self.gate.login("admin", "s3cret")["token"]
        other = AuthGate(self.credentials, secret="another-secret")
        with self.assertRaises(InvalidTokenError):
            other.authorize(token)
        header, payload, _ = token.split(".")
        with self.assertRaises(InvalidTokenError):
            self.gate.authorize(f"{header}.{payload}.AAAA")

    def test_token_without_claims(self):
        token = jwt.encode({"sub": "x"}, "test-secret", algorithm="HS256")
        with self.assertRaises(InvalidTokenError):
            self.gate.authorize(token)


if __name__ == "__main__":
    unittest.main()
