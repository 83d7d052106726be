import os
import unittest

from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from storyshelf.core.http_hardening import request_id_from_header
from storyshelf.main import app

_REQUEST_ID_PATTERN = r"^[A-Za-z0-9._-]{1,128}$"


class HttpHardeningTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()

    def test_health_has_security_headers_and_request_id(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)

        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertEqual(response.headers.get("x-frame-options"), "DENY")
        self.assertEqual(response.headers.get("referrer-policy"), "no-referrer")
        self.assertEqual(response.headers.get("cache-control"), "no-cache")
        self.assertRegex(str(response.headers.get("x-request-id")), _REQUEST_ID_PATTERN)

    def test_valid_request_id_is_preserved(self):
        response = self.client.get("/health", headers={"X-Request-ID": "listing-check-2026_03_01"})
        self.assertEqual(response.headers.get("x-request-id"), "listing-check-2026_03_01")

    def test_invalid_request_id_is_replaced(self):
        response = self.client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        request_id = response.headers.get("x-request-id")
        self.assertNotEqual(request_id, "bad id with spaces")
        self.assertRegex(str(request_id), _REQUEST_ID_PATTERN)

    def test_validation_error_keeps_security_headers_and_request_id(self):
        # Rejected before the store is touched, so no database is needed.
        response = self.client.get("/api/public/tags", params={"page": 0})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertTrue(bool(response.headers.get("x-request-id")))
        self.assertEqual(response.json()["errors"][0]["code"], "Query.InvalidPage")

    def test_request_id_from_header(self):
        self.assertEqual(request_id_from_header("  abc-123 "), "abc-123")
        self.assertRegex(request_id_from_header(None), _REQUEST_ID_PATTERN)
        self.assertRegex(request_id_from_header("x" * 129), _REQUEST_ID_PATTERN)
        self.assertNotEqual(request_id_from_header("x" * 129), "x" * 129)


if __name__ == "__main__":
    unittest.main()
