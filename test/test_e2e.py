"""
E2E smoke test against a running demo app.

By default the app is served in-process on a free local port. Set APP_URL
to point the test at an instance that is already running (for example the
container started by the CI job).

Environment Variables:
- APP_URL=<url>  - Base URL of a running app (default: start one in-process)
"""

import os
import socket
import threading

import pytest
import requests
from werkzeug.serving import make_server

from app import GREETING, app


def _find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def app_url():
    """
    Base URL of the app under test.
    Starts the Flask app in a background thread unless APP_URL is set.
    """
    url = os.getenv("APP_URL")
    if url:
        print(f"\n[test] Using running app at {url}")
        yield url.rstrip("/")
        return

    port = _find_free_port()
    server = make_server("127.0.0.1", port, app)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    print(f"\n[test] Demo app listening on port {port}")
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        server.shutdown()
        thread.join(timeout=5)


def test_index_endpoint(app_url):
    """Test the index endpoint."""
    response = requests.get(f"{app_url}/", timeout=5)
    assert response.status_code == 200
    assert "Hello DevSecOps World!" in response.text
    print(f"[test] ✓ Index endpoint returned: {response.text}")


def test_safe_api_endpoint(app_url):
    """Test the safe-api endpoint."""
    response = requests.get(f"{app_url}/safe-api", timeout=5)
    assert response.status_code == 200
    assert response.text == GREETING
    print(f"[test] ✓ Safe API endpoint returned: {response.text}")


if __name__ == "__main__":
    # Run tests with pytest
    pytest.main([__file__, "-v", "-s"])
