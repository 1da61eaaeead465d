"""Shared pytest configuration for the pytabula test suite."""

import matplotlib

# Headless backend for preview tests
matplotlib.use("Agg")

import pytest  # noqa: E402


@pytest.fixture
def ascending_points():
    """Ten points on y = 2x with x = 0..9."""
    return [(float(i), float(2 * i)) for i in range(10)]


@pytest.fixture
def newman_summary():
    """Minimal Newman summary with two endpoints."""

    def execution(name, method, path, time, code):
        return {
            "item": {"name": name},
            "request": {"method": method, "url": {"path": path}},
            "response": {"responseTime": time, "code": code},
        }

    users = ["api", "v1", "users"]
    functions = ["api", "v1", "functions"]
    return {
        "run": {
            "executions": [
                execution("List users", "GET", users, 10, 200),
                execution("Create function", "POST", functions, 5, 201),
                execution("List users", "GET", users, 20, 200),
                execution("List users", "GET", users, 30, 500),
                execution("List users", "GET", users, 40, 201),
            ]
        }
    }
