from agrichain.main import app
from agrichain.auth import get_current_user

PUBLIC_PATHS = {
    "/api/auth/accounts",
    "/api/auth/login",
    "/metrics",
}


def test_all_routes_protected():
    for route in app.routes:
        path = getattr(route, 'path', '')
        if not path.startswith('/api'):
            continue
        if path in PUBLIC_PATHS:
            continue
        if not hasattr(route, 'dependant'):
            continue
        deps = [d.call for d in route.dependant.dependencies]
        assert get_current_user in deps, f"{path} missing authentication"


def test_metrics_endpoint(client):
    client.get("/api/lots/counter")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert b"request_count" in resp.content
