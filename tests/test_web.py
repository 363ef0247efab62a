from fastapi.testclient import TestClient

from degen_bot.config import HttpConfig
from degen_bot.services.web import WebService, create_web_app


def test_index_redirects_to_marketing_site():
    client = TestClient(create_web_app())
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert '<meta http-equiv="refresh" content="0; URL=https://degenstudios.media">' in response.text
    assert '<a href="https://degenstudios.media">click here</a>' in response.text


def test_only_the_index_route_exists():
    client = TestClient(create_web_app())
    assert client.get("/docs").status_code == 404
    assert client.get("/anything").status_code == 404


def test_web_service_is_idle_until_started():
    service = WebService(HttpConfig(host="127.0.0.1", port=0))
    assert service.service_name == "web"
    assert not service.running
