from unittest.mock import MagicMock, patch

import pytest
import requests

from domain.errors import MissingInputError, RemoteFetchError
from services.remote_images import fetch_remote_image


@patch("services.remote_images._session.get")
def test_fetch_returns_content_type_and_body(mock_get):
    mock_resp = MagicMock(ok=True, content=b"\x89PNG", headers={"content-type": "image/png; charset=binary"})
    mock_get.return_value = mock_resp

    content_type, body = fetch_remote_image("https://cdn.example.com/art.png", timeout=5)
    assert content_type == "image/png"
    assert body == b"\x89PNG"
    mock_get.assert_called_once_with("https://cdn.example.com/art.png", timeout=5)


@patch("services.remote_images._session.get")
def test_non_ok_status_raises(mock_get):
    mock_get.return_value = MagicMock(ok=False, status_code=404, reason="Not Found")
    with pytest.raises(RemoteFetchError):
        fetch_remote_image("https://cdn.example.com/missing.png")


@patch("services.remote_images._session.get")
def test_transport_error_raises(mock_get):
    mock_get.side_effect = requests.Timeout("slow")
    with pytest.raises(RemoteFetchError):
        fetch_remote_image("https://cdn.example.com/art.png")


@pytest.mark.parametrize("url", ["file:///etc/passwd", "ftp://host/a.png", "not a url"])
def test_unsupported_urls_are_rejected(url):
    with pytest.raises(RemoteFetchError):
        fetch_remote_image(url)


@pytest.mark.parametrize("url", [None, "", "   "])
def test_missing_url(url):
    with pytest.raises(MissingInputError):
        fetch_remote_image(url)
