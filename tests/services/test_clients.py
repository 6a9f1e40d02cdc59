import httpx
import pytest
from unittest.mock import MagicMock, patch

from app.services.concept_client import ConceptServiceClient
from app.services.profile_client import ProfileServiceClient


def _mock_http(response=None, error=None):
    client = MagicMock()
    client.__enter__.return_value = client
    if error is not None:
        client.get.side_effect = error
    else:
        client.get.return_value = response
    return client


def _response(status_code, payload=None):
    return httpx.Response(
        status_code,
        json=payload,
        request=httpx.Request("GET", "http://test.local"),
    )


def test_profile_client_returns_contact_info():
    http = _mock_http(_response(200, {"email": "a@example.com", "phone": "+1555"}))

    with patch("app.services.profile_client.httpx.Client", return_value=http):
        info = ProfileServiceClient(base_url="http://users").get_contact_info("user_a")

    assert info.email == "a@example.com"
    assert info.phone == "+1555"
    url = http.get.call_args.args[0]
    assert url == "http://users/internal/users/user_a/contact-info"


@pytest.mark.parametrize(
    "http",
    [
        _mock_http(_response(404)),
        _mock_http(_response(500)),
        _mock_http(error=httpx.ConnectTimeout("slow")),
        _mock_http(error=httpx.ConnectError("down")),
    ],
)
def test_profile_client_degrades_to_empty_snapshot(http):
    with patch("app.services.profile_client.httpx.Client", return_value=http):
        info = ProfileServiceClient(base_url="http://users").get_contact_info("user_a")

    assert info.model_dump(exclude_none=True) == {}


def test_concept_client_maps_fields():
    http = _mock_http(
        _response(
            200,
            {
                "title": "Trio Evening",
                "price": "1200",
                "expectedAudience": 80,
                "techSpecRef": "Grand piano",
                "hospitalityRiderRef": "Water",
            },
        )
    )

    with patch("app.services.concept_client.httpx.Client", return_value=http):
        concept = ConceptServiceClient(base_url="http://concepts").get_concept("cpt_1")

    assert concept.title == "Trio Evening"
    assert concept.expected_audience == 80
    assert concept.tech_spec_ref == "Grand piano"


def test_concept_client_missing_concept():
    http = _mock_http(_response(404))

    with patch("app.services.concept_client.httpx.Client", return_value=http):
        assert ConceptServiceClient(base_url="http://concepts").get_concept("cpt_x") is None


def test_concept_client_propagates_server_errors():
    http = _mock_http(_response(503))

    with patch("app.services.concept_client.httpx.Client", return_value=http):
        with pytest.raises(httpx.HTTPStatusError):
            ConceptServiceClient(base_url="http://concepts").get_concept("cpt_1")
