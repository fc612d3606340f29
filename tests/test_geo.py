import httpx
import pytest

from app.core.errors import ExternalServiceError, ValidationFailed
from app.core.geo import MapboxClient, PostalCodeClient, normalize_postal_code
from app.models.common import Coordinates
from conftest import run

STORE = Coordinates(lat=-23.55052, lng=-46.633308)
CUSTOMER = Coordinates(lat=-23.5614, lng=-46.6559)


def transport_for(handler):
    requests = []

    def record(request):
        requests.append(request)
        return handler(request)

    return httpx.MockTransport(record), requests


def test_postal_code_found():
    transport, requests = transport_for(lambda request: httpx.Response(200, json={
        "cep": "01001-000",
        "logradouro": "Praça da Sé",
        "bairro": "Sé",
        "localidade": "São Paulo",
        "uf": "SP",
    }))

    address = run(PostalCodeClient(transport=transport).lookup("01001-000"))

    assert address.found
    assert address.street == "Praça da Sé"
    assert address.city == "São Paulo"
    assert address.state == "SP"
    assert requests[0].url.path == "/ws/01001000/json/"


def test_postal_code_not_found():
    transport, _ = transport_for(lambda request: httpx.Response(200, json={"erro": True}))

    address = run(PostalCodeClient(transport=transport).lookup("99999999"))

    assert address.found is False
    assert address.code == "99999999"
    assert address.street == ""


@pytest.mark.parametrize("code", ["1234", "123456789", "abcdefgh", ""])
def test_postal_code_needs_eight_digits(code):
    with pytest.raises(ValidationFailed):
        normalize_postal_code(code)


def test_postal_code_provider_error():
    transport, _ = transport_for(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(ExternalServiceError):
        run(PostalCodeClient(transport=transport).lookup("01001000"))


def test_forward_geocode_maps_features():
    transport, requests = transport_for(lambda request: httpx.Response(200, json={
        "features": [
            {"place_name": "Rua Augusta, 500, São Paulo", "center": [-46.65, -23.55]},
            {"place_name": "broken"},
        ]
    }))

    results = run(MapboxClient(access_token="token", transport=transport).forward_geocode("Rua Augusta 500"))

    assert len(results) == 1
    assert results[0].label == "Rua Augusta, 500, São Paulo"
    assert (results[0].lng, results[0].lat) == (-46.65, -23.55)
    params = requests[0].url.params
    assert params["country"] == "br"
    assert params["access_token"] == "token"


def test_reverse_geocode_without_features():
    transport, _ = transport_for(lambda request: httpx.Response(200, json={"features": []}))
    assert run(MapboxClient(access_token="token", transport=transport).reverse_geocode(-46.6, -23.5)) is None


def test_route_distance():
    transport, requests = transport_for(lambda request: httpx.Response(200, json={
        "code": "Ok",
        "routes": [{"distance": 5230.4, "duration": 600}],
    }))

    distance = run(MapboxClient(access_token="token", transport=transport).route_distance(STORE, CUSTOMER))

    assert distance == 5230.4
    assert requests[0].url.path.startswith("/directions/v5/mapbox/driving/")


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"code": "NoRoute", "routes": []}),
    httpx.Response(200, json={"code": "Ok", "routes": []}),
    httpx.Response(500, json={"message": "error"}),
])
def test_route_distance_failures_are_unknown(response):
    transport, _ = transport_for(lambda request: response)
    client = MapboxClient(access_token="token", transport=transport)
    assert run(client.route_distance(STORE, CUSTOMER)) is None


def test_mapbox_requires_a_token():
    client = MapboxClient(access_token="")
    with pytest.raises(ExternalServiceError):
        run(client.route_distance(STORE, CUSTOMER))
