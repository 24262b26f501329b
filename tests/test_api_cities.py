def assert_error(response, status_code, code):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert body["error"]["message"]
    assert body["timestamp"].endswith("Z")


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"status": "healthy", "version": "0.0.1"}
    assert body["timestamp"].endswith("Z")


def test_list_cities(client):
    response = client.get("/api/v1/cities")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 4
    assert data["limit"] == 100
    assert data["offset"] == 0
    assert [city["id"] for city in data["cities"]] == [1, 2, 3, 4]
    assert data["cities"][0] == {"id": 1, "name": "London", "country": "GB", "lon": -0.1278, "lat": 51.5074}


def test_list_cities_paginates(client):
    data = client.get("/api/v1/cities", params={"limit": 1, "offset": 1}).json()["data"]
    assert [city["id"] for city in data["cities"]] == [2]
    assert data["total"] == 4


def test_list_cities_clamps(client):
    data = client.get("/api/v1/cities", params={"limit": 99999, "offset": -4}).json()["data"]
    assert data["limit"] == 1000
    assert data["offset"] == 0


def test_list_cities_invalid_limit(client):
    assert_error(client.get("/api/v1/cities", params={"limit": "many"}), 400, "INVALID_PARAMETER")


def test_search(client):
    response = client.get("/api/v1/cities/search", params={"q": "LONDON"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["query"] == "LONDON"
    assert data["count"] == 2
    assert [city["id"] for city in data["cities"]] == [1, 2]


def test_search_unicode(client):
    data = client.get("/api/v1/cities/search", params={"q": "münchen"}).json()["data"]
    assert [city["name"] for city in data["cities"]] == ["München"]


def test_search_too_short(client):
    assert_error(client.get("/api/v1/cities/search", params={"q": "L"}), 400, "INVALID_QUERY")
    assert_error(client.get("/api/v1/cities/search"), 400, "INVALID_QUERY")


def test_country(client):
    response = client.get("/api/v1/cities/country/gb")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["country"] == "GB"
    assert data["count"] == 2


def test_country_unknown(client):
    data = client.get("/api/v1/cities/country/ZZ").json()["data"]
    assert data == {"cities": [], "country": "ZZ", "count": 0}


def test_country_invalid(client):
    assert_error(client.get("/api/v1/cities/country/GBR"), 400, "INVALID_COUNTRY")


def test_get_city(client):
    response = client.get("/api/v1/cities/3")
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Paris"


def test_get_city_missing(client):
    assert_error(client.get("/api/v1/cities/999"), 404, "NOT_FOUND")


def test_get_city_bad_id(client):
    assert_error(client.get("/api/v1/cities/abc"), 400, "INVALID_PARAMETER")


def test_coordinates_get(client):
    response = client.get("/api/v1/cities/coordinates", params={"longitude": -0.13, "latitude": 51.51})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["city"]["id"] == 1
    assert data["distance"] < 0.5


def test_coordinates_post(client):
    response = client.post("/api/v1/cities/coordinates", json={"longitude": 2.35, "latitude": 48.85})
    assert response.status_code == 200
    assert response.json()["data"]["city"]["name"] == "Paris"


def test_coordinates_out_of_range(client):
    assert_error(
        client.get("/api/v1/cities/coordinates", params={"longitude": 200, "latitude": 0}),
        400,
        "INVALID_COORDINATES",
    )
    assert_error(
        client.post("/api/v1/cities/coordinates", json={"longitude": 0, "latitude": -95}),
        400,
        "INVALID_COORDINATES",
    )


def test_coordinates_missing(client):
    assert_error(client.get("/api/v1/cities/coordinates", params={"longitude": 1}), 400, "INVALID_COORDINATES")
    assert_error(client.post("/api/v1/cities/coordinates", json={}), 400, "INVALID_COORDINATES")


def test_coordinates_not_numeric(client):
    assert_error(
        client.get("/api/v1/cities/coordinates", params={"longitude": "east", "latitude": 0}),
        400,
        "INVALID_COORDINATES",
    )


def test_coordinates_post_bad_body(client):
    assert_error(client.post("/api/v1/cities/coordinates", json=[1, 2]), 400, "INVALID_PARAMETER")


def test_raw_dataset(client):
    response = client.get("/api/v1/citylist.json")
    assert response.status_code == 200
    assert "attachment" in response.headers["content-disposition"]
    assert len(response.json()) == 4


def test_openapi_document(client):
    response = client.get("/api/v1/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/api/v1/cities" in paths
    assert "/api/v1/cities/coordinates" in paths
    assert "/admin" not in paths


def test_security_headers(client):
    response = client.get("/api/v1/health")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "Content-Security-Policy" in response.headers


def test_no_cors_outside_dev_mode(client):
    response = client.get("/api/v1/health", headers={"Origin": "https://example.com"})
    assert "access-control-allow-origin" not in response.headers


def test_list_cities_huge_offset(client):
    response = client.get("/api/v1/cities", params={"offset": 10 ** 20})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["cities"] == []
    assert data["total"] == 4


def test_get_city_huge_id(client):
    assert_error(client.get(f"/api/v1/cities/{10 ** 20}"), 404, "NOT_FOUND")
