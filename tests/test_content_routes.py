"""Route tests for the remaining content types and the shared app behaviour."""

from datetime import datetime, timezone

import pytest

from articles import repository as article_repository
from cities import repository as city_repository
from communities import repository as community_repository
from conftest import NOW
from images import repository as image_repository
from opportunities import repository as opportunity_repository
from opportunity_slots import repository as slot_repository
from places import repository as place_repository
from users import repository as user_repository

CM = "/content-manager"


def community_row(**overrides):
    row = {
        "id": "com-1",
        "name": "Kochi Makers",
        "point_name": "makers-pt",
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def place_row(**overrides):
    row = {
        "id": "pl-1",
        "name": "Katsurahama",
        "city_code": "39201",
        "address": "Urado, Kochi",
        "latitude": 33.4968,
        "longitude": 133.5748,
        "community_id": "com-1",
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def slot_row(**overrides):
    row = {
        "id": "slot-1",
        "opportunity_id": "opp-1",
        "starts_at": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        "ends_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        "capacity": 10,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def article_row(**overrides):
    row = {
        "id": "art-1",
        "title": "Autumn festival",
        "introduction": None,
        "body": None,
        "category": "ACTIVITY_REPORT",
        "publish_status": "PUBLIC",
        "thumbnail_id": None,
        "community_id": "com-1",
        "published_at": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


# --- app-wide behaviour ---


def test_security_headers(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    csp = resp.headers["content-security-policy"]
    assert "img-src 'self' data: blob:" in csp
    assert "https://storage.googleapis.com" in csp
    assert resp.headers["x-content-type-options"] == "nosniff"


def test_count_draft_relations(client):
    resp = client.get(f"{CM}/collection-types/api::article.article/art-1/actions/countDraftRelations")
    assert resp.json() == {"data": 0}

    resp = client.get(f"{CM}/collection-types/api::unknown.unknown/x/actions/countDraftRelations")
    assert resp.status_code == 404
    assert resp.json()["error"]["name"] == "NotFoundError"


def test_validation_errors_use_bad_request_envelope(client):
    resp = client.get(f"{CM}/collection-types/api::community.community", params={"page": "first"})

    assert resp.status_code == 400
    assert resp.json()["error"]["name"] == "BadRequestError"


# --- communities ---


def test_community_list_passes_filters(client, monkeypatch):
    seen = {}

    async def list_communities(params, **filters):
        seen.update(filters, query=params.query, sort=params.sort)
        return [community_row()], 1

    monkeypatch.setattr(community_repository, "list_communities", list_communities)

    resp = client.get(
        f"{CM}/relations/api::opportunity.opportunity/opp-1/community",
        params={"_q": "kochi", "sort": "name:ASC"},
    )

    assert resp.status_code == 200
    assert resp.json()["results"][0]["pointName"] == "makers-pt"
    assert seen["opportunity_id"] == "opp-1"
    assert seen["query"] == "kochi"
    assert seen["sort"] == "name:ASC"


def test_community_relation_without_entity_id(client, monkeypatch):
    seen = {}

    async def list_communities(params, **filters):
        seen.update(filters)
        return [], 0

    monkeypatch.setattr(community_repository, "list_communities", list_communities)

    resp = client.get(f"{CM}/relations/api::opportunity.opportunity/community")

    assert resp.status_code == 200
    assert resp.json()["pagination"]["pageCount"] == 0
    assert seen["opportunity_id"] is None


def test_community_create_requires_fields(client):
    resp = client.post(f"{CM}/collection-types/api::community.community", json={"name": "x", "pointName": " "})
    assert resp.status_code == 400


def test_community_create_failure_is_generic(client, monkeypatch):
    async def create_community(**fields):
        raise RuntimeError("duplicate key")

    monkeypatch.setattr(community_repository, "create_community", create_community)

    resp = client.post(
        f"{CM}/collection-types/api::community.community",
        json={"name": "Makers", "pointName": "pt"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Failed to create data."


def test_community_update_skips_blank_fields(client, monkeypatch):
    captured = {}

    async def get_community(community_id):
        return community_row()

    async def update_community(community_id, **fields):
        captured.update(fields)
        return community_row(name=fields["name"] or "Kochi Makers")

    monkeypatch.setattr(community_repository, "get_community", get_community)
    monkeypatch.setattr(community_repository, "update_community", update_community)

    resp = client.put(
        f"{CM}/collection-types/api::community.community/com-1",
        json={"name": "Renamed", "pointName": ""},
    )

    assert resp.status_code == 200
    assert captured == {"name": "Renamed", "point_name": None}
    assert resp.json()["data"]["name"] == "Renamed"


def test_community_delete_missing(client, monkeypatch):
    async def get_community(community_id):
        return None

    monkeypatch.setattr(community_repository, "get_community", get_community)

    resp = client.delete(f"{CM}/collection-types/api::community.community/gone")
    assert resp.status_code == 404


# --- users ---


def test_user_create_defaults_prefecture(client, monkeypatch):
    captured = {}

    async def create_user(**fields):
        captured.update(fields)
        return {
            "id": "user-1",
            "name": fields["name"],
            "slug": fields["slug"],
            "current_prefecture": fields["current_prefecture"],
            "created_at": NOW,
            "updated_at": NOW,
        }

    monkeypatch.setattr(user_repository, "create_user", create_user)

    resp = client.post(f"{CM}/collection-types/api::user.user", json={"name": "Aoi"})

    assert resp.status_code == 200
    assert captured["current_prefecture"] == "OUTSIDE_SHIKOKU"
    assert resp.json()["data"]["currentPrefecture"] == "OUTSIDE_SHIKOKU"


def test_article_author_picker_filters_users(client, monkeypatch):
    seen = {}

    async def list_users(params, **filters):
        seen.update(filters)
        return [], 0

    monkeypatch.setattr(user_repository, "list_users", list_users)

    client.get(f"{CM}/relations/api::article.article/art-1/authors")
    assert seen["author_article_id"] == "art-1"

    client.get(f"{CM}/relations/api::article.article/art-1/relatedUsers")
    assert seen["related_article_id"] == "art-1"


# --- cities ---


@pytest.mark.parametrize(
    "method, path",
    [
        ("post", "/collection-types/api::city.city"),
        ("put", "/collection-types/api::city.city/39201"),
        ("delete", "/collection-types/api::city.city/39201"),
    ],
)
def test_cities_are_read_only(client, method, path):
    resp = client.request(method.upper(), f"{CM}{path}", json={"name": "x"})

    assert resp.status_code == 405
    assert resp.json()["error"]["name"] == "MethodNotAllowedError"


def test_city_node_combines_state_and_city(client, monkeypatch):
    async def get_city(code):
        return {"code": code, "name": "Kochi", "state_name": "Kochi Prefecture"}

    monkeypatch.setattr(city_repository, "get_city", get_city)

    resp = client.get(f"{CM}/collection-types/api::city.city/39201")

    assert resp.json()["data"] == {"id": "39201", "documentId": "39201", "name": "Kochi Prefecture Kochi"}


# --- places ---


def test_place_create_maps_lat_and_lng(client, monkeypatch):
    captured = {}

    async def create_place(**fields):
        captured.update(fields)
        return place_row(latitude=fields["latitude"], longitude=fields["longitude"])

    monkeypatch.setattr(place_repository, "create_place", create_place)

    payload = {
        "name": "Katsurahama",
        "address": "Urado, Kochi",
        "location": {"lat": "33.4968", "lng": 133.5748},
        "city": {"connect": [{"id": "39201"}]},
        "community": {"connect": [{"id": "com-1"}]},
    }
    resp = client.post(f"{CM}/collection-types/api::place.place", json=payload)

    assert resp.status_code == 200
    assert captured["latitude"] == pytest.approx(33.4968)
    assert captured["longitude"] == pytest.approx(133.5748)
    assert resp.json()["data"]["location"] == {"lat": 33.4968, "lng": 133.5748}


def test_place_update_rejects_bad_coordinate(client, monkeypatch):
    async def get_place(place_id):
        return place_row()

    monkeypatch.setattr(place_repository, "get_place", get_place)

    resp = client.put(f"{CM}/collection-types/api::place.place/pl-1", json={"location": {"lat": "north"}})

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "location.lat must be a number."


# --- opportunity slots ---


@pytest.fixture
def slot_store(monkeypatch):
    state = {}

    async def get_slot(slot_id):
        return slot_row() if slot_id == "slot-1" else None

    async def create_slot(**fields):
        state["created"] = fields
        return slot_row(**fields)

    async def update_slot(slot_id, **fields):
        state["updated"] = fields
        return slot_row()

    monkeypatch.setattr(slot_repository, "get_slot", get_slot)
    monkeypatch.setattr(slot_repository, "create_slot", create_slot)
    monkeypatch.setattr(slot_repository, "update_slot", update_slot)
    return state


def test_slot_create_rejects_inverted_range(client, slot_store):
    payload = {
        "startsAt": "2024-05-01T12:00:00Z",
        "endsAt": "2024-05-01T09:00:00Z",
        "opportunity": {"connect": [{"id": "opp-1"}]},
    }

    resp = client.post(f"{CM}/collection-types/api::opportunity-slot.opportunity-slot", json=payload)

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "startsAt must be earlier than endsAt."
    assert "created" not in slot_store


def test_slot_create_treats_naive_times_as_utc(client, slot_store):
    payload = {
        "startsAt": "2024-05-01T09:00:00",
        "endsAt": "2024-05-01T10:30:00",
        "capacity": 4,
        "opportunity": {"connect": [{"id": "opp-1"}]},
    }

    resp = client.post(f"{CM}/collection-types/api::opportunity-slot.opportunity-slot", json=payload)

    assert resp.status_code == 200
    assert slot_store["created"]["starts_at"] == datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
    assert slot_store["created"]["opportunity_id"] == "opp-1"


def test_slot_update_checks_against_stored_end(client, slot_store):
    # Stored slot ends at 12:00.
    resp = client.put(
        f"{CM}/collection-types/api::opportunity-slot.opportunity-slot/slot-1",
        json={"startsAt": "2024-05-01T13:00:00Z"},
    )

    assert resp.status_code == 400
    assert "updated" not in slot_store


def test_slot_update_can_set_capacity_to_zero(client, slot_store):
    resp = client.put(
        f"{CM}/collection-types/api::opportunity-slot.opportunity-slot/slot-1",
        json={"capacity": 0},
    )

    assert resp.status_code == 200
    assert slot_store["updated"]["capacity"] == 0
    assert slot_store["updated"]["starts_at"] is None


def test_slot_rejects_negative_capacity(client, slot_store):
    resp = client.put(
        f"{CM}/collection-types/api::opportunity-slot.opportunity-slot/slot-1",
        json={"capacity": -2},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["message"].startswith("Invalid opportunity slot")


def test_slot_find_one_embeds_opportunity(client, slot_store, monkeypatch):
    async def get_opportunity(opportunity_id):
        return {
            "id": opportunity_id,
            "title": "Beach cleanup",
            "description": None,
            "body": None,
            "category": "ACTIVITY",
            "require_approval": True,
            "community_id": "com-1",
            "place_id": "pl-1",
            "created_by": "user-1",
            "created_at": NOW,
            "updated_at": NOW,
        }

    monkeypatch.setattr(opportunity_repository, "get_opportunity", get_opportunity)

    resp = client.get(f"{CM}/collection-types/api::opportunity-slot.opportunity-slot/slot-1")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["opportunity"]["title"] == "Beach cleanup"
    assert data["opportunity"]["requireApproval"] is True


# --- articles ---


@pytest.fixture
def article_store(monkeypatch, fake_transaction):
    state = {"links": [], "inserted": []}

    async def create_article(conn, **fields):
        state["created"] = fields
        return article_row(thumbnail_id=fields["thumbnail_id"])

    async def update_links(conn, article_id, field, *, connect, disconnect):
        state["links"].append((field, connect, disconnect))

    async def ids_by_url(urls):
        return {"https://storage.googleapis.com/assets/articles/old.jpg": "img-old"}

    async def insert_image(conn, record):
        state["inserted"].append(record)
        return "img-new"

    async def get_images(ids):
        return {}

    monkeypatch.setattr(article_repository, "create_article", create_article)
    monkeypatch.setattr(article_repository, "update_links", update_links)
    monkeypatch.setattr(image_repository, "ids_by_url", ids_by_url)
    monkeypatch.setattr(image_repository, "insert_image", insert_image)
    monkeypatch.setattr(image_repository, "get_images", get_images)
    return state


def article_payload(**overrides):
    payload = {
        "title": "Autumn festival",
        "community": {"connect": [{"id": "com-1"}]},
        "authors": {"connect": [{"id": "user-1"}, {"id": "user-2"}], "disconnect": []},
        "publishedAtOnDB": "2024-10-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


def test_article_create_reuses_thumbnail_by_url(client, article_store):
    thumbnail = {"url": "https://storage.googleapis.com/assets/articles/old.jpg"}

    resp = client.post(f"{CM}/collection-types/api::article.article", json=article_payload(thumbnail=thumbnail))

    assert resp.status_code == 200
    assert article_store["created"]["thumbnail_id"] == "img-old"
    assert article_store["inserted"] == []
    assert article_store["links"] == [("authors", ["user-1", "user-2"], [])]
    assert article_store["created"]["published_at"] == datetime(2024, 10, 1, tzinfo=timezone.utc)


def test_article_create_stores_new_thumbnail(client, article_store):
    thumbnail = {
        "url": "https://storage.googleapis.com/assets/articles/new.jpg",
        "size": 30,
        "width": 640,
        "height": 480,
        "mime": "image/jpeg",
        "ext": ".jpg",
    }

    resp = client.post(f"{CM}/collection-types/api::article.article", json=article_payload(thumbnail=thumbnail))

    assert resp.status_code == 200
    assert article_store["created"]["thumbnail_id"] == "img-new"
    assert article_store["inserted"][0].filename == "new.jpg"


def test_article_create_rejects_incomplete_thumbnail(client, article_store):
    thumbnail = {"url": "https://storage.googleapis.com/assets/articles/new.jpg"}

    resp = client.post(f"{CM}/collection-types/api::article.article", json=article_payload(thumbnail=thumbnail))

    assert resp.status_code == 400
    assert resp.json()["error"]["message"].startswith("Invalid thumbnail")
    assert "created" not in article_store


def test_article_create_rejects_bad_publish_date(client, article_store):
    resp = client.post(
        f"{CM}/collection-types/api::article.article",
        json=article_payload(publishedAtOnDB="next week"),
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "publishedAtOnDB must be a date-time."


@pytest.mark.parametrize(
    "method, path, message",
    [
        ("POST", "/collection-types/api::article.article", "Failed to create data."),
        ("PUT", "/collection-types/api::article.article/art-1", "Failed to update data."),
    ],
)
def test_article_thumbnail_lookup_failure_is_generic(client, article_store, monkeypatch, method, path, message):
    async def get_article(article_id):
        return article_row()

    async def ids_by_url(urls):
        raise ConnectionError("db down")

    monkeypatch.setattr(article_repository, "get_article", get_article)
    monkeypatch.setattr(image_repository, "ids_by_url", ids_by_url)
    thumbnail = {"url": "https://storage.googleapis.com/assets/articles/old.jpg"}

    resp = client.request(method, f"{CM}{path}", json=article_payload(thumbnail=thumbnail))

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == message
    assert "created" not in article_store
