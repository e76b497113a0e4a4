"""
Tests for the rank ladder and per-profile rank endpoints
"""
from tests.helpers.gallery_helpers import auth_headers, create_image, create_profile

NEW_LADDER = {
    "tiers": [
        {"name": "Overseer", "color": "#FF0000", "required_exp": -1},
        {"name": "Rookie", "color": "#999999", "required_exp": 0},
        {"name": "Veteran", "color": "#00AAFF", "required_exp": 250},
    ]
}


def test_list_ranks_returns_default_ladder(client):
    response = client.get("/v1/ranks")
    assert response.status_code == 200
    tiers = response.json()
    thresholds = [t["required_exp"] for t in tiers]
    assert thresholds == sorted(thresholds)
    assert -1 in thresholds and 0 in thresholds


def test_admin_replaces_ladder_and_resolver_sees_it(client, db, admin):
    response = client.put("/v1/ranks", json=NEW_LADDER, headers=auth_headers(admin))
    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["Overseer", "Rookie", "Veteran"]

    assert [t["name"] for t in client.get("/v1/ranks").json()] == ["Overseer", "Rookie", "Veteran"]

    notes = client.get("/v1/notifications", headers=auth_headers(admin)).json()
    assert [n["level"] for n in notes] == ["success"]

    veteran = create_profile(db, "vet", exp=300)
    rank = client.get(f"/v1/profiles/{veteran.id}/rank").json()
    assert rank["name"] == "Veteran"

    admin_rank = client.get(f"/v1/profiles/{admin.id}/rank").json()
    assert admin_rank["name"] == "Overseer"
    assert admin_rank["style_class"] == "admin"


def test_member_cannot_replace_ladder(client, member):
    response = client.put("/v1/ranks", json=NEW_LADDER, headers=auth_headers(member))
    assert response.status_code == 403
    assert "administrators" in response.json()["detail"]


def test_anonymous_cannot_replace_ladder(client):
    response = client.put("/v1/ranks", json=NEW_LADDER)
    assert response.status_code == 401


def test_duplicate_thresholds_rejected(client, admin):
    body = {"tiers": NEW_LADDER["tiers"] + [{"name": "Copy", "required_exp": 250}]}
    response = client.put("/v1/ranks", json=body, headers=auth_headers(admin))
    assert response.status_code == 400
    assert "duplicated" in response.json()["detail"]


def test_invalid_token_rejected(client):
    response = client.put("/v1/ranks", json=NEW_LADDER, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_profile_rank_and_progress(client, db):
    user = create_profile(db, "climber", exp=50)
    create_image(db, user)

    rank = client.get(f"/v1/profiles/{user.id}/rank").json()
    assert rank["name"] == "Member"
    assert rank["post_count"] == 1
    assert rank["style_class"] == "base"

    progress = client.get(f"/v1/profiles/{user.id}/progress").json()
    assert progress["current_tier"]["name"] == "Member"
    assert progress["next_tier"]["name"] == "Apprentice"
    assert progress["progress_percent"] == 50.0


def test_rank_of_unknown_profile(client):
    response = client.get("/v1/profiles/missing/rank")
    assert response.status_code == 404
