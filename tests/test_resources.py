"""
Tests for the Resources API

Endpoints:
- POST /api/v1/resources
- GET /api/v1/resources/{resource_id}
- PATCH /api/v1/resources/{resource_id}
- DELETE /api/v1/resources/{resource_id}
- GET /api/v1/resources/{resource_id}/rating
- GET /api/v1/resources/{resource_id}/ratings
"""

from collections.abc import Callable

from fastapi import status
from fastapi.testclient import TestClient

from app.models import Resource, User
from app.services.security import create_access_token


def get_auth_header(user: User) -> dict:
    """Create authorization header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def rate(client: TestClient, user: User, resource_id: int, value: int) -> int:
    response = client.post(
        "/api/v1/ratings",
        json={"resource_id": resource_id, "value": value},
        headers=get_auth_header(user),
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["rating"]["id"]


class TestCreateResource:
    """Tests for POST /api/v1/resources"""

    def test_create_resource(self, client: TestClient, author: User):
        response = client.post(
            "/api/v1/resources",
            json={
                "title": "  Data Structures Final 2023  ",
                "subject": "Computer Science",
                "resource_type": "Exam Paper",
                "semester": "4",
            },
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["title"] == "Data Structures Final 2023"
        assert data["author_id"] == author.id
        assert data["author"]["username"] == "author"
        assert data["average_rating"] == 0.0
        assert data["total_ratings"] == 0

    def test_defaults(self, client: TestClient, author: User):
        response = client.post(
            "/api/v1/resources",
            json={"title": "Misc handout"},
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["subject"] == "Other"
        assert response.json()["resource_type"] == "Other"

    def test_unknown_subject(self, client: TestClient, author: User):
        response = client.post(
            "/api/v1/resources",
            json={"title": "Notes", "subject": "Astrology"},
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_requires_authentication(self, client: TestClient):
        response = client.post("/api/v1/resources", json={"title": "Notes"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestGetResource:
    """Tests for GET /api/v1/resources/{resource_id}"""

    def test_get_resource(self, client: TestClient, sample_resource: Resource):
        response = client.get(f"/api/v1/resources/{sample_resource.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["title"] == "Linear Algebra Midterm Notes"
        assert response.json()["total_ratings"] == 0

    def test_summary_reflects_ratings(
        self,
        client: TestClient,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        for rater, value in zip(make_users(4), [3, 4, 3, 3]):
            rate(client, rater, sample_resource.id, value)

        data = client.get(f"/api/v1/resources/{sample_resource.id}").json()

        assert data["average_rating"] == 3.3
        assert data["total_ratings"] == 4

    def test_not_found(self, client: TestClient):
        response = client.get("/api/v1/resources/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestUpdateResource:
    """Tests for PATCH /api/v1/resources/{resource_id}"""

    def test_author_can_update(
        self, client: TestClient, author: User, sample_resource: Resource
    ):
        response = client.patch(
            f"/api/v1/resources/{sample_resource.id}",
            json={"title": "  Linear Algebra Final Notes  ", "semester": "4"},
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Linear Algebra Final Notes"
        assert data["semester"] == "4"
        # Untouched fields keep their values
        assert data["subject"] == "Mathematics"
        assert data["resource_type"] == "Notes"

    def test_update_bumps_version(
        self, client: TestClient, db_session, author: User, sample_resource: Resource
    ):
        version = sample_resource.version

        client.patch(
            f"/api/v1/resources/{sample_resource.id}",
            json={"description": "Now with worked examples."},
            headers=get_auth_header(author),
        )

        db_session.refresh(sample_resource)
        assert sample_resource.version == version + 1

    def test_update_keeps_rating_summary(
        self,
        client: TestClient,
        author: User,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        for rater, value in zip(make_users(2), [4, 5]):
            rate(client, rater, sample_resource.id, value)

        data = client.patch(
            f"/api/v1/resources/{sample_resource.id}",
            json={"title": "Renamed Notes"},
            headers=get_auth_header(author),
        ).json()

        assert data["average_rating"] == 4.5
        assert data["total_ratings"] == 2

    def test_non_author_forbidden(
        self, client: TestClient, sample_user: User, sample_resource: Resource
    ):
        response = client.patch(
            f"/api/v1/resources/{sample_resource.id}",
            json={"title": "Hijacked"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "You can only update your own resources"

    def test_blank_title(
        self, client: TestClient, author: User, sample_resource: Resource
    ):
        response = client.patch(
            f"/api/v1/resources/{sample_resource.id}",
            json={"title": "   "},
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_not_found(self, client: TestClient, author: User):
        response = client.patch(
            "/api/v1/resources/99999",
            json={"title": "Anything"},
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_requires_authentication(self, client: TestClient, sample_resource: Resource):
        response = client.patch(
            f"/api/v1/resources/{sample_resource.id}",
            json={"title": "Anything"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestDeleteResource:
    """Tests for DELETE /api/v1/resources/{resource_id}"""

    def test_author_can_delete(
        self,
        client: TestClient,
        db_session,
        author: User,
        sample_user: User,
        sample_resource: Resource,
    ):
        version = sample_resource.version

        response = client.delete(
            f"/api/v1/resources/{sample_resource.id}",
            headers=get_auth_header(author),
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT

        db_session.refresh(sample_resource)
        assert sample_resource.is_active is False
        assert sample_resource.version == version + 1

        get_response = client.get(f"/api/v1/resources/{sample_resource.id}")
        assert get_response.status_code == status.HTTP_404_NOT_FOUND

        rating_response = client.post(
            "/api/v1/ratings",
            json={"resource_id": sample_resource.id, "value": 4},
            headers=get_auth_header(sample_user),
        )
        assert rating_response.status_code == status.HTTP_404_NOT_FOUND

    def test_non_author_forbidden(
        self, client: TestClient, sample_user: User, sample_resource: Resource
    ):
        response = client.delete(
            f"/api/v1/resources/{sample_resource.id}",
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "You can only delete your own resources"
        assert client.get(f"/api/v1/resources/{sample_resource.id}").status_code == status.HTTP_200_OK

    def test_moderator_is_not_the_author(
        self, client: TestClient, superuser: User, sample_resource: Resource
    ):
        response = client.delete(
            f"/api/v1/resources/{sample_resource.id}",
            headers=get_auth_header(superuser),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_twice(self, client: TestClient, author: User, sample_resource: Resource):
        url = f"/api/v1/resources/{sample_resource.id}"

        client.delete(url, headers=get_auth_header(author))
        response = client.delete(url, headers=get_auth_header(author))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_requires_authentication(self, client: TestClient, sample_resource: Resource):
        response = client.delete(f"/api/v1/resources/{sample_resource.id}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestRatingStats:
    """Tests for GET /api/v1/resources/{resource_id}/rating"""

    def test_empty(self, client: TestClient, sample_resource: Resource):
        data = client.get(f"/api/v1/resources/{sample_resource.id}/rating").json()

        assert data["average_rating"] == 0.0
        assert data["total_ratings"] == 0
        assert data["rating_distribution"] == {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}

    def test_distribution(
        self,
        client: TestClient,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        for rater, value in zip(make_users(3), [5, 5, 2]):
            rate(client, rater, sample_resource.id, value)

        data = client.get(f"/api/v1/resources/{sample_resource.id}/rating").json()

        assert data["average_rating"] == 4.0
        assert data["rating_distribution"] == {"1": 0, "2": 1, "3": 0, "4": 0, "5": 2}

    def test_not_found(self, client: TestClient):
        response = client.get("/api/v1/resources/99999/rating")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestListResourceRatings:
    """Tests for GET /api/v1/resources/{resource_id}/ratings"""

    def test_empty(self, client: TestClient, sample_resource: Resource):
        data = client.get(f"/api/v1/resources/{sample_resource.id}/ratings").json()

        assert data["items"] == []
        assert data["total"] == 0
        assert data["pages"] == 0

    def test_pagination(
        self,
        client: TestClient,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        for i, rater in enumerate(make_users(7)):
            rate(client, rater, sample_resource.id, (i % 5) + 1)

        first = client.get(
            f"/api/v1/resources/{sample_resource.id}/ratings?per_page=5"
        ).json()
        second = client.get(
            f"/api/v1/resources/{sample_resource.id}/ratings?per_page=5&page=2"
        ).json()

        assert first["total"] == 7
        assert first["pages"] == 2
        assert len(first["items"]) == 5
        assert len(second["items"]) == 2
        first_ids = {item["id"] for item in first["items"]}
        assert first_ids.isdisjoint(item["id"] for item in second["items"])

    def test_hidden_excluded_by_default(
        self,
        client: TestClient,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        raters = make_users(2)
        hidden_id = rate(client, raters[0], sample_resource.id, 1)
        visible_id = rate(client, raters[1], sample_resource.id, 5)
        for reporter in make_users(3, prefix="reporter"):
            client.post(
                f"/api/v1/ratings/{hidden_id}/report",
                headers=get_auth_header(reporter),
            )

        data = client.get(f"/api/v1/resources/{sample_resource.id}/ratings").json()

        assert [item["id"] for item in data["items"]] == [visible_id]
        assert data["total"] == 1

    def test_moderator_can_include_hidden(
        self,
        client: TestClient,
        superuser: User,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        raters = make_users(2)
        hidden_id = rate(client, raters[0], sample_resource.id, 1)
        rate(client, raters[1], sample_resource.id, 5)
        for reporter in make_users(3, prefix="reporter"):
            client.post(
                f"/api/v1/ratings/{hidden_id}/report",
                headers=get_auth_header(reporter),
            )

        data = client.get(
            f"/api/v1/resources/{sample_resource.id}/ratings?include_hidden=true",
            headers=get_auth_header(superuser),
        ).json()

        assert data["total"] == 2
        states = {item["id"]: item["state"] for item in data["items"]}
        assert states[hidden_id] == "hidden"

    def test_include_hidden_forbidden_for_regular_users(
        self, client: TestClient, sample_user: User, sample_resource: Resource
    ):
        response = client.get(
            f"/api/v1/resources/{sample_resource.id}/ratings?include_hidden=true",
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_not_found(self, client: TestClient):
        response = client.get("/api/v1/resources/99999/ratings")

        assert response.status_code == status.HTTP_404_NOT_FOUND
