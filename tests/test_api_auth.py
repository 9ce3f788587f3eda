"""HTTP tests for auth endpoints, the bearer-token dependency and admin user management."""

from datetime import UTC, datetime, timedelta

from support import PASSWORD, ApiTestCase

from scribe.core.tokens import TokenService


class TestRegisterAndLogin(ApiTestCase):
    def test_register_returns_guest_without_password(self) -> None:
        resp = self.client.post(
            "/api/v1/auth/register",
            json={
                "first_name": "Ada",
                "last_name": "Lovelace",
                "email": "ada@blog.io",
                "password": "Secret123",
            },
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["role"], "guest")
        self.assertEqual(body["data"]["full_name"], "Ada Lovelace")
        self.assertNotIn("password_hash", body["data"])

    def test_register_validation_errors_are_keyed_by_field(self) -> None:
        resp = self.client.post(
            "/api/v1/auth/register",
            json={"first_name": "A", "last_name": "Lovelace", "email": "ada@blog.io", "password": "lowercase1"},
        )
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertIn("first_name", body["errors"])
        self.assertIn("password", body["errors"])
        self.assertTrue(body["errors"]["password"][0].startswith("Password must contain"))

    def test_register_duplicate_email(self) -> None:
        self.make_user("ada@blog.io")
        resp = self.client.post(
            "/api/v1/auth/register",
            json={"first_name": "Ada", "last_name": "Again", "email": "ada@blog.io", "password": "Secret123"},
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["message"], "User already exists with this email address")

    def test_login_returns_token_pair(self) -> None:
        self.make_user("ada@blog.io", role="writer")
        resp = self.client.post("/api/v1/auth/login", json={"email": "ada@blog.io", "password": PASSWORD})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["user"]["role"], "writer")
        self.assertEqual(data["access_expires_in_ms"], 900_000)
        self.assertEqual(data["token_type"], "bearer")

        profile = self.client.get(
            "/api/v1/auth/profile",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        self.assertEqual(profile.status_code, 200)
        self.assertEqual(profile.json()["data"]["email"], "ada@blog.io")

    def test_login_wrong_password(self) -> None:
        self.make_user("ada@blog.io")
        resp = self.client.post("/api/v1/auth/login", json={"email": "ada@blog.io", "password": "Nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid email or password")


class TestRefresh(ApiTestCase):
    def test_refresh_issues_new_access_token(self) -> None:
        user = self.make_user("ada@blog.io")
        pair = self.app.state.token_service.issue_token_pair(user)
        resp = self.client.post("/api/v1/auth/refresh", json={"refresh_token": pair.refresh_token})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["refresh_token"], pair.refresh_token)
        profile = self.client.get(
            "/api/v1/auth/profile",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        self.assertEqual(profile.status_code, 200)

    def test_missing_refresh_token(self) -> None:
        resp = self.client.post("/api/v1/auth/refresh", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Refresh token is required")

    def test_access_token_rejected_as_refresh(self) -> None:
        user = self.make_user("ada@blog.io")
        resp = self.client.post("/api/v1/auth/refresh", json={"refresh_token": self.token_for(user)})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid refresh token: Invalid token type")

    def test_deleted_user(self) -> None:
        user = self.make_user("ada@blog.io")
        pair = self.app.state.token_service.issue_token_pair(user)
        self.db.delete(user)
        self.db.commit()
        resp = self.client.post("/api/v1/auth/refresh", json={"refresh_token": pair.refresh_token})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "User not found")


class TestAuthenticateDependency(ApiTestCase):
    def _profile(self, headers: dict[str, str] | None = None):
        return self.client.get("/api/v1/auth/profile", headers=headers or {})

    def test_missing_header(self) -> None:
        resp = self._profile()
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Access token is required")

    def test_wrong_scheme(self) -> None:
        resp = self._profile({"Authorization": "Token abc"})
        self.assertEqual(resp.json()["message"], "Access token is required")

    def test_malformed_token(self) -> None:
        resp = self._profile({"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid access token: Invalid token format")

    def test_refresh_token_as_access(self) -> None:
        user = self.make_user("ada@blog.io")
        refresh = self.app.state.token_service.issue_token_pair(user).refresh_token
        resp = self._profile({"Authorization": f"Bearer {refresh}"})
        self.assertEqual(resp.json()["message"], "Invalid access token: Invalid token type")

    def test_expired_token(self) -> None:
        user = self.make_user("ada@blog.io")
        past = datetime.now(UTC) - timedelta(hours=2)
        stale = TokenService(self.app.state.token_service.config, clock=lambda: past)
        token = stale.issue_token_pair(user).access_token
        resp = self._profile({"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Access token expired")

    def test_unknown_principal(self) -> None:
        user = self.make_user("ada@blog.io")
        headers = self.auth(user)
        self.db.delete(user)
        self.db.commit()
        resp = self._profile(headers)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "User not found")


class TestProfileEndpoints(ApiTestCase):
    def test_update_profile(self) -> None:
        user = self.make_user("ada@blog.io")
        resp = self.client.patch(
            "/api/v1/auth/profile",
            json={"first_name": "Augusta"},
            headers=self.auth(user),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["first_name"], "Augusta")

    def test_change_password_mismatch(self) -> None:
        user = self.make_user("ada@blog.io")
        resp = self.client.post(
            "/api/v1/auth/password",
            json={"current_password": PASSWORD, "new_password": "Better123", "confirm_password": "Other123"},
            headers=self.auth(user),
        )
        self.assertEqual(resp.status_code, 400)

    def test_change_password_wrong_current(self) -> None:
        user = self.make_user("ada@blog.io")
        resp = self.client.post(
            "/api/v1/auth/password",
            json={"current_password": "Wrong123", "new_password": "Better123", "confirm_password": "Better123"},
            headers=self.auth(user),
        )
        self.assertEqual(resp.status_code, 401)

    def test_logout(self) -> None:
        user = self.make_user("ada@blog.io")
        resp = self.client.post("/api/v1/auth/logout", headers=self.auth(user))
        self.assertEqual(resp.status_code, 200)


class TestAdminUsers(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("root@blog.io", role="admin", first="Root")
        self.editor = self.make_user("ed@blog.io", role="editor", first="Ed")
        self.guest = self.make_user("gus@blog.io", role="guest", first="Gus")

    def test_admin_lists_users(self) -> None:
        resp = self.client.get(
            "/api/v1/admin/users",
            params={"role": "guest"},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.status_code, 200)
        page = resp.json()["data"]
        self.assertEqual(page["pagination"]["total"], 1)
        self.assertEqual(page["items"][0]["email"], "gus@blog.io")

    def test_editor_cannot_list_users(self) -> None:
        resp = self.client.get("/api/v1/admin/users", headers=self.auth(self.editor))
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Not allowed to read User")

    def test_limit_above_maximum_rejected(self) -> None:
        resp = self.client.get(
            "/api/v1/admin/users",
            params={"limit": 500},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.status_code, 400)

    def test_admin_elevates_role(self) -> None:
        resp = self.client.patch(
            f"/api/v1/admin/users/{self.guest.id}",
            json={"role": "writer"},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["role"], "writer")

    def test_non_admin_cannot_elevate(self) -> None:
        resp = self.client.patch(
            f"/api/v1/admin/users/{self.guest.id}",
            json={"role": "writer"},
            headers=self.auth(self.editor),
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Insufficient permissions")

    def test_demotion_rejected(self) -> None:
        resp = self.client.patch(
            f"/api/v1/admin/users/{self.editor.id}",
            json={"role": "writer"},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("role", resp.json()["errors"])

    def test_unknown_user(self) -> None:
        resp = self.client.patch(
            "/api/v1/admin/users/9999",
            json={"role": "writer"},
            headers=self.auth(self.admin),
        )
        self.assertEqual(resp.status_code, 404)
