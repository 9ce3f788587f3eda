"""HTTP tests for articles, comments, replies, notifications, statistics and the live channel."""

from fastapi.testclient import TestClient

from support import ARTICLE_BODY, ApiTestCase

from scribe.models import Article, Comment, Notification


class TestArticles(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.writer = self.make_user("wendy@blog.io", role="writer", first="Wendy")
        self.other_writer = self.make_user("walt@blog.io", role="writer", first="Walt")
        self.editor = self.make_user("ed@blog.io", role="editor", first="Ed")
        self.guest = self.make_user("gus@blog.io", role="guest", first="Gus")

    def test_writer_creates_article(self) -> None:
        resp = self.client.post(
            "/api/v1/articles",
            json={"title": "Hello world", "content": ARTICLE_BODY, "tags": ["python", " python ", "api"]},
            headers=self.auth(self.writer),
        )
        self.assertEqual(resp.status_code, 201)
        data = resp.json()["data"]
        self.assertEqual(data["tags"], ["python", "api"])
        self.assertEqual(data["owner_id"], self.writer.id)
        self.assertEqual(data["author"]["email"], "wendy@blog.io")

    def test_guest_cannot_create_article(self) -> None:
        resp = self.client.post(
            "/api/v1/articles",
            json={"title": "Hello world", "content": ARTICLE_BODY},
            headers=self.auth(self.guest),
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Not allowed to create Article")

    def test_anonymous_create_is_unauthorized(self) -> None:
        resp = self.client.post("/api/v1/articles", json={"title": "Hello world", "content": ARTICLE_BODY})
        self.assertEqual(resp.status_code, 401)

    def test_short_content_rejected(self) -> None:
        resp = self.client.post(
            "/api/v1/articles",
            json={"title": "Hello world", "content": "too short"},
            headers=self.auth(self.writer),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("content", resp.json()["errors"])

    def test_list_filters_and_pagination(self) -> None:
        self.make_article(self.writer, title="Python tips", tags=["python"])
        self.make_article(self.writer, title="Rust notes", tags=["rust"])
        self.make_article(self.other_writer, title="More Python", tags=["python"])

        resp = self.client.get("/api/v1/articles", params={"tag": "python"})
        self.assertEqual(resp.json()["data"]["pagination"]["total"], 2)

        resp = self.client.get("/api/v1/articles", params={"author_id": self.writer.id, "limit": 1})
        page = resp.json()["data"]
        self.assertEqual(page["pagination"]["total"], 2)
        self.assertEqual(page["pagination"]["total_pages"], 2)
        self.assertEqual(len(page["items"]), 1)

        resp = self.client.get("/api/v1/articles", params={"search": "rust"})
        self.assertEqual([a["title"] for a in resp.json()["data"]["items"]], ["Rust notes"])

    def test_get_increments_views(self) -> None:
        article = self.make_article(self.writer)
        self.client.get(f"/api/v1/articles/{article.id}")
        resp = self.client.get(f"/api/v1/articles/{article.id}")
        self.assertEqual(resp.json()["data"]["views"], 2)

    def test_get_missing(self) -> None:
        self.assertEqual(self.client.get("/api/v1/articles/9999").status_code, 404)

    def test_owner_updates_own_article(self) -> None:
        article = self.make_article(self.writer)
        resp = self.client.put(
            f"/api/v1/articles/{article.id}",
            json={"title": "Renamed article"},
            headers=self.auth(self.writer),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["title"], "Renamed article")

    def test_writer_cannot_update_others_article(self) -> None:
        article = self.make_article(self.other_writer)
        resp = self.client.put(
            f"/api/v1/articles/{article.id}",
            json={"title": "Hijacked title"},
            headers=self.auth(self.writer),
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], f"Not allowed to update Article {article.id}")

    def test_editor_deletes_any_article_with_comments(self) -> None:
        article = self.make_article(self.writer)
        self.client.post(
            f"/api/v1/comments/articles/{article.id}",
            json={"content": "First!"},
            headers=self.auth(self.guest),
        )
        resp = self.client.delete(f"/api/v1/articles/{article.id}", headers=self.auth(self.editor))
        self.assertEqual(resp.status_code, 200)
        self.db.expire_all()
        self.assertIsNone(self.db.get(Article, article.id))
        self.assertEqual(self.db.query(Comment).count(), 0)

    def test_editor_missing_article_is_not_found(self) -> None:
        resp = self.client.delete("/api/v1/articles/9999", headers=self.auth(self.editor))
        self.assertEqual(resp.status_code, 404)


class TestCommentsAndReplies(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.writer = self.make_user("wendy@blog.io", role="writer", first="Wendy", last="Writer")
        self.guest = self.make_user("gus@blog.io", role="guest", first="Gus", last="Guest")
        self.other = self.make_user("olga@blog.io", role="guest", first="Olga", last="Other")
        self.article = self.make_article(self.writer, title="Commented article")

    def _comment(self, user, content: str = "Great read") -> dict:
        resp = self.client.post(
            f"/api/v1/comments/articles/{self.article.id}",
            json={"content": content},
            headers=self.auth(user),
        )
        self.assertEqual(resp.status_code, 201)
        return resp.json()["data"]

    def test_comment_increments_counter_and_notifies_owner(self) -> None:
        comment = self._comment(self.guest)
        self.db.expire_all()
        self.assertEqual(self.db.get(Article, self.article.id).comment_count, 1)

        notifications = self.db.query(Notification).filter(Notification.owner_id == self.writer.id).all()
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0].type, "comment")
        self.assertEqual(notifications[0].reference_id, comment["id"])
        self.assertEqual(notifications[0].message, "New comment on Commented article: Great read")
        self.assertEqual(notifications[0].meta["comment_author"], "Gus Guest")

    def test_owner_comment_does_not_notify(self) -> None:
        self._comment(self.writer)
        self.assertEqual(self.db.query(Notification).count(), 0)

    def test_comment_on_missing_article(self) -> None:
        resp = self.client.post(
            "/api/v1/comments/articles/9999",
            json={"content": "Hello"},
            headers=self.auth(self.guest),
        )
        self.assertEqual(resp.status_code, 404)

    def test_list_comments_by_user(self) -> None:
        self._comment(self.guest)
        self._comment(self.other)
        resp = self.client.get(
            f"/api/v1/comments/articles/{self.article.id}",
            params={"user_id": self.other.id},
        )
        page = resp.json()["data"]
        self.assertEqual(page["pagination"]["total"], 1)
        self.assertEqual(page["items"][0]["owner_id"], self.other.id)

    def test_only_owner_edits_comment(self) -> None:
        comment = self._comment(self.guest)
        denied = self.client.patch(
            f"/api/v1/comments/{comment['id']}",
            json={"content": "Edited"},
            headers=self.auth(self.other),
        )
        self.assertEqual(denied.status_code, 403)
        allowed = self.client.patch(
            f"/api/v1/comments/{comment['id']}",
            json={"content": "Edited"},
            headers=self.auth(self.guest),
        )
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(allowed.json()["data"]["content"], "Edited")

    def test_delete_comment_decrements_counter(self) -> None:
        comment = self._comment(self.guest)
        resp = self.client.delete(f"/api/v1/comments/{comment['id']}", headers=self.auth(self.guest))
        self.assertEqual(resp.status_code, 200)
        self.db.expire_all()
        self.assertEqual(self.db.get(Article, self.article.id).comment_count, 0)

    def test_reply_flow(self) -> None:
        comment = self._comment(self.guest)
        resp = self.client.post(
            f"/api/v1/replies/comments/{comment['id']}",
            json={"content": "Agreed"},
            headers=self.auth(self.other),
        )
        self.assertEqual(resp.status_code, 201)
        reply = resp.json()["data"]

        self.db.expire_all()
        self.assertEqual(self.db.get(Comment, comment["id"]).reply_count, 1)
        reply_notes = self.db.query(Notification).filter(Notification.owner_id == self.guest.id).all()
        self.assertEqual([n.type for n in reply_notes], ["reply"])

        listed = self.client.get(f"/api/v1/replies/comments/{comment['id']}").json()["data"]
        self.assertEqual([r["id"] for r in listed], [reply["id"]])

        denied = self.client.put(
            f"/api/v1/replies/{reply['id']}",
            json={"content": "Changed"},
            headers=self.auth(self.guest),
        )
        self.assertEqual(denied.status_code, 403)

        deleted = self.client.delete(f"/api/v1/replies/{reply['id']}", headers=self.auth(self.other))
        self.assertEqual(deleted.status_code, 200)
        self.db.expire_all()
        self.assertEqual(self.db.get(Comment, comment["id"]).reply_count, 0)

    def test_reply_to_missing_comment(self) -> None:
        resp = self.client.post(
            "/api/v1/replies/comments/9999",
            json={"content": "Hello"},
            headers=self.auth(self.guest),
        )
        self.assertEqual(resp.status_code, 404)


class TestNotificationEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.writer = self.make_user("wendy@blog.io", role="writer")
        self.guest = self.make_user("gus@blog.io")
        self.article = self.make_article(self.writer)
        for text in ("one", "two", "three"):
            self.client.post(
                f"/api/v1/comments/articles/{self.article.id}",
                json={"content": text},
                headers=self.auth(self.guest),
            )

    def test_list_is_scoped_to_caller(self) -> None:
        mine = self.client.get("/api/v1/notifications", headers=self.auth(self.writer)).json()["data"]
        self.assertEqual(mine["pagination"]["total"], 3)
        theirs = self.client.get("/api/v1/notifications", headers=self.auth(self.guest)).json()["data"]
        self.assertEqual(theirs["pagination"]["total"], 0)

    def test_limit_is_clamped(self) -> None:
        resp = self.client.get(
            "/api/v1/notifications",
            params={"limit": 1000},
            headers=self.auth(self.writer),
        )
        self.assertEqual(resp.json()["data"]["pagination"]["limit"], 100)

    def test_mark_read_and_filter(self) -> None:
        first = self.db.query(Notification).first()
        denied = self.client.patch(f"/api/v1/notifications/{first.id}", headers=self.auth(self.guest))
        self.assertEqual(denied.status_code, 403)

        resp = self.client.patch(f"/api/v1/notifications/{first.id}", headers=self.auth(self.writer))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["data"]["read"])

        unread = self.client.get(
            "/api/v1/notifications",
            params={"read": "false"},
            headers=self.auth(self.writer),
        ).json()["data"]
        self.assertEqual(unread["pagination"]["total"], 2)

    def test_mark_all_read(self) -> None:
        resp = self.client.patch("/api/v1/notifications/read-all", headers=self.auth(self.writer))
        self.assertEqual(resp.json()["data"], {"updated": 3})


class TestStatistics(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("root@blog.io", role="admin", first="Root")
        self.editor = self.make_user("ed@blog.io", role="editor", first="Ed")
        self.writer = self.make_user("wendy@blog.io", role="writer", first="Wendy")
        self.make_article(self.writer, title="Python one", tags=["python", "api"])
        self.make_article(self.writer, title="Python two", tags=["python"])

    def test_editor_is_denied(self) -> None:
        resp = self.client.get("/api/v1/statistics/overview", headers=self.auth(self.editor))
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "Not allowed to read Statistics")

    def test_overview(self) -> None:
        data = self.client.get("/api/v1/statistics/overview", headers=self.auth(self.admin)).json()["data"]
        self.assertEqual(data["total_articles"], 2)
        # Writer, editor and admin all count as authors.
        self.assertEqual(data["total_authors"], 3)
        self.assertEqual(data["total_tags"], 2)

    def test_top_tags_and_authors(self) -> None:
        tags = self.client.get("/api/v1/statistics/tags/top", headers=self.auth(self.admin)).json()["data"]
        self.assertEqual(tags[0], {"tag": "python", "count": 2})
        authors = self.client.get("/api/v1/statistics/authors/top", headers=self.auth(self.admin)).json()["data"]
        self.assertEqual(authors[0]["article_count"], 2)
        self.assertEqual(authors[0]["author_id"], self.writer.id)

    def test_monthly_and_average(self) -> None:
        monthly = self.client.get(
            "/api/v1/statistics/articles/monthly", headers=self.auth(self.admin)
        ).json()["data"]
        self.assertEqual(sum(m["count"] for m in monthly), 2)
        average = self.client.get(
            "/api/v1/statistics/articles/average", headers=self.auth(self.admin)
        ).json()["data"]
        self.assertEqual(average["average_per_author"], round(2 / 3, 2))

    def test_author_frequency_and_trend(self) -> None:
        frequency = self.client.get(
            "/api/v1/statistics/authors/frequency", headers=self.auth(self.admin)
        ).json()["data"]
        self.assertEqual(frequency[0]["average_per_month"], 2.0)
        trend = self.client.get("/api/v1/statistics/authors/trend", headers=self.auth(self.admin)).json()["data"]
        self.assertEqual(trend[0]["count"], 2)


class TestHealthAndLiveChannel(ApiTestCase):
    def test_health(self) -> None:
        resp = self.client.get("/api/v1/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["database"], "connected")

    def test_unhandled_error_returns_generic_500(self) -> None:
        @self.app.get("/boom")
        def boom() -> None:
            raise RuntimeError("secret internals")

        client = TestClient(self.app, raise_server_exceptions=False)
        resp = client.get("/boom")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"success": False, "message": "Internal server error"})

    def test_websocket_receives_new_comment_notification(self) -> None:
        writer = self.make_user("wendy@blog.io", role="writer")
        guest = self.make_user("gus@blog.io")
        article = self.make_article(writer, title="Live article")

        with self.client.websocket_connect(f"/api/v1/ws/notifications?token={self.token_for(writer)}") as ws:
            self.client.post(
                f"/api/v1/comments/articles/{article.id}",
                json={"content": "Pushed live"},
                headers=self.auth(guest),
            )
            message = ws.receive_json()

        self.assertEqual(message["event"], "new_notification")
        self.assertEqual(message["data"]["owner_id"], writer.id)
        self.assertEqual(message["data"]["message"], "New comment on Live article: Pushed live")

    def test_websocket_rejects_bad_token(self) -> None:
        from starlette.websockets import WebSocketDisconnect

        with self.assertRaises(WebSocketDisconnect) as ctx:
            with self.client.websocket_connect("/api/v1/ws/notifications?token=bogus") as ws:
                ws.receive_json()
        self.assertEqual(ctx.exception.code, 4001)
