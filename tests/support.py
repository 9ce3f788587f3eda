"""Shared fixtures for API tests: a fresh in-memory schema, an app client and seeded users."""

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from scribe.core.database import SessionLocal, engine
from scribe.core.security import hash_password
from scribe.main import create_app
from scribe.models import Article, Base, User

PASSWORD = "Secret123"
ARTICLE_BODY = "A long enough article body for validation. " * 3


class ApiTestCase(unittest.TestCase):
    """Each test gets empty tables, a new app and a client bound to it."""

    def setUp(self) -> None:
        # Cheap hashes keep the suite fast.
        rounds = patch("scribe.core.security.BCRYPT_ROUNDS", 4)
        rounds.start()
        self.addCleanup(rounds.stop)

        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.app = create_app()
        self.client = TestClient(self.app)
        self.db = SessionLocal()
        self.addCleanup(self.db.close)

    def make_user(self, email: str, role: str = "guest", first: str = "Test", last: str = "User") -> User:
        user = User(
            first_name=first,
            last_name=last,
            email=email,
            password_hash=hash_password(PASSWORD),
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def make_article(self, owner: User, title: str = "First article", tags: list[str] | None = None) -> Article:
        article = Article(title=title, content=ARTICLE_BODY, owner_id=owner.id, views=0, comment_count=0)
        article.tag_names = tags or []
        self.db.add(article)
        self.db.commit()
        self.db.refresh(article)
        return article

    def token_for(self, user: User) -> str:
        return self.app.state.token_service.issue_token_pair(user).access_token

    def auth(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token_for(user)}"}
