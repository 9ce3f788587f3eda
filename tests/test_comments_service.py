"""Tests for scribe.services.comments: backlink counters move with their rows, atomically."""

import unittest
from unittest.mock import MagicMock

from scribe.core.database import SessionLocal, atomic, engine
from scribe.models import Article, Base, Comment, Reply, User
from scribe.services import comments as comment_service


class TestAtomic(unittest.TestCase):
    def test_commits_on_success(self) -> None:
        db = MagicMock()
        with atomic(db):
            pass
        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self) -> None:
        db = MagicMock()
        with self.assertRaises(ValueError):
            with atomic(db):
                raise ValueError("second write failed")
        db.rollback.assert_called_once()
        db.commit.assert_not_called()


class TestFailedWrites(unittest.TestCase):
    def test_failed_flush_rolls_back_without_counter_update(self) -> None:
        db = MagicMock()
        db.flush.side_effect = RuntimeError("insert failed")
        article = Article(id=1, title="T", owner_id=5, comment_count=2)

        with self.assertRaises(RuntimeError):
            comment_service.create_comment(db, article, "Hello", owner_id=6)

        db.query.assert_not_called()
        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    def test_reply_delete_failure_rolls_back(self) -> None:
        db = MagicMock()
        db.delete.side_effect = RuntimeError("locked")
        with self.assertRaises(RuntimeError):
            comment_service.delete_reply(db, Reply(id=8, content="y", comment_id=3, owner_id=7))
        db.rollback.assert_called_once()
        db.commit.assert_not_called()


class CounterTestCase(unittest.TestCase):
    def setUp(self) -> None:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.db = SessionLocal()
        self.addCleanup(self.db.close)
        author = User(first_name="Ada", last_name="Lovelace", email="ada@blog.io", password_hash="x", role="writer")
        self.db.add(author)
        self.db.commit()
        self.author_id = author.id
        article = Article(title="First", content="Body", owner_id=author.id, views=0, comment_count=0)
        self.db.add(article)
        self.db.commit()
        self.article_id = article.id

    def _counts(self) -> tuple[int, int]:
        self.db.expire_all()
        article = self.db.get(Article, self.article_id)
        rows = self.db.query(Comment).filter(Comment.article_id == self.article_id).count()
        return article.comment_count, rows


class TestCommentCounter(CounterTestCase):
    def test_create_increments_article_counter(self) -> None:
        article = self.db.get(Article, self.article_id)
        comment = comment_service.create_comment(self.db, article, "Hello", owner_id=self.author_id)
        self.assertEqual(comment.article_id, self.article_id)
        self.assertEqual(comment.reply_count, 0)
        self.assertEqual(self._counts(), (1, 1))

    def test_sessions_holding_stale_rows_do_not_lose_increments(self) -> None:
        first = SessionLocal()
        second = SessionLocal()
        self.addCleanup(first.close)
        self.addCleanup(second.close)
        seen_by_first = first.get(Article, self.article_id)
        seen_by_second = second.get(Article, self.article_id)

        comment_service.create_comment(first, seen_by_first, "One", owner_id=self.author_id)
        comment_service.create_comment(second, seen_by_second, "Two", owner_id=self.author_id)

        self.assertEqual(self._counts(), (2, 2))

    def test_delete_decrements_article_counter(self) -> None:
        article = self.db.get(Article, self.article_id)
        comment = comment_service.create_comment(self.db, article, "Hello", owner_id=self.author_id)
        comment_service.delete_comment(self.db, comment)
        self.assertEqual(self._counts(), (0, 0))

    def test_counter_never_negative(self) -> None:
        article = self.db.get(Article, self.article_id)
        comment = comment_service.create_comment(self.db, article, "Hello", owner_id=self.author_id)
        self.db.query(Article).filter(Article.id == self.article_id).update({Article.comment_count: 0})
        self.db.commit()
        comment_service.delete_comment(self.db, comment)
        self.assertEqual(self._counts(), (0, 0))


class TestReplyCounter(CounterTestCase):
    def setUp(self) -> None:
        super().setUp()
        article = self.db.get(Article, self.article_id)
        self.comment_id = comment_service.create_comment(
            self.db, article, "Hello", owner_id=self.author_id
        ).id

    def _reply_count(self) -> int:
        self.db.expire_all()
        return self.db.get(Comment, self.comment_id).reply_count

    def test_create_and_delete_move_reply_count(self) -> None:
        comment = self.db.get(Comment, self.comment_id)
        reply = comment_service.create_reply(self.db, comment, "Agreed", owner_id=self.author_id)
        self.assertEqual(reply.comment_id, self.comment_id)
        self.assertEqual(self._reply_count(), 1)
        comment_service.delete_reply(self.db, reply)
        self.assertEqual(self._reply_count(), 0)

    def test_sessions_holding_stale_rows_do_not_lose_increments(self) -> None:
        first = SessionLocal()
        second = SessionLocal()
        self.addCleanup(first.close)
        self.addCleanup(second.close)
        seen_by_first = first.get(Comment, self.comment_id)
        seen_by_second = second.get(Comment, self.comment_id)

        comment_service.create_reply(first, seen_by_first, "One", owner_id=self.author_id)
        comment_service.create_reply(second, seen_by_second, "Two", owner_id=self.author_id)

        self.assertEqual(self._reply_count(), 2)
