#!/usr/bin/env python3
"""
Tests that the GitHub token never stays in a clone's origin URL.

The token is only embedded in the URL for the duration of a clone or
fetch. Whatever the outcome (cloned, skipped, updated, failed), origin must
point at the plain URL afterwards and the token must not appear in the
result message.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from git import GitCommandError, Repo

from git_test_utils import create_upstream_repository, push_commits, run_git
from syncreeper.git_sync import RemoteRepository, SyncAction, reconcile
from syncreeper.git_sync.remote_utils import authenticated_remote, get_origin_url
from syncreeper.git_sync.utils import get_authenticated_url, redact_credential

TOKEN = "ghp_s3cr3tT0ken"
# Nothing listens on the discard port; connections are refused immediately
UNREACHABLE_URL = "https://127.0.0.1:9/acme/api.git"


def test_authenticated_url_embeds_token_as_userinfo():
    """Token becomes the userinfo of https URLs."""
    assert get_authenticated_url("https://github.com/acme/api.git", TOKEN) == \
        f"https://{TOKEN}@github.com/acme/api.git"
    print("  ✓ Token embedded as userinfo")


def test_authenticated_url_replaces_existing_userinfo_and_keeps_port():
    assert get_authenticated_url("https://old@git.example.com:8443/a/b.git", TOKEN) == \
        f"https://{TOKEN}@git.example.com:8443/a/b.git"


def test_authenticated_url_leaves_non_http_urls_alone():
    for url in ("file:///srv/remote/api.git", "/srv/remote/api.git", "git@github.com:acme/api.git"):
        assert get_authenticated_url(url, TOKEN) == url
    print("  ✓ Non-HTTP URLs unchanged")


def test_redact_credential():
    message = f"fatal: unable to access 'https://{TOKEN}@github.com/acme/api.git/'"
    redacted = redact_credential(message, TOKEN)
    assert TOKEN not in redacted
    assert "https://***@github.com" in redacted
    assert redact_credential("nothing secret", "") == "nothing secret"


class TestOriginRestoration(unittest.TestCase):
    """Origin URL state after every reconcile outcome."""

    def setUp(self):
        print(f"\nSetting up test: {self._testMethodName}")
        self.temp_dir = Path(tempfile.mkdtemp())
        self.repos_root = self.temp_dir / "repos"
        self.bare_dir, self.upstream_work = create_upstream_repository(self.temp_dir, "acme/api")
        self.local_path = self.repos_root / "acme" / "api"
        self.https_repo = RemoteRepository(
            full_name="acme/api",
            clone_url="https://github.com/acme/api.git",
            default_branch="main"
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _clone_locally(self):
        run_git(["clone", "--depth=1", self.bare_dir.as_uri(), str(self.local_path)], self.temp_dir)

    def _assert_origin_is_plain(self, expected_url: str):
        repo = Repo(self.local_path)
        self.assertEqual(get_origin_url(repo), expected_url)
        config_text = (self.local_path / ".git" / "config").read_text()
        self.assertNotIn(TOKEN, config_text)

    def test_clone_strips_token_from_origin(self):
        """The clone uses the credentialed URL, then rewrites origin."""
        seen_urls = []
        real_clone_from = Repo.clone_from
        local_source = self.bare_dir.as_uri()

        def clone_from(url, to_path, **kwargs):
            seen_urls.append(url)
            repo = real_clone_from(local_source, to_path, **kwargs)
            repo.remote("origin").set_url(url)
            return repo

        with patch.object(Repo, "clone_from", side_effect=clone_from):
            result = reconcile(self.https_repo, self.repos_root, TOKEN)

        self.assertEqual(result.action, SyncAction.CLONED, result.message)
        self.assertEqual(seen_urls, [f"https://{TOKEN}@github.com/acme/api.git"])
        self._assert_origin_is_plain("https://github.com/acme/api.git")
        print("  ✓ Origin rewritten to plain URL after clone")

    def test_failed_clone_does_not_leak_token(self):
        unreachable = RemoteRepository("acme/api", UNREACHABLE_URL, "main")

        result = reconcile(unreachable, self.repos_root, TOKEN)

        self.assertEqual(result.action, SyncAction.ERROR)
        self.assertTrue(result.message.startswith("Clone failed: "))
        self.assertNotIn(TOKEN, result.message)
        config_path = self.local_path / ".git" / "config"
        if config_path.exists():
            self.assertNotIn(TOKEN, config_path.read_text())
        print("  ✓ Failed clone leaves no token behind")

    def test_failed_fetch_restores_plain_origin(self):
        """A network failure during fetch still restores origin."""
        self._clone_locally()
        unreachable = RemoteRepository("acme/api", UNREACHABLE_URL, "main")

        result = reconcile(unreachable, self.repos_root, TOKEN)

        self.assertEqual(result.action, SyncAction.ERROR)
        self.assertTrue(result.message.startswith("Update failed: "), result.message)
        self.assertNotIn(TOKEN, result.message)
        self._assert_origin_is_plain(UNREACHABLE_URL)
        print("  ✓ Origin restored after failed fetch")

    def test_origin_is_authenticated_only_during_fetch(self):
        """Fetch sees the credentialed URL; a skipped clone ends up plain."""
        self._clone_locally()
        (self.local_path / "wip.txt").write_text("wip\n")
        run_git(["add", "wip.txt"], self.local_path)
        urls_during_fetch = []

        def fake_fetch(repo):
            urls_during_fetch.append(get_origin_url(repo))

        with patch("syncreeper.git_sync.repository_sync.fetch_origin", side_effect=fake_fetch):
            result = reconcile(self.https_repo, self.repos_root, TOKEN)

        self.assertEqual(result.action, SyncAction.SKIPPED, result.message)
        self.assertEqual(urls_during_fetch, [f"https://{TOKEN}@github.com/acme/api.git"])
        self._assert_origin_is_plain("https://github.com/acme/api.git")
        print("  ✓ Credential present only for the fetch")

    def test_updated_clone_ends_plain(self):
        self._clone_locally()
        push_commits(self.upstream_work, 1)
        local_source = self.bare_dir.as_uri()

        def fetch_from_local(repo):
            repo.git.fetch(local_source, "+refs/heads/main:refs/remotes/origin/main")

        with patch("syncreeper.git_sync.repository_sync.fetch_origin", side_effect=fetch_from_local):
            result = reconcile(self.https_repo, self.repos_root, TOKEN)

        self.assertEqual(result.action, SyncAction.UPDATED, result.message)
        self._assert_origin_is_plain("https://github.com/acme/api.git")

    def test_fetch_error_message_is_redacted(self):
        self._clone_locally()

        def failing_fetch(repo):
            raise GitCommandError(["git", "fetch", "origin"], 128, stderr=f"fatal: bad token {TOKEN}")

        with patch("syncreeper.git_sync.repository_sync.fetch_origin", side_effect=failing_fetch):
            result = reconcile(self.https_repo, self.repos_root, TOKEN)

        self.assertEqual(result.action, SyncAction.ERROR)
        self.assertNotIn(TOKEN, result.message)
        self.assertIn("***", result.message)
        self._assert_origin_is_plain("https://github.com/acme/api.git")

    def test_restore_failure_does_not_mask_original_error(self):
        """If restoring origin fails after an error, the original error is reported."""
        self._clone_locally()
        repo = Repo(self.local_path)

        with patch("syncreeper.git_sync.remote_utils.set_origin_url", side_effect=OSError("disk gone")):
            with self.assertRaises(RuntimeError):
                with authenticated_remote(repo, "https://github.com/acme/api.git", TOKEN):
                    raise RuntimeError("fetch exploded")

    def test_authenticated_remote_restores_on_success(self):
        self._clone_locally()
        repo = Repo(self.local_path)

        with authenticated_remote(repo, "https://github.com/acme/api.git", TOKEN) as origin:
            self.assertIn(TOKEN, origin.url)

        self.assertEqual(get_origin_url(repo), "https://github.com/acme/api.git")


if __name__ == "__main__":
    test_authenticated_url_embeds_token_as_userinfo()
    test_authenticated_url_leaves_non_http_urls_alone()
    unittest.main(verbosity=2)
