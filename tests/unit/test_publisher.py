"""
Unit tests for status publishing and the Twitter client.
"""

import pytest
import requests
from unittest.mock import Mock

from homebot.social.twitter import TwitterClient, TwitterError
from homebot.status.publisher import Publisher, stamp_status, DRY_RUN_MEDIA_ID
from homebot.status.store import StatusStore


class TestStatusStore:
    """Test suite for composite status."""

    def test_defaults(self):
        assert StatusStore().composite() == "🌬 N/A 📺 N/A"

    def test_composite_order(self):
        store = StatusStore(weather="💡 308 🌡 21℃ ", display="📺 standby")

        assert store.composite() == "💡 308 🌡 21℃  📺 standby"


class TestPublisher:
    """Test suite for Publisher."""

    def setup_method(self):
        self.client = Mock()
        self.client.update_status.return_value = {'id': '1', 'text': 'x'}
        self.client.upload_media.return_value = "media-123"
        self.logger = Mock()
        self.publisher = Publisher(self.client, self.logger, clock=lambda: 1700000000.75)

    def test_stamp_status(self):
        assert stamp_status("hello", 1700000000.9) == "hello ⏰ 1700000000UTC"

    @pytest.mark.asyncio
    async def test_publish_stamps_text(self):
        assert await self.publisher.publish("🌬 N/A 📺 N/A") is True

        self.client.update_status.assert_called_once_with("🌬 N/A 📺 N/A ⏰ 1700000000UTC", None)
        assert self.publisher.posts_attempted == 1
        assert self.publisher.posts_failed == 0

    @pytest.mark.asyncio
    async def test_publish_attaches_media(self):
        await self.publisher.publish("status", "media-123")

        self.client.update_status.assert_called_once_with("status ⏰ 1700000000UTC", ["media-123"])

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self):
        self.client.update_status.side_effect = TwitterError("duplicate status")

        assert await self.publisher.publish("status") is False
        assert self.publisher.posts_failed == 1
        self.logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_swallowed(self):
        self.client.update_status.side_effect = RuntimeError("boom")

        assert await self.publisher.publish("status") is False
        self.logger.exception.assert_called_once()

    @pytest.mark.asyncio
    async def test_upload_photo(self):
        assert await self.publisher.upload_photo(b'jpeg') == "media-123"
        self.client.upload_media.assert_called_once_with(b'jpeg')

    @pytest.mark.asyncio
    async def test_upload_failure_returns_none(self):
        self.client.upload_media.side_effect = TwitterError("413 too large")

        assert await self.publisher.upload_photo(b'jpeg') is None

    @pytest.mark.asyncio
    async def test_dry_run_never_calls_client(self):
        publisher = Publisher(self.client, self.logger, dry_run=True, clock=lambda: 1.0)

        assert await publisher.publish("status", "media") is True
        assert await publisher.upload_photo(b'jpeg') == DRY_RUN_MEDIA_ID
        self.client.update_status.assert_not_called()
        self.client.upload_media.assert_not_called()
        assert publisher.posts_attempted == 1

    @pytest.mark.asyncio
    async def test_no_client_behaves_as_dry_run(self):
        publisher = Publisher(None, self.logger)

        assert await publisher.publish("status") is True


class TestTwitterClient:
    """Test suite for TwitterClient."""

    def setup_method(self):
        self.session = Mock()
        self.response = Mock()
        self.session.post.return_value = self.response

    def _client(self, mock_config):
        return TwitterClient(mock_config, Mock(), session=self.session)

    def test_upload_media(self, mock_config):
        self.response.json.return_value = {'media_id': 1, 'media_id_string': '1'}
        client = self._client(mock_config)

        assert client.upload_media(b'jpeg') == '1'
        url = self.session.post.call_args.args[0]
        assert url == "https://upload.twitter.test/1.1/media/upload.json"
        assert self.session.post.call_args.kwargs['files'] == {'media': b'jpeg'}

    def test_upload_without_media_id(self, mock_config):
        self.response.json.return_value = {'errors': [{'message': 'bad'}]}
        client = self._client(mock_config)

        with pytest.raises(TwitterError):
            client.upload_media(b'jpeg')

    def test_update_status_with_media(self, mock_config):
        self.response.json.return_value = {'data': {'id': '99', 'text': 'hi'}}
        client = self._client(mock_config)

        assert client.update_status('hi', ['1']) == {'id': '99', 'text': 'hi'}
        assert self.session.post.call_args.args[0] == "https://api.twitter.test/2/tweets"
        assert self.session.post.call_args.kwargs['json'] == {'text': 'hi', 'media': {'media_ids': ['1']}}

    def test_update_status_text_only(self, mock_config):
        self.response.json.return_value = {'data': {'id': '99', 'text': 'hi'}}
        client = self._client(mock_config)

        client.update_status('hi')

        assert self.session.post.call_args.kwargs['json'] == {'text': 'hi'}

    def test_http_error(self, mock_config):
        self.response.raise_for_status.side_effect = requests.exceptions.HTTPError("403")
        client = self._client(mock_config)

        with pytest.raises(TwitterError, match="failed"):
            client.update_status('hi')

    def test_rejected_tweet(self, mock_config):
        self.response.json.return_value = {'errors': [{'detail': 'duplicate content'}]}
        client = self._client(mock_config)

        with pytest.raises(TwitterError, match="duplicate content"):
            client.update_status('hi')
