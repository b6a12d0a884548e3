"""Tests for the viewer fan-out and live event shapes."""

from datetime import datetime, timezone

import pytest

from dropserver.broadcast import BroadcastHub
from dropserver.events import FilesAdded, FilesReplaced, TunnelAvailable, TunnelStopped, to_message
from dropserver.types import FileEntry


ENTRY = FileEntry(name='1700000000000-a.txt', size=3, modified_at=datetime(2024, 1, 1, tzinfo=timezone.utc))


class TestEventMessages:

    def test_files_replaced(self):
        message = to_message(FilesReplaced((ENTRY,)))

        assert message['event'] == 'file-updated'
        assert message['data'][0]['name'] == '1700000000000-a.txt'
        assert message['data'][0]['size'] == 3
        assert message['data'][0]['modifiedAt'] == '2024-01-01T00:00:00+00:00'

    def test_files_added(self):
        assert to_message(FilesAdded(()))['event'] == 'files-uploaded'

    def test_tunnel_available(self):
        message = to_message(TunnelAvailable('https://abc.trycloudflare.com'))
        assert message == {'event': 'cloudflare-url', 'data': 'https://abc.trycloudflare.com'}

    def test_tunnel_stopped(self):
        message = to_message(TunnelStopped(code=None, signal='SIGTERM'))
        assert message == {'event': 'cloudflare-stopped', 'data': {'code': None, 'signal': 'SIGTERM'}}


class TestBroadcastHub:

    def test_publish_reaches_attached_viewers(self):
        hub = BroadcastHub()
        first, second = hub.open_viewer(), hub.open_viewer()
        hub.attach(first)
        hub.attach(second)

        delivered = hub.publish(TunnelAvailable('https://x.trycloudflare.com'))

        assert delivered == 2
        assert first.pending() == [TunnelAvailable('https://x.trycloudflare.com')]
        assert second.pending() == [TunnelAvailable('https://x.trycloudflare.com')]

    def test_detached_viewer_receives_nothing(self):
        hub = BroadcastHub()
        viewer = hub.open_viewer()
        hub.attach(viewer)
        hub.detach(viewer)

        assert hub.publish(FilesReplaced(())) == 0
        assert viewer.pending() == []

    def test_events_kept_in_publish_order(self):
        hub = BroadcastHub()
        viewer = hub.open_viewer()
        hub.attach(viewer)

        events = [FilesAdded((ENTRY,)), FilesReplaced((ENTRY,)), TunnelStopped(code=0, signal=None)]
        for event in events:
            hub.publish(event)

        assert viewer.pending() == events

    def test_slow_viewer_dropped_without_affecting_others(self):
        hub = BroadcastHub(max_pending=2)
        slow, fast = hub.open_viewer(), hub.open_viewer()
        hub.attach(slow)
        hub.attach(fast)

        hub.publish(FilesReplaced(()))
        hub.publish(FilesReplaced(()))
        fast.pending()

        delivered = hub.publish(FilesReplaced(()))

        assert delivered == 1
        assert slow.closed is True
        assert hub.viewer_count == 1
        assert fast.pending() == [FilesReplaced(())]

    @pytest.mark.asyncio
    async def test_closed_viewer_ends_stream(self):
        hub = BroadcastHub()
        viewer = hub.open_viewer()
        hub.attach(viewer)
        hub.publish(FilesReplaced(()))

        assert await viewer.next_event() == FilesReplaced(())

        viewer.close()
        assert await viewer.next_event() is None
        assert viewer.push(FilesReplaced(())) is False
