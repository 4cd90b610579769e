"""
Tests for the sync_client package.

These run without a server: httpx.MockTransport for REST, a fake socket
for the websocket, manual clocks and schedulers for timing.
"""
