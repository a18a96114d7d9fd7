"""
Realtime app for WebSocket notification fan-out.

Key Components:
    - consumers/: WebSocket consumers (per-user notification socket)
    - middleware.py: JWT/Cookie authentication for WebSocket connections
    - notifications.py: push_user_event() for server -> user messages

Usage:
    from realtime.notifications import push_user_event
"""
