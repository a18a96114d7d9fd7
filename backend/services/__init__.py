"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer. The acting user is always
passed in explicitly by the caller.

Modules:
    - trip_management: Trip lifecycle, reviews, messages and trip queries
    - matching: Driver availability matching
    - reminders: Scheduled-trip reminder sweep
"""
