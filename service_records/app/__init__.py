"""
Records Service application package.

- adapters: HTTP client for the remote user directory
- caching: In-process user caches
- users: Cache-aside user mediator and models
- events: Fire-and-forget change event delivery
- patients: Locally persisted patient records
"""
