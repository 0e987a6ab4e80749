"""
Application Layer

Contains use cases, command/query handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: Write operations consumed by the chat layer and dashboard
- queries/: Read operations (queue snapshot, current track)
- services/: The admission controller, queue store, prefetch pipeline and
  playback state machine
- interfaces/: Port interfaces for infrastructure adapters
"""
