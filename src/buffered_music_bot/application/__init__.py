"""
Application Layer

Orchestrates domain objects and infrastructure adapters.

Structure:
- interfaces/: Port interfaces for the stream, resolver and voice adapters
- services/: The per-guild queue manager and the session registry
"""
