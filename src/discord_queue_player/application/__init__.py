"""
Application Layer

Orchestrates domain objects and infrastructure ports to drive playback.

Structure:
- services/: Resolution, search, extractor registry, playback and queue control
- interfaces/: Port interfaces for infrastructure adapters
"""
