"""
Models

- moltbook: pydantic models for Moltbook API responses (upstream wire format)
- domain: storage-agnostic dataclasses for persisted rows
"""
