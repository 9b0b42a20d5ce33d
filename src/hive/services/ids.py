"""Identifier generation."""

import uuid


def generate_agent_id() -> str:
    """Generate a fresh participant id (``agent-<uuid4>``)."""
    return f"agent-{uuid.uuid4()}"
