"""HTTP API for chat, knowledge and agent endpoints."""
