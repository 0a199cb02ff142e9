"""
Boundary layer for external system integrations.

Handles interactions with the PostgreSQL/pgvector store. Model providers
live in buddy.core.llm behind the provider interface.
"""
