"""GraphQL documents for the Task model and a thin HTTP client to post them."""

from __future__ import annotations

from . import mutations, queries
from .client import GraphQLClient

__all__ = ["GraphQLClient", "mutations", "queries"]
