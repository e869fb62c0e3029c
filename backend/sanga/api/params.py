"""Shared path parameter types."""

from __future__ import annotations

from typing import Annotated

from fastapi import Path

from sanga.infra.store import KEY_PATTERN

# Ids end up as store path segments; anything else is rejected with a 422.
IdParam = Annotated[str, Path(min_length=1, max_length=128, pattern=KEY_PATTERN)]
