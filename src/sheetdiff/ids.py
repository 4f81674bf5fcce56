"""Spreadsheet identifier parsing and validation."""

from __future__ import annotations

import re

from sheetdiff.exceptions import ValidationError

# https://docs.google.com/spreadsheets/d/SPREADSHEET_ID/edit...
_URL_PATTERN = re.compile(r"docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)")
_VALID_ID = re.compile(r"[a-zA-Z0-9_-]+")


def parse_spreadsheet_id(id_or_url: str) -> str:
    """Extract spreadsheet ID from a URL or return as-is if already an ID."""
    match = _URL_PATTERN.search(id_or_url)
    if match:
        return match.group(1)
    return id_or_url


def validate_document_id(document_id: str) -> str:
    """Return the id unchanged if every character is allowed.

    Raises:
        ValidationError: If the id is empty or contains anything other than
            letters, digits, hyphens and underscores
    """
    if not _VALID_ID.fullmatch(document_id):
        raise ValidationError(document_id)
    return document_id
