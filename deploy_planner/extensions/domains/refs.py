"""Parsing and rendering of extension references.

Two textual forms are accepted:
    publisher/extension[@version]
    publishers/publisher/extensions/extension[/versions/version]
"""
import re
from typing import Optional

from ...core.errors import InvalidRefError
from .models import Ref

REF_PATTERN = re.compile(r"^([^/@\s]+)/([^/@\s]+)(?:@([^/@\s]+))?$")
NAME_PATTERN = re.compile(r"^publishers/([^/\s]+)/extensions/([^/\s]+)(?:/versions/([^/\s]+))?$")


def parse(ref_or_name: str) -> Ref:
    """
    Parse a reference string or resource name into a Ref.

    Raises:
        InvalidRefError: If the string is in neither form
    """
    match = REF_PATTERN.match(ref_or_name) or NAME_PATTERN.match(ref_or_name)
    if not match:
        raise InvalidRefError(f"Unable to parse {ref_or_name} as an extension ref")
    publisher_id, extension_id, version = match.groups()
    return Ref(publisher_id=publisher_id, extension_id=extension_id, version=version)


def to_extension_ref(ref: Ref) -> str:
    return f"{ref.publisher_id}/{ref.extension_id}"


def to_extension_version_ref(ref: Ref) -> str:
    if not ref.version:
        raise InvalidRefError(f"Ref {to_extension_ref(ref)} does not have a version")
    return f"{ref.publisher_id}/{ref.extension_id}@{ref.version}"


def to_extension_name(ref: Ref) -> str:
    return f"publishers/{ref.publisher_id}/extensions/{ref.extension_id}"


def to_extension_version_name(ref: Ref) -> str:
    if not ref.version:
        raise InvalidRefError(f"Ref {to_extension_ref(ref)} does not have a version")
    return f"{to_extension_name(ref)}/versions/{ref.version}"


def equal(a: Optional[Ref], b: Optional[Ref]) -> bool:
    """Compare two refs, treating two missing refs as different."""
    return a is not None and b is not None and a == b
