"""JSON serialization for descriptors and the image layout marker.

This module centralizes payload encoding for reference files and the
``oci-layout`` marker. It is reused by the layout, blob, and ref stores.
"""

from __future__ import annotations

import json
from typing import Any

from core.errors import CasInvalidError
from core.types import Descriptor, Digest, ImageLayout


def descriptor_to_payload(descriptor: Descriptor) -> dict[str, object]:
    """Serialize a Descriptor into a JSON-safe payload.

    Args:
        descriptor: Descriptor instance.

    Returns:
        Dictionary payload using image-spec field names.
    """
    payload: dict[str, object] = {
        "mediaType": descriptor.media_type,
        "digest": str(descriptor.digest),
        "size": descriptor.size,
    }
    if descriptor.urls:
        payload["urls"] = list(descriptor.urls)
    if descriptor.annotations:
        payload["annotations"] = dict(descriptor.annotations)
    return payload


def descriptor_from_payload(payload: Any) -> Descriptor:
    """Deserialize a JSON payload into a Descriptor.

    Args:
        payload: Decoded JSON value.

    Returns:
        Parsed Descriptor.

    Raises:
        CasInvalidError: If the payload is not a structurally valid descriptor.
    """
    if not isinstance(payload, dict):
        raise CasInvalidError("Descriptor payload must be a JSON object.", operation="decode_descriptor")
    media_type = payload.get("mediaType")
    digest = payload.get("digest")
    size = payload.get("size")
    if not isinstance(media_type, str):
        raise CasInvalidError("Descriptor mediaType must be a string.", operation="decode_descriptor")
    if not isinstance(digest, str):
        raise CasInvalidError("Descriptor digest must be a string.", operation="decode_descriptor")
    if isinstance(size, bool) or not isinstance(size, int):
        raise CasInvalidError("Descriptor size must be an integer.", operation="decode_descriptor")
    return Descriptor(
        media_type=media_type,
        digest=Digest.parse(digest),
        size=size,
        annotations=_string_mapping(payload.get("annotations")),
        urls=_string_tuple(payload.get("urls")),
    )


def image_layout_to_payload(layout: ImageLayout) -> dict[str, object]:
    """Serialize the image layout marker."""
    return {"imageLayoutVersion": layout.image_layout_version}


def image_layout_from_payload(payload: Any) -> ImageLayout:
    """Deserialize the image layout marker.

    Raises:
        CasInvalidError: If the marker is not an object with a string version.
    """
    if not isinstance(payload, dict):
        raise CasInvalidError("oci-layout must be a JSON object.", operation="decode_layout")
    version = payload.get("imageLayoutVersion")
    if not isinstance(version, str):
        raise CasInvalidError(
            "oci-layout imageLayoutVersion must be a string.", operation="decode_layout"
        )
    return ImageLayout(image_layout_version=version)


def encode_json(value: object) -> bytes:
    """Encode one JSON document followed by a newline.

    Keys keep their insertion order, so structurally equal mappings built in
    a different order encode to different bytes.

    Raises:
        CasInvalidError: If the value is not JSON-serializable or holds NaN or infinity.
    """
    try:
        return (json.dumps(value, allow_nan=False) + "\n").encode("utf-8")
    except (TypeError, ValueError) as error:
        raise CasInvalidError(f"Value is not JSON-serializable: {error}.", operation="encode_json") from error


def _string_mapping(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    ):
        raise CasInvalidError(
            "Descriptor annotations must map strings to strings.", operation="decode_descriptor"
        )
    return dict(value)


def _string_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise CasInvalidError("Descriptor urls must be a list of strings.", operation="decode_descriptor")
    return tuple(value)
