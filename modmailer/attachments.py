"""Picking and re-uploading message attachments."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .models import Attachment


@dataclass(frozen=True)
class UploadFile:
    """A file ready to be attached to an outgoing message."""

    filename: str
    data: bytes


def first_image_attachment(attachments: Iterable[Attachment]) -> Attachment | None:
    """Return the first attachment whose content type is an image."""
    return next(
        (a for a in attachments if a.content_type and a.content_type.startswith("image/")),
        None,
    )


async def clone_attachment(client: Any, attachment: Attachment) -> UploadFile:
    """Download an attachment so it can be uploaded again."""
    data = await client.download(attachment.url)
    return UploadFile(filename=attachment.filename, data=data)