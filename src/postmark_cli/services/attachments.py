"""Build attachments from local files."""

import base64
import mimetypes
from pathlib import Path

from postmark_cli.client.models import AttachmentData

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Postmark rejects messages whose attachments exceed 10 MB in total
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024


def load_attachment(path: str | Path, content_id: str | None = None) -> AttachmentData:
    """Read a file and return it as a base64 encoded attachment.

    Raises ValueError if the file is larger than the API accepts.
    """
    path = Path(path)
    data = path.read_bytes()

    if len(data) > MAX_ATTACHMENT_BYTES:
        raise ValueError(
            f"Attachment too large: {path.name} is {len(data)} bytes "
            f"(max {MAX_ATTACHMENT_BYTES // (1024 * 1024)} MB)"
        )

    content_type, _ = mimetypes.guess_type(path.name)
    return AttachmentData(
        name=path.name,
        content=base64.b64encode(data).decode("ascii"),
        content_type=content_type or DEFAULT_CONTENT_TYPE,
        content_id=content_id,
    )
