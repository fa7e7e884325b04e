"""Invoice (attachment) schemas."""

from datetime import datetime

from pydantic import BaseModel


class InvoiceRead(BaseModel):
    id: int
    request_id: int
    file_name: str
    file_url: str
    file_size: int | None
    mime_type: str | None
    uploaded_at: datetime
    download_url: str
