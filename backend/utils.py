import base64
import csv
import io
from typing import Iterable, List, Optional, Sequence

from fastapi import HTTPException, status, UploadFile
from fastapi.responses import StreamingResponse
from openpyxl import Workbook

IMAGE_TYPES = ["image/png", "image/jpeg", "image/webp"]
PROOF_TYPES = IMAGE_TYPES + ["application/pdf"]
PDF_TYPES = ["application/pdf"]

POSTER_MAX_BYTES = 5 * 1024 * 1024
SCREENSHOT_MAX_BYTES = 5 * 1024 * 1024
QR_PDF_MAX_BYTES = 1 * 1024 * 1024
EXPERIENCE_PDF_MAX_BYTES = 1 * 1024 * 1024


def read_upload_bytes(
    file: Optional[UploadFile],
    field_name: str,
    allowed_types: Optional[List[str]] = None,
    max_bytes: Optional[int] = None,
    required: bool = True,
) -> Optional[bytes]:
    if file is None or not file.filename:
        if required:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field_name} is required")
        return None
    if allowed_types and file.content_type not in allowed_types:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid file type for {field_name}")

    data = file.file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field_name} is empty")
    if max_bytes and len(data) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_name} should not be more than {limit_mb}MB",
        )
    return data


def encode_blob(data: Optional[bytes]) -> Optional[str]:
    if not data:
        return None
    return base64.b64encode(data).decode("ascii")


def require_text(value: Optional[str], field_name: str) -> str:
    cleaned = str(value or "").strip()
    if not cleaned:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field_name} is required")
    return cleaned


def export_rows(headers: Sequence[str], rows: Iterable[Sequence[object]], filename: str, format: str) -> StreamingResponse:
    if format == "xlsx":
        wb = Workbook()
        ws = wb.active
        ws.title = "Registrations"
        ws.append(list(headers))
        for row in rows:
            ws.append(list(row))

        output = io.BytesIO()
        wb.save(output)
        output.seek(0)

        return StreamingResponse(
            output,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={filename}.xlsx"}
        )

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}.csv"}
    )
