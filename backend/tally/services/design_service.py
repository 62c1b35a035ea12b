# Overview: Service-layer operations for designs; upload metadata and listing.

"""
Designs Service

Only file metadata is persisted. The file URL is generated under
DESIGN_UPLOAD_URL_PREFIX; no bytes are written to storage.
"""
from __future__ import annotations

import json
import time

from flask import current_app
from sqlalchemy.orm import selectinload
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..extensions import db
from ..models import Design, ProductDesign
from ..validation import ValidationError


def parse_tags(raw: str | None) -> list[str]:
    """'a, b,,c ' -> ['a', 'b', 'c']"""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _file_size(file: FileStorage) -> int | None:
    if file.content_length:
        return file.content_length
    stream = file.stream
    try:
        pos = stream.tell()
        stream.seek(0, 2)
        size = stream.tell()
        stream.seek(pos)
    except (AttributeError, OSError):
        return None
    return size


def list_designs(*, user_id: int) -> list[dict]:
    """Active designs by name, each with the active products that use it."""
    designs = (
        db.session.query(Design)
        .filter(Design.user_id == user_id, Design.is_active.is_(True))
        .options(selectinload(Design.product_designs).selectinload(ProductDesign.product))
        .order_by(Design.name.asc(), Design.id.asc())
        .all()
    )

    result = []
    for d in designs:
        data = d.to_dict()
        data["products"] = [
            {"id": pd.product.id, "name": pd.product.name}
            for pd in d.product_designs
            if pd.product.is_active
        ]
        result.append(data)
    return result


def create_design(
    *,
    name: str | None,
    file: FileStorage | None,
    user_id: int,
    description: str | None = None,
    tags: str | None = None,
) -> dict:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Design name is required")
    if file is None or not file.filename:
        raise ValidationError("Design file is required")

    file_name = secure_filename(file.filename) or "design"
    prefix = current_app.config.get("DESIGN_UPLOAD_URL_PREFIX", "/uploads/designs")
    parsed_tags = parse_tags(tags)

    d = Design(
        user_id=user_id,
        name=name[:255],
        description=(description or "").strip() or None,
        file_url=f"{prefix}/{int(time.time() * 1000)}-{file_name}",
        file_name=file_name,
        file_size=_file_size(file),
        mime_type=file.mimetype or None,
        tags=json.dumps(parsed_tags) if parsed_tags else None,
    )
    db.session.add(d)
    db.session.commit()
    return d.to_dict()
