"""
Bulk-import members from a JSON file.

Each entry carries the member fields (name, role, category, image_url,
lattes_url, research_topic). Entries with a `local_image_path` get that image
resized, uploaded to the members bucket, and its public URL stored instead of
`image_url`. A failing member is logged and skipped.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gpevim.config import get_settings
from gpevim.db import MemberRecord, RecordStore
from gpevim.dependencies import get_image_store, get_record_store
from gpevim.errors import ClientInputError, GpevimError
from gpevim.fallback import FallbackRecordStore
from gpevim.images import process_image
from gpevim.storage import ImageStore


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "role", "image_url", "category")


def resolve_image_path(local_image_path: str, images_dir: Path) -> Path:
    path = Path(local_image_path)
    return path if path.is_absolute() else images_dir / path


def upload_member(
    member: dict,
    *,
    records: RecordStore,
    images: ImageStore,
    images_dir: Path,
    bucket: str,
) -> MemberRecord:
    settings = get_settings()
    name = member.get("name")
    logger.info("Processing member: %s", name)

    image_url = member.get("image_url")
    local_image_path = member.get("local_image_path")
    if local_image_path:
        image_path = resolve_image_path(local_image_path, images_dir)
        if image_path.is_file():
            processed = process_image(
                image_path.read_bytes(),
                settings.image_max_width,
                settings.image_max_height,
                settings.image_quality,
            )
            image_url = images.put_image(bucket, processed, image_path.name).url
            logger.info("  Uploaded image: %s", image_url)
        else:
            logger.warning(
                "  Local image not found: %s. Keeping original URL.", image_path
            )

    fields = {
        "name": name,
        "role": member.get("role"),
        "image_url": image_url,
        "lattes_url": member.get("lattes_url"),
        "research_topic": member.get("research_topic"),
        "category": member.get("category"),
    }
    missing = [key for key in REQUIRED_FIELDS if not fields.get(key)]
    if missing:
        raise ClientInputError(detail=f"Missing required fields: {', '.join(missing)}")

    record = records.insert_member(fields)
    logger.info("  Inserted member %s (id %s)", name, record.id)
    return record


def upload_members(
    members: list[dict],
    *,
    records: RecordStore,
    images: ImageStore,
    images_dir: Path,
    bucket: str,
) -> int:
    uploaded = 0
    for member in members:
        try:
            upload_member(
                member,
                records=records,
                images=images,
                images_dir=images_dir,
                bucket=bucket,
            )
            uploaded += 1
        except (GpevimError, OSError) as exc:
            logger.error("  Failed to import %s: %s", member.get("name"), exc)
    return uploaded


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "data_file",
        nargs="?",
        default=os.path.join(os.path.dirname(__file__), "members_data.json"),
        help="JSON file with the list of members",
    )
    parser.add_argument(
        "--images-dir",
        default=str(ROOT.parent / "img"),
        help="Directory that relative local_image_path values are resolved against",
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s:%(message)s")

    data_file = Path(args.data_file)
    if not data_file.is_file():
        logger.error("Data file not found: %s", data_file)
        return 1
    members = json.loads(data_file.read_text(encoding="utf-8"))

    records = get_record_store()
    if isinstance(records, FallbackRecordStore):
        # Members saved to process memory would vanish when the script exits.
        records = records.durable
    records.initialize(settings.admin_username, settings.admin_password)
    uploaded = upload_members(
        members,
        records=records,
        images=get_image_store(),
        images_dir=Path(args.images_dir),
        bucket=settings.members_bucket,
    )
    logger.info("Imported %d of %d members", uploaded, len(members))
    return 0


if __name__ == "__main__":
    sys.exit(main())
