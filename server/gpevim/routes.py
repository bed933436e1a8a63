"""
HTTP routes for the site API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from gpevim.config import Settings, get_settings
from gpevim.db import MEMBER_FIELDS, PUBLICATION_FIELDS, RecordStore
from gpevim.dependencies import get_image_store, get_record_store
from gpevim.errors import (
    AuthError,
    BackendUnavailableError,
    ClientInputError,
    NotFoundError,
)
from gpevim.images import is_image_media_type, process_image
from gpevim.schemas import (
    LoginRequest,
    LoginResponse,
    MemberPayload,
    MemberResponse,
    MessageResponse,
    PublicationPayload,
    PublicationResponse,
    UploadImageResponse,
)
from gpevim.storage import ImageStore

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_PUBLICATION_FIELDS = ("title", "author", "image_url", "publication_url")
REQUIRED_MEMBER_FIELDS = ("name", "role", "image_url", "category")


def _validated_fields(payload, names: tuple, required: tuple) -> dict:
    """Returns the payload restricted to `names`, or raises on a blank required field."""
    values = payload.model_dump()
    missing = [
        name for name in required if not values.get(name) or not values[name].strip()
    ]
    if missing:
        raise ClientInputError(detail=f"Missing required fields: {', '.join(missing)}")
    # Optional fields sent as "" are stored as null.
    return {name: values.get(name) or None for name in names}


@router.post("/upload-image", response_model=UploadImageResponse)
async def upload_image(
    image: UploadFile | None = File(None),
    bucket: str = Form("publications"),
    store: ImageStore = Depends(get_image_store),
    settings: Settings = Depends(get_settings),
):
    if image is None:
        raise ClientInputError("Nenhuma imagem foi enviada")
    if not is_image_media_type(image.content_type):
        raise ClientInputError(
            "Apenas imagens são permitidas!",
            detail=f"Rejected media type {image.content_type!r}",
        )
    buckets = {
        "publications": settings.publications_bucket,
        "members": settings.members_bucket,
    }
    if bucket not in buckets:
        raise ClientInputError("Bucket inválido", detail=f"Unknown bucket {bucket!r}")

    data = await image.read()
    if len(data) > settings.max_upload_bytes:
        raise ClientInputError(
            "Imagem excede o tamanho máximo permitido",
            detail=f"Upload of {len(data)} bytes over {settings.max_upload_bytes}",
        )

    processed = await run_in_threadpool(
        process_image,
        data,
        settings.image_max_width,
        settings.image_max_height,
        settings.image_quality,
    )
    stored = await run_in_threadpool(
        store.put_image, buckets[bucket], processed, image.filename or "image"
    )
    return UploadImageResponse(success=True, imageUrl=stored.url, filename=stored.filename)


@router.get("/publications", response_model=list[PublicationResponse])
def list_publications(store: RecordStore = Depends(get_record_store)):
    return [record.as_dict() for record in store.list_publications()]


@router.get("/publications/{publication_id}", response_model=PublicationResponse)
def get_publication(publication_id: int, store: RecordStore = Depends(get_record_store)):
    record = store.get_publication(publication_id)
    if record is None:
        raise NotFoundError("Publicação não encontrada")
    return record.as_dict()


@router.post("/publications", response_model=PublicationResponse, status_code=201)
def create_publication(
    payload: PublicationPayload, store: RecordStore = Depends(get_record_store)
):
    fields = _validated_fields(payload, PUBLICATION_FIELDS, REQUIRED_PUBLICATION_FIELDS)
    record = store.insert_publication(fields)
    logger.info("Created publication %s", record.id)
    return record.as_dict()


@router.put("/publications/{publication_id}", response_model=PublicationResponse)
def update_publication(
    publication_id: int,
    payload: PublicationPayload,
    store: RecordStore = Depends(get_record_store),
):
    fields = _validated_fields(payload, PUBLICATION_FIELDS, REQUIRED_PUBLICATION_FIELDS)
    record = store.update_publication(publication_id, fields)
    if record is None:
        raise NotFoundError("Publicação não encontrada")
    return record.as_dict()


@router.delete("/publications/{publication_id}", response_model=MessageResponse)
def delete_publication(publication_id: int, store: RecordStore = Depends(get_record_store)):
    if not store.delete_publication(publication_id):
        raise NotFoundError("Publicação não encontrada")
    logger.info("Deleted publication %s", publication_id)
    return MessageResponse(message="Publicação removida com sucesso")


@router.get("/members", response_model=list[MemberResponse])
def list_members(store: RecordStore = Depends(get_record_store)):
    return [record.as_dict() for record in store.list_members()]


@router.get("/members/{member_id}", response_model=MemberResponse)
def get_member(member_id: int, store: RecordStore = Depends(get_record_store)):
    record = store.get_member(member_id)
    if record is None:
        raise NotFoundError("Membro não encontrado")
    return record.as_dict()


@router.post("/members", response_model=MemberResponse, status_code=201)
def create_member(payload: MemberPayload, store: RecordStore = Depends(get_record_store)):
    fields = _validated_fields(payload, MEMBER_FIELDS, REQUIRED_MEMBER_FIELDS)
    record = store.insert_member(fields)
    logger.info("Created member %s", record.id)
    return record.as_dict()


@router.put("/members/{member_id}", response_model=MemberResponse)
def update_member(
    member_id: int,
    payload: MemberPayload,
    store: RecordStore = Depends(get_record_store),
):
    fields = _validated_fields(payload, MEMBER_FIELDS, REQUIRED_MEMBER_FIELDS)
    record = store.update_member(member_id, fields)
    if record is None:
        raise NotFoundError("Membro não encontrado")
    return record.as_dict()


@router.delete("/members/{member_id}", response_model=MessageResponse)
def delete_member(member_id: int, store: RecordStore = Depends(get_record_store)):
    if not store.delete_member(member_id):
        raise NotFoundError("Membro não encontrado")
    logger.info("Deleted member %s", member_id)
    return MessageResponse(message="Membro removido com sucesso")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
):
    """
    Accepts the configured bypass pair before touching the store; otherwise
    compares against the stored admin users.
    """
    if (
        settings.bypass_username
        and payload.username == settings.bypass_username
        and payload.password == settings.bypass_password
    ):
        return LoginResponse(success=True, message="Login realizado com sucesso")

    if not payload.username or not payload.password:
        raise AuthError(detail="Missing username or password")
    try:
        valid = store.verify_admin(payload.username, payload.password)
    except BackendUnavailableError as exc:
        logger.warning("Admin lookup failed, rejecting login: %s", exc)
        valid = False
    if not valid:
        raise AuthError(detail=f"Bad credentials for {payload.username!r}")
    return LoginResponse(success=True, message="Login realizado com sucesso")
