"""Pydantic schemas for persisted bundle records."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.codec import DATA_URL_SCHEME
from common.exceptions import CorruptRecordError
from common.types import Bundle, FileRecord


class FileRecordModel(BaseModel):
    """Stored form of one file: {name, size, type, data, lastModified}."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int = Field(ge=0)
    type: str = ""
    data: str
    last_modified: int = Field(default=0, alias="lastModified")

    @field_validator("data")
    @classmethod
    def data_must_be_data_url(cls, v: str) -> str:
        if not v.startswith(DATA_URL_SCHEME):
            raise ValueError("data must be a data: URL")
        return v


class BundleRecord(BaseModel):
    """Stored form of a bundle: {files, timestamp, id, expires}."""
    files: List[FileRecordModel] = Field(min_length=1)
    timestamp: int
    id: str = Field(min_length=1)
    expires: int

    @classmethod
    def from_bundle(cls, bundle: Bundle) -> 'BundleRecord':
        return cls(
            files=[
                FileRecordModel(
                    name=item.name,
                    size=item.size,
                    type=item.mime_type,
                    data=item.payload,
                    last_modified=item.modified_at,
                )
                for item in bundle.items
            ],
            timestamp=bundle.created_at,
            id=bundle.id,
            expires=bundle.expires_at,
        )

    def to_bundle(self) -> Bundle:
        return Bundle(
            id=self.id,
            items=tuple(
                FileRecord(
                    name=f.name,
                    size=f.size,
                    mime_type=f.type,
                    payload=f.data,
                    modified_at=f.last_modified,
                )
                for f in self.files
            ),
            created_at=self.timestamp,
            expires_at=self.expires,
        )


def serialize_bundle(bundle: Bundle) -> str:
    """
    Serialize a bundle to its persisted JSON form.

    Args:
        bundle: Bundle to store

    Returns:
        JSON string using the stored field names (lastModified, expires, ...)
    """
    return BundleRecord.from_bundle(bundle).model_dump_json(by_alias=True)


def parse_bundle(raw: str) -> Bundle:
    """
    Parse and validate a persisted bundle record.

    Args:
        raw: JSON string read from the key-value store

    Returns:
        Bundle rebuilt from the record

    Raises:
        CorruptRecordError: If the value is not JSON or fails validation
    """
    try:
        return BundleRecord.model_validate_json(raw).to_bundle()
    except ValidationError as e:
        raise CorruptRecordError(f"Invalid bundle record: {e.error_count()} error(s)") from e
