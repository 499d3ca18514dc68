"""Record assembly and the download record schema."""
from __future__ import annotations

from dataclasses import dataclass

PLACEHOLDER_URL = "#"
UNTITLED = "Untitled"

TIER_MARKER = "marker"
TIER_HEURISTIC = "heuristic"

# Historical consumer keys, each mirroring one canonical key.
LEGACY_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("display-name", "title"),
    "category": ("primary-download-category", "primaryDownloadCategory"),
    "productCategory": ("productType", "product-category", "primaryRelatedProductCategory"),
    "fileType": ("filetype",),
    "fileSize": ("filesize",),
}


@dataclass
class ExtractedFields:
    """Field values produced by one extraction tier for a single item."""

    name: str = ""
    download_url: str = PLACEHOLDER_URL
    category: str = ""
    product_category: str = ""
    file_size: str = ""
    file_type: str = ""


@dataclass(frozen=True)
class DownloadRecord:
    id: str
    name: str
    download_url: str
    category: str
    product_category: str
    file_size: str
    file_type: str
    tier: str = TIER_HEURISTIC

    @property
    def is_valid(self) -> bool:
        return bool(self.name) and self.download_url != PLACEHOLDER_URL

    def canonical(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "downloadUrl": self.download_url,
            "category": self.category,
            "productCategory": self.product_category,
            "fileSize": self.file_size,
            "fileType": self.file_type,
        }

    def to_dict(self) -> dict[str, str]:
        data = self.canonical()
        for key, aliases in LEGACY_ALIASES.items():
            for alias in aliases:
                data[alias] = data[key]
        return data


def record_id(ordinal: int) -> str:
    return f"cms-{ordinal}"


def clean_value(value: str | None) -> str:
    return value.strip() if value else ""


def assemble_record(ordinal: int, fields: ExtractedFields, tier: str) -> DownloadRecord:
    download_url = clean_value(fields.download_url) or PLACEHOLDER_URL
    return DownloadRecord(
        id=record_id(ordinal),
        name=clean_value(fields.name),
        download_url=download_url,
        category=clean_value(fields.category),
        product_category=clean_value(fields.product_category),
        file_size=clean_value(fields.file_size),
        file_type=clean_value(fields.file_type),
        tier=tier,
    )


def invalid_reason(record: DownloadRecord) -> str | None:
    if not record.name:
        return "no-name"
    if record.download_url == PLACEHOLDER_URL:
        return "no-link"
    return None
