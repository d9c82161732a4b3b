"""
Data models for artist submissions.
Uses Pydantic for validation and type safety.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SubmissionStatus(str, Enum):
    """Review state. Intake only ever creates PENDING; the review surface owns the rest."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class UploadedFile(BaseModel):
    """One image as received from the request, before anything touches disk."""
    filename: str
    content_type: str = ""
    size: int = 0  # Declared size; the store also checks len(data)
    data: bytes = b""


class ApplicantInfo(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    website: str = ""
    address: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ArtworkInfo(BaseModel):
    title: str
    medium: str
    description: str
    dimensions: str = ""
    year_created: str = ""
    price: str = ""
    artist_statement: str = ""


class SubmissionFields(BaseModel):
    """Normalized form fields accepted by the validation policy."""
    applicant: ApplicantInfo
    artwork: ArtworkInfo


# Inbound form field name -> (section, attribute)
FORM_FIELDS: Dict[str, tuple] = {
    "firstName": ("applicant", "first_name"),
    "lastName": ("applicant", "last_name"),
    "email": ("applicant", "email"),
    "phone": ("applicant", "phone"),
    "website": ("applicant", "website"),
    "address": ("applicant", "address"),
    "artworkTitle": ("artwork", "title"),
    "medium": ("artwork", "medium"),
    "dimensions": ("artwork", "dimensions"),
    "yearCreated": ("artwork", "year_created"),
    "price": ("artwork", "price"),
    "description": ("artwork", "description"),
    "artistStatement": ("artwork", "artist_statement"),
}


class SubmissionRecord(BaseModel):
    """
    Persisted submission. The relational row is authoritative; the snapshot
    JSON in the submission directory is a copy of this model.
    """
    submission_id: str
    applicant: ApplicantInfo
    artwork: ArtworkInfo
    image_files: List[str] = Field(default_factory=list)
    submission_date: datetime
    status: SubmissionStatus = SubmissionStatus.PENDING
    admin_notes: str = ""

    def to_row(self) -> Dict[str, Any]:
        """Flatten into the column layout of the submissions table."""
        return {
            "submission_id": self.submission_id,
            "first_name": self.applicant.first_name,
            "last_name": self.applicant.last_name,
            "email": self.applicant.email,
            "phone": self.applicant.phone,
            "website": self.applicant.website,
            "address": self.applicant.address,
            "artwork_title": self.artwork.title,
            "medium": self.artwork.medium,
            "dimensions": self.artwork.dimensions,
            "year_created": self.artwork.year_created,
            "price": self.artwork.price,
            "description": self.artwork.description,
            "artist_statement": self.artwork.artist_statement,
            "image_files": json.dumps(self.image_files),
            "submission_date": self.submission_date.isoformat(),
            "status": self.status.value,
            "admin_notes": self.admin_notes,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SubmissionRecord":
        return cls(
            submission_id=row["submission_id"],
            applicant=ApplicantInfo(
                first_name=row["first_name"],
                last_name=row["last_name"],
                email=row["email"],
                phone=row.get("phone") or "",
                website=row.get("website") or "",
                address=row.get("address") or "",
            ),
            artwork=ArtworkInfo(
                title=row["artwork_title"],
                medium=row["medium"],
                description=row["description"],
                dimensions=row.get("dimensions") or "",
                year_created=row.get("year_created") or "",
                price=row.get("price") or "",
                artist_statement=row.get("artist_statement") or "",
            ),
            image_files=json.loads(row.get("image_files") or "[]"),
            submission_date=datetime.fromisoformat(row["submission_date"]),
            status=SubmissionStatus(row.get("status") or SubmissionStatus.PENDING.value),
            admin_notes=row.get("admin_notes") or "",
        )


class IntakeResult(BaseModel):
    """Outcome of one pipeline run, shaped for the JSON response."""
    success: bool
    message: str
    submission_id: Optional[str] = None
    category: Optional[str] = None
    stage: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None

    def to_response(self, debug: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.submission_id:
            body["submission_id"] = self.submission_id
        if debug and self.category:
            body["category"] = self.category
            body["stage"] = self.stage
            body["detail"] = self.detail
        return body
