"""
Queue message schemas.

QueueMessage is the transport envelope returned by the message queue;
ReviewMessage is the validated body. Only two message types exist, so an
unknown messageType fails validation like any other malformed body.

Dependencies: pydantic
System role: Data validation and contract definition for review requests
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

MessageType = Literal["file_review", "text_review"]


class QueueMessage(BaseModel):
    """Message as received from the queue."""

    message_id: str
    receipt_handle: str
    body: str
    receive_count: int = 1


class ReviewMessage(BaseModel):
    """Body of a review request message."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "jobId": "review_1718000000000_3f2a",
                "messageType": "file_review",
                "contentRef": "uploads/review_1718000000000_3f2a/report.pdf",
                "contentType": "application/pdf",
                "filename": "report.pdf",
                "fileSize": 102400,
            }
        },
    )

    job_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("jobId", "reviewId", "uploadId", "job_id"),
    )
    message_type: MessageType = Field(
        ...,
        validation_alias=AliasChoices("messageType", "message_type"),
    )
    content_ref: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("contentRef", "s3Key", "content_ref"),
    )
    content_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("contentType", "mimeType", "content_type"),
    )
    filename: str | None = Field(
        default=None,
        validation_alias=AliasChoices("filename", "fileName"),
    )
    file_size: int | None = Field(
        default=None,
        validation_alias=AliasChoices("fileSize", "file_size"),
    )
