from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatchStatus(str, Enum):
    FOUND = "found"
    NEW = "new"
    ERROR = "error"


# one row read off a register photo, exactly as OCR returned it
class ExtractedMark(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "rollNumber": "০১",
                "name": "করিম",
                "totalMarks": 85,
                "confidence": "high"
            }
        }
    )

    roll_number: str = Field(..., alias="rollNumber", description="Roll number, possibly in Bengali numerals")
    name: str = Field(..., description="Student name as written in the register")
    total_marks: float = Field(..., alias="totalMarks", description="Total marks out of 100")
    confidence: Confidence = Field(
        default=Confidence.MEDIUM,
        description="OCR self-reported confidence (informational only)"
    )


# existing student supplied by the caller, read only
class RosterEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(..., description="Student id")
    name: str = Field(..., description="Student name")
    roll_number: str = Field(..., alias="rollNumber", description="Two-digit roll number")


class MatchedMark(ExtractedMark):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "rollNumber": "05",
                "name": "Al",
                "totalMarks": 72,
                "confidence": "medium",
                "studentId": "stu-5",
                "matchedStudent": {"id": "stu-5", "name": "Al", "rollNumber": "05"},
                "matchStatus": "found",
                "matchConfidence": 1.0,
                "validationErrors": []
            }
        }
    )

    student_id: Optional[str] = Field(None, alias="studentId", description="Set iff matched to a roster entry")
    matched_student: Optional[RosterEntry] = Field(None, alias="matchedStudent")
    match_status: MatchStatus = Field(..., alias="matchStatus")
    match_confidence: Optional[float] = Field(
        None,
        alias="matchConfidence",
        ge=0.0,
        le=1.0,
        description="1.0 for exact roll match, similarity score for fuzzy name match"
    )
    validation_errors: List[str] = Field(default_factory=list, alias="validationErrors")


class ValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None


class SummaryStats(BaseModel):
    total: int = Field(..., description="Rows in the result")
    matched: int = Field(..., description="Rows matched to an existing student")
    new: int = Field(..., description="Rows to be created as new students")
    errors: int = Field(..., description="Rows that failed validation")


class DataValidation(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


# api res model
class KhataExtractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="Whether any marks were extracted")
    extracted_marks: List[Union[MatchedMark, ExtractedMark]] = Field(
        default_factory=list,
        alias="extractedMarks"
    )
    warnings: List[str] = Field(
        default_factory=list,
        description="Cross-image conflicts followed by per-image processing errors"
    )
    total_images_processed: int = Field(0, alias="totalImagesProcessed")
    total_students_extracted: int = Field(0, alias="totalStudentsExtracted")
    error: Optional[str] = Field(None, description="Set when nothing could be extracted")
    summary: Optional[SummaryStats] = Field(None, description="Match counts, present when a roster was given")
    processing_time_ms: Optional[float] = Field(None, alias="processingTimeMs")


class ReconciliationReport(BaseModel):
    success: bool
    merged: List[Union[MatchedMark, ExtractedMark]] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    processing_errors: List[str] = Field(default_factory=list)
    total_images_processed: int = 0
    total_students_extracted: int = 0
    error: Optional[str] = None
    summary: Optional[SummaryStats] = None

    def to_response(self, processing_time_ms: Optional[float] = None) -> KhataExtractionResponse:
        return KhataExtractionResponse(
            success=self.success,
            extracted_marks=list(self.merged),
            warnings=[*self.warnings, *self.processing_errors],
            total_images_processed=self.total_images_processed,
            total_students_extracted=self.total_students_extracted,
            error=self.error,
            summary=self.summary,
            processing_time_ms=processing_time_ms,
        )


class KhataExtractionRequest(BaseModel):
    images: List[str] = Field(..., description="Register photos as data URLs or bare base64")
    roster: Optional[List[RosterEntry]] = Field(
        None,
        description="Existing students; omit to skip roster matching"
    )


class MatchRequest(BaseModel):
    marks: List[ExtractedMark] = Field(..., description="Reviewed marks to (re)match")
    roster: List[RosterEntry] = Field(default_factory=list)


class MatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    marks: List[MatchedMark]
    summary: SummaryStats
    validation: DataValidation


# health res with llm provider
class HealthResponse(BaseModel):
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    llm_provider: str = Field(..., description="Active LLM provider")
    llm_status: str = Field(..., description="LLM connection status")

# error res
class ErrorResponse(BaseModel):
    success: bool = Field(default=False)
    error: str = Field(..., description="Error message")
    error_code: str = Field(..., description="Error code for debugging")
    details: Optional[dict] = Field(None, description="Additional error details")
