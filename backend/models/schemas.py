from enum import Enum
from typing import Optional, List, Union, Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


class IntelligenceMode(str, Enum):
    SURVIVAL = "survival"
    WEAPONIZER = "weaponizer"
    TRAP_DETECTOR = "trap-detector"
    MCQ_GENERATOR = "mcq-generator"


PDF_MIME = "application/pdf"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


class UploadedAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., max_length=500)
    mimeType: str = Field(..., max_length=200)
    sizeBytes: int = Field(..., ge=0)
    inlineDataReference: Optional[str] = None  # data URI, images only
    extractedText: Optional[str] = None        # documents only

    @property
    def is_image(self) -> bool:
        return self.mimeType.startswith("image/")

    @property
    def is_document(self) -> bool:
        return self.mimeType == PDF_MIME or "presentation" in self.mimeType


class UploadResponse(BaseModel):
    files: list[UploadedAsset]


# ── Adapter inputs ────────────────────────────────────────────────────────────

class SurvivalRequest(BaseModel):
    textContent: str
    imageReference: Optional[str] = None


class WeaponizerRequest(BaseModel):
    text: str
    imageDataUri: Optional[str] = None
    documentTextContent: Optional[str] = None


class TrapDetectorRequest(BaseModel):
    studyMaterial: str


class McqRequest(BaseModel):
    studyMaterialText: Optional[str] = None
    studyMaterialImage: Optional[str] = None

    @model_validator(mode="after")
    def require_text_or_image(self):
        if not self.studyMaterialText and not self.studyMaterialImage:
            raise ValueError("Either studyMaterialText or studyMaterialImage must be provided.")
        return self


# ── Adapter outputs ───────────────────────────────────────────────────────────

class SurvivalResult(BaseModel):
    revisionSummary: str = Field(..., description="An ultra-condensed revision summary of the study material.")
    keyFormulas: List[str] = Field(..., description="Key formulas extracted from the study material.")
    importantDefinitions: List[str] = Field(..., description="Important definitions extracted from the study material.")
    criticalTheorems: List[str] = Field(..., description="Critical theorems extracted from the study material.")


class WeaponizerResult(BaseModel):
    probableQuestions: List[str] = Field(..., min_length=10, max_length=10, description="Exactly 10 probable exam questions.")
    predictedWeightage: str = Field(..., description="Predicted importance of the topic in an exam (High, Medium, Low or a range).")
    importantDerivations: List[str] = Field(..., description="Important derivations, formulas or step-by-step methods.")
    strategicStudySuggestions: List[str] = Field(..., description="Strategic study suggestions tailored to the material.")


class TrapDetectorResult(BaseModel):
    commonMistakes: List[str] = Field(..., description="Errors students frequently make.")
    misconceptions: List[str] = Field(..., description="Incorrect understandings students often hold.")
    trickQuestions: List[str] = Field(..., description="Ways the concept can be tested deceptively.")
    frequentlyConfusedConcepts: List[str] = Field(..., description="Concepts that are often mixed up with this one.")
    summary: str = Field(..., description="A brief overview of the identified traps.")


class Mcq(BaseModel):
    question: str
    options: List[str] = Field(..., min_length=2, max_length=5)
    answer: str = Field(..., description="The correct answer option (must be one of the options).")
    explanation: str

    @model_validator(mode="after")
    def answer_must_be_an_option(self):
        if self.answer not in self.options:
            raise ValueError(f"MCQ answer is not one of its options: {self.question}")
        return self


class McqResult(BaseModel):
    mcqs: List[Mcq] = Field(..., min_length=10, max_length=15)


IntelligenceResult = Union[SurvivalResult, WeaponizerResult, TrapDetectorResult, McqResult]


# ── API envelopes ─────────────────────────────────────────────────────────────

class IntelligenceRequestBody(BaseModel):
    mode: IntelligenceMode
    text: str = Field("", max_length=500000)
    files: list[UploadedAsset] = Field(default_factory=list, max_length=20)


class IntelligenceResponse(BaseModel):
    mode: IntelligenceMode
    sessionId: str
    title: str
    result: dict[str, Any]


class ModeInfo(BaseModel):
    id: IntelligenceMode
    label: str
    description: str


class StudySession(BaseModel):
    id: str
    userId: str
    title: str
    contentType: str
    contentReference: str = "stored_in_doc"
    extractedText: str
    uploadDateTime: str
    processingStatus: str = "READY_FOR_AI"
    createdAt: Optional[Any] = None  # server timestamp, filled in by the store
    generatedContent: dict[str, Any]
    intelligenceModeId: IntelligenceMode


class SessionSummary(BaseModel):
    id: str
    title: str
    contentType: str
    uploadDateTime: str
    intelligenceModeId: IntelligenceMode


class ExportRequest(BaseModel):
    mode: IntelligenceMode
    result: dict[str, Any]
