import logging
from dataclasses import dataclass, field
from typing import Callable, Optional
from pydantic import BaseModel, ValidationError

from models.schemas import (
    IntelligenceMode,
    IntelligenceResult,
    UploadedAsset,
    SurvivalRequest,
    SurvivalResult,
    WeaponizerRequest,
    WeaponizerResult,
    TrapDetectorRequest,
    TrapDetectorResult,
    McqRequest,
    McqResult,
    ModeInfo,
)
from services import gemini_service
from services.errors import InputMissingError, GenerationFailedError

logger = logging.getLogger(__name__)

# Included in every mode's instruction.
LATEX_RULE = (
    "CRITICAL: If the material contains any mathematical content (formulas, equations, variables, "
    "derivations), ALWAYS use standard LaTeX notation for ALL mathematical expressions.\n"
    "- Use $...$ for inline math (e.g., $E=mc^2$).\n"
    "- Use $$...$$ for standalone block math equations.\n"
    "- Write subscripts (a_{n}), superscripts (x^{2}), fractions (\\frac{a}{b}) and special symbols "
    "(\\int, \\sum, \\alpha) in LaTeX.\n"
)


# ── Prompt builders ───────────────────────────────────────────────────────────

def _survival_prompt(req: SurvivalRequest) -> str:
    prompt = (
        "You are an expert exam strategist and educator who writes ultra-condensed revision notes "
        "for competitive exams.\n"
        "Analyse the study material and extract only what matters for rapid revision.\n\n"
        f"{LATEX_RULE}\n"
        "List the key formulas, important definitions and critical theorems, then write an "
        "ultra-condensed summary of the whole material.\n\n"
        f"Study Material Text:\n{req.textContent}\n"
    )
    if req.imageReference:
        prompt += "\nVisual Reference: an image of the material is attached above.\n"
    prompt += "\nKeep the output concise, accurate and directly useful for last-minute exam preparation."
    return prompt


def _weaponizer_prompt(req: WeaponizerRequest) -> str:
    prompt = (
        "You are an expert AI Exam Strategist. Analyse the study material thoroughly and produce "
        "exam-focused intelligence.\n\n"
        f"{LATEX_RULE}\n"
        "Identify and output:\n"
        "1. **10 Probable Exam Questions**: direct, challenging questions.\n"
        "2. **Predicted Weightage**: importance level (High/Medium/Low).\n"
        "3. **Important Derivations**: critical derivations, formulas or step-by-step proofs.\n"
        "4. **Strategic Study Suggestions**: practical advice for retention.\n\n"
        f"Study Material for Analysis:\n---\n{req.text}\n"
    )
    if req.documentTextContent:
        prompt += f"\nAdditional Extracted Text from Documents (PDF/PPTX):\n---\n{req.documentTextContent}\n"
    if req.imageDataUri:
        prompt += "\nVisual Study Material Reference:\n---\n(attached image above)\n"
    prompt += "\nReturn exactly 10 probable questions."
    return prompt


def _trap_detector_prompt(req: TrapDetectorRequest) -> str:
    return (
        "You are an expert educator specialising in competitive exam preparation. Analyse the study "
        "material and identify its \"concept traps\".\n\n"
        f"{LATEX_RULE}\n"
        "Output:\n"
        "1. **Common Mistakes**: errors students frequently make.\n"
        "2. **Misconceptions**: incorrect understandings students often hold.\n"
        "3. **Trick-Based Questions**: ways this concept can be tested deceptively.\n"
        "4. **Frequently Confused Concepts**: concepts that are often mixed up with this one.\n"
        "5. **Summary**: a brief overview of the identified traps.\n\n"
        f"Study Material:\n{req.studyMaterial}"
    )


def _mcq_prompt(req: McqRequest) -> str:
    prompt = (
        "You are an expert educator who writes competitive exam questions.\n"
        "Generate 10-15 multiple-choice questions (MCQs) of mixed difficulty from the study material.\n\n"
        f"{LATEX_RULE}"
        "Apply the LaTeX rule to the question, the options and the explanation.\n\n"
        "Rules:\n"
        "- Each question has between 2 and 5 options.\n"
        "- The answer MUST be copied verbatim from one of the options.\n"
        "- Give a short explanation for every answer.\n\n"
        "Study Material:\n"
    )
    if req.studyMaterialText:
        prompt += f"Text:\n{req.studyMaterialText}\n"
    if req.studyMaterialImage:
        prompt += "Image: attached above.\n"
    return prompt


# ── Mode table ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ModeSpec:
    mode: IntelligenceMode
    label: str
    description: str
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    build_prompt: Callable[[BaseModel], str]
    image_field: Optional[str] = None


MODE_SPECS: dict[IntelligenceMode, ModeSpec] = {
    spec.mode: spec
    for spec in (
        ModeSpec(
            IntelligenceMode.SURVIVAL,
            "5-Minute Survival",
            "Ultra-condensed revision notes: summary, formulas, definitions and theorems.",
            SurvivalRequest, SurvivalResult, _survival_prompt, "imageReference",
        ),
        ModeSpec(
            IntelligenceMode.WEAPONIZER,
            "Exam Weaponizer",
            "10 probable questions, predicted weightage, derivations and study strategy.",
            WeaponizerRequest, WeaponizerResult, _weaponizer_prompt, "imageDataUri",
        ),
        ModeSpec(
            IntelligenceMode.TRAP_DETECTOR,
            "Concept Trap Detector",
            "Common mistakes, misconceptions, trick questions and confused concepts.",
            TrapDetectorRequest, TrapDetectorResult, _trap_detector_prompt,
        ),
        ModeSpec(
            IntelligenceMode.MCQ_GENERATOR,
            "MCQ Generator",
            "10-15 practice multiple-choice questions with answers and explanations.",
            McqRequest, McqResult, _mcq_prompt, "studyMaterialImage",
        ),
    )
}


def list_modes() -> list[ModeInfo]:
    return [ModeInfo(id=s.mode, label=s.label, description=s.description) for s in MODE_SPECS.values()]


async def run_adapter(mode: IntelligenceMode, payload: dict | BaseModel) -> IntelligenceResult:
    """
    Generic generation adapter: validate the mode's input, format its
    instruction, call Gemini with the mode's output schema.
    """
    spec = MODE_SPECS[mode]
    try:
        request = (
            payload if isinstance(payload, spec.input_model)
            else spec.input_model.model_validate(payload)
        )
    except ValidationError as e:
        raise InputMissingError(f"Invalid input for {mode.value}: {e.errors()[0]['msg']}") from e

    image = getattr(request, spec.image_field) if spec.image_field else None
    prompt = spec.build_prompt(request)

    output = await gemini_service.generate_structured(
        prompt, spec.output_model, image_data_uri=image, mode=mode.value
    )
    if output is None:
        raise GenerationFailedError(mode.value, kind="empty-output")

    logger.info("Generated %s intelligence", mode.value)
    return output


# ── Dispatcher ────────────────────────────────────────────────────────────────

@dataclass
class InputBundle:
    raw_text: str = ""
    files: list[UploadedAsset] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.raw_text.strip() and not self.files

    @property
    def combined_text(self) -> str:
        # Joined over every file, images included: two images alone give "\n".
        return self.raw_text + "\n".join(f.extractedText or "" for f in self.files)

    @property
    def first_image(self) -> str | None:
        return next((f.inlineDataReference for f in self.files if f.is_image), None)

    @property
    def document_text(self) -> str:
        return "\n".join(f.extractedText or "" for f in self.files if f.is_document)


def build_payload(mode: IntelligenceMode, bundle: InputBundle) -> BaseModel:
    """
    Shapes the unified input bundle into the selected mode's request. Empty
    corpora get a literal placeholder so the model still has some text.
    """
    combined = bundle.combined_text
    text = bundle.raw_text
    image = bundle.first_image

    if mode is IntelligenceMode.SURVIVAL:
        return SurvivalRequest(textContent=combined or "No text", imageReference=image)
    if mode is IntelligenceMode.WEAPONIZER:
        return WeaponizerRequest(
            text=text or combined or "Material",
            imageDataUri=image,
            documentTextContent=bundle.document_text or None,
        )
    if mode is IntelligenceMode.TRAP_DETECTOR:
        return TrapDetectorRequest(studyMaterial=combined or text or "Material")
    if mode is IntelligenceMode.MCQ_GENERATOR:
        try:
            return McqRequest(studyMaterialText=combined or text or None, studyMaterialImage=image)
        except ValidationError as e:
            raise InputMissingError("MCQ generation needs text or an image.") from e
    raise ValueError(f"Unknown intelligence mode: {mode}")


async def dispatch(mode: IntelligenceMode, bundle: InputBundle) -> IntelligenceResult:
    """Route one generation request to exactly one adapter."""
    if bundle.is_empty:
        raise InputMissingError()

    payload = build_payload(mode, bundle)
    return await run_adapter(mode, payload)
