import time
from datetime import datetime
from typing import Any

from models.schemas import IntelligenceMode

# (heading, field, kind) per mode, in display order
_SECTIONS: dict[IntelligenceMode, list[tuple[str, str, str]]] = {
    IntelligenceMode.SURVIVAL: [
        ("Revision Summary", "revisionSummary", "text"),
        ("Key Formulas", "keyFormulas", "list"),
        ("Important Definitions", "importantDefinitions", "list"),
        ("Critical Theorems", "criticalTheorems", "list"),
    ],
    IntelligenceMode.WEAPONIZER: [
        ("Probable Questions", "probableQuestions", "list"),
        ("Predicted Weightage", "predictedWeightage", "bold"),
        ("Important Derivations", "importantDerivations", "list"),
        ("Strategic Suggestions", "strategicStudySuggestions", "list"),
    ],
    IntelligenceMode.TRAP_DETECTOR: [
        ("Common Mistakes", "commonMistakes", "list"),
        ("Misconceptions", "misconceptions", "list"),
        ("Frequently Confused Concepts", "frequentlyConfusedConcepts", "list"),
        ("Trick Questions", "trickQuestions", "list"),
        ("Summary", "summary", "text"),
    ],
}


def _section(heading: str, value: Any, kind: str) -> str:
    if kind == "list":
        body = "\n".join(f"- {item}" for item in (value or []))
    elif kind == "bold":
        body = f"**{value}**"
    else:
        body = str(value or "")
    return f"## {heading}\n{body}\n"


def _mcq_sections(mcqs: list[dict]) -> str:
    out = "## Practice MCQs\n\n"
    for idx, mcq in enumerate(mcqs, start=1):
        out += f"### Q{idx}: {mcq['question']}\n"
        for o_idx, opt in enumerate(mcq["options"]):
            out += f"{chr(65 + o_idx)}) {opt}\n"
        out += f"**Answer:** {mcq['answer']}\n"
        out += f"**Explanation:** {mcq['explanation']}\n\n"
    return out


def build_report(mode: IntelligenceMode, result: dict, generated_at: datetime | None = None) -> str:
    """
    Renders a result as a Markdown intelligence report: a header with the
    mode and timestamp, then one section per field of the mode's output.
    """
    generated_at = generated_at or datetime.now()
    content = "# ExamForge AI Intelligence Report\n\n"
    content += f"**Mode:** {mode.value.replace('-', ' ').upper()}\n"
    content += f"**Date:** {generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n\n---\n\n"

    if mode is IntelligenceMode.MCQ_GENERATOR:
        return content + _mcq_sections(result.get("mcqs", []))

    return content + "\n".join(
        _section(heading, result.get(key), kind) for heading, key, kind in _SECTIONS[mode]
    )


def report_filename(mode: IntelligenceMode) -> str:
    return f"ExamForge_Intelligence_{mode.value}_{int(time.time() * 1000)}.md"
