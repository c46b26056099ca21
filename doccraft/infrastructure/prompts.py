"""Prompt text used by the OpenAI-backed generative service."""
from __future__ import annotations

from doccraft.core.questions import GapQuestionSet
from doccraft.core.schema import DocConfig, GapQuestion

SKIPPED_MARKER = "⚠️"

TEMPLATES: dict[str, str] = {
    "user-guide": """Structure:
1. Overview / Introduction
2. Prerequisites
3. Getting Started
4. Core Features (step-by-step)
5. Advanced Usage
6. Troubleshooting / FAQ
7. Glossary (if needed)""",
    "quick-start": """Structure:
1. What You'll Build / Achieve
2. Before You Begin (prerequisites, 2-3 bullet max)
3. Steps (numbered, concise, action-oriented)
4. Verify It Works
5. Next Steps""",
    "api-reference": """Structure:
1. Overview
2. Authentication
3. Base URL & Endpoints
4. Request/Response Format
5. Endpoints (grouped by resource)
6. Error Codes
7. Rate Limits
8. Examples""",
    "troubleshooting": """Structure:
1. Common Issues (symptom -> cause -> fix)
2. Error Messages Reference
3. Diagnostic Steps
4. Escalation / Contact Support""",
    "release-notes": """Structure:
1. Version & Date
2. Highlights
3. New Features
4. Improvements
5. Bug Fixes
6. Known Issues
7. Migration Notes (if applicable)""",
}

AUDIENCE_INSTRUCTIONS: dict[str, str] = {
    "non-technical": (
        "Write for end-users with no technical background. Avoid jargon. Use simple language, "
        "analogies, and visual descriptions. Every step should be explicit."
    ),
    "technical": (
        "Write for developers or technical staff. You can use technical terminology, code snippets, "
        "and assume familiarity with common tools."
    ),
    "mixed": (
        "Write for a mixed audience. Lead with simple explanations, then provide technical details "
        "in optional sections or notes."
    ),
}

TONE_INSTRUCTIONS: dict[str, str] = {
    "formal": "Use formal, professional language. Third person. No contractions. Suitable for enterprise documentation.",
    "conversational": (
        "Use friendly, approachable language. Second person (you/your). Contractions are fine. "
        "Guide the reader like a helpful colleague."
    ),
    "instructional": (
        "Use direct, imperative language. Focus on clear commands and actions. Minimal fluff. "
        "Every sentence should drive the user forward."
    ),
}

REFINE_INSTRUCTIONS: dict[str, str] = {
    "simplify": (
        "Rewrite this section in simpler language. Remove jargon. Use shorter sentences. "
        "Keep the same meaning and structure."
    ),
    "expand": (
        "Expand this section with more detail, examples, and explanation. Add context that helps the "
        "reader understand why, not just what. Keep the same tone."
    ),
    "example": "Add a practical, real-world example to illustrate this section, relatable to the target audience.",
    "troubleshoot": (
        "Add troubleshooting content for this section: common issues, their causes, and step-by-step fixes. "
        "Format as Problem -> Cause -> Solution."
    ),
    "formal": "Rewrite this section in a more formal, professional tone. Use third person. Remove contractions.",
    "concise": "Make this section more concise. Remove redundant words and phrases. Keep only essential information.",
}

COMPLIANCE_SYSTEM_PROMPT = """You are an MSTP (Microsoft Style Guide) compliance checker.

Analyse the provided documentation and return a JSON array of issues.

Check for:
- VOICE: passive voice constructions (flag the exact phrase, suggest active rewrite)
- VOICE: missing second person, steps or instructions not addressed to "you"
- STRUCTURE: numbered steps that do NOT start with an imperative verb
- STRUCTURE: headings that are NOT in sentence case
- STYLE: paragraphs longer than 4 sentences
- STYLE: informal or overly casual phrases inconsistent with professional docs

Each issue object must have exactly these fields:
{
  "id": "ai-N",
  "category": "voice" | "structure" | "style",
  "severity": "error" | "warning" | "suggestion",
  "rule": "<short rule name>",
  "problematic_text": "<the exact excerpt from the document, max 120 chars>",
  "suggestion": "<specific, actionable fix>"
}

Return ONLY the JSON array. If there are no issues, return [].
Limit to the 15 most important issues."""

RECOMMEND_SYSTEM_PROMPT = """You are a documentation expert. Recommend the most appropriate documentation type for the content.

Available types:
- user-guide: Comprehensive end-user documentation covering features in depth
- quick-start: Short onboarding guide to get up and running in minutes
- api-reference: Technical API documentation with endpoints, parameters, responses
- troubleshooting: Problem -> Cause -> Solution format for error resolution
- release-notes: What's new and changed in a product release

Return a JSON object:
{"type": "<one of the types above>", "reason": "<one sentence, max 12 words>", "confidence": <0.0 to 1.0>}"""


def _template(config: DocConfig) -> str:
    return TEMPLATES.get(config.doc_type, TEMPLATES["user-guide"])


def _custom(config: DocConfig, label: str) -> str:
    if not config.custom_instructions.strip():
        return ""
    return f"{label}: {config.custom_instructions.strip()}"


def analysis_system_prompt(config: DocConfig) -> str:
    return f"""You are a senior technical writer analyzing raw source material to create documentation.

Identify GAPS, AMBIGUITIES, and ASSUMPTIONS that need clarification before you can write high-quality documentation.

Target document type: {config.doc_type}
Target template structure:
{_template(config)}

Audience: {config.audience}: {AUDIENCE_INSTRUCTIONS.get(config.audience, "")}

Return a JSON array of questions. Each question has:
- "id": a unique string such as "q1"
- "question": the specific question you need answered
- "category": "missing", "ambiguous", or "assumption"

Aim for 5-12 focused, specific questions.

{_custom(config, "Additional instructions")}

Return ONLY the JSON array, no markdown fences, no explanation."""


def analysis_user_prompt(content: str, context: str) -> str:
    message = f"Here is the raw source material:\n\n{content[:12000]}"
    if context:
        message += f"\n\nReference material (style guides, related docs):\n\n{context[:6000]}"
    return message


def synthesis_system_prompt(config: DocConfig) -> str:
    return f"""You are a senior technical writer creating production-ready documentation.

DOCUMENT TYPE: {config.doc_type}
TEMPLATE STRUCTURE:
{_template(config)}

AUDIENCE: {config.audience}
{AUDIENCE_INSTRUCTIONS.get(config.audience, "")}

TONE: {config.tone}
{TONE_INSTRUCTIONS.get(config.tone, "")}

RULES:
1. Follow the template structure exactly
2. Write from the user's perspective
3. Use consistent formatting: headings, numbered steps, callout boxes
4. Mark any assumed information with {SKIPPED_MARKER} so reviewers can verify
5. Include practical examples where helpful
6. Keep paragraphs short (3-4 sentences max)
7. For steps, use the format "Step N: [Action]" with a brief explanation below
8. Output clean Markdown

{_custom(config, "ADDITIONAL INSTRUCTIONS")}"""


def synthesis_user_prompt(content: str, answers: list[GapQuestion], context: str) -> str:
    questions = GapQuestionSet(answers)
    answered = "\n\n".join(f"Q: {item.question}\nA: {item.answer}" for item in questions.answered())
    skipped = "\n".join(
        f"- {item.question} [SKIPPED: make a reasonable assumption and mark it with {SKIPPED_MARKER}]"
        for item in questions.skipped()
    )
    parts = [f"SOURCE MATERIAL:\n{content[:12000]}"]
    if context:
        parts.append(f"REFERENCE MATERIAL:\n{context[:6000]}")
    if answered:
        parts.append(f"CLARIFICATIONS FROM SME:\n{answered}")
    if skipped:
        parts.append(f"UNANSWERED QUESTIONS (make reasonable assumptions):\n{skipped}")
    parts.append("Please generate the complete documentation now.")
    return "\n\n".join(parts)


def refine_system_prompt(action: str, config: DocConfig) -> str:
    instruction = REFINE_INSTRUCTIONS[action]
    return f"""You are a senior technical writer refining documentation.
Audience: {config.audience}
Tone: {config.tone}

Your task: {instruction}

Return ONLY the rewritten text in Markdown. No explanations and no preamble."""


def diagram_system_prompt(diagram_type: str | None) -> str:
    hint = (
        f"Generate a {diagram_type} diagram."
        if diagram_type
        else "Choose the most appropriate diagram type (flowchart, sequenceDiagram, or stateDiagram-v2)."
    )
    return f"""You are a technical documentation expert who generates Mermaid diagrams.

{hint}

Rules:
- Output ONLY valid Mermaid v10 syntax, no explanation and no markdown fences
- Keep diagrams concise (max 15 nodes or steps)
- Wrap node labels containing special chars in double quotes"""
