"""System instructions and prompt templates used by the mode registry.

This module only builds strings. Mode selection, model invocation, and result
shaping happen in `multimode.modes.registry`.

Design constraints:
    - Deterministic construction for identical inputs.
    - No I/O, no global state mutation.
    - User text is interpolated as a raw string; no escaping is applied.
"""


# =========================================================
# SYSTEM INSTRUCTIONS
# =========================================================

ASSISTANT_INSTRUCTION = (
    "You are a helpful, witty, and knowledgeable AI assistant. "
    "Keep responses concise and engaging."
)

CODEX_INSTRUCTION = "You are an expert coding assistant. Respond with JSON only."

THINKING_INSTRUCTION = (
    "Analyze the user's request using a \"Thinking Process\".\n"
    "Break it down into: 1. Initial Analysis 2. Step-by-step reasoning "
    "3. Alternative viewpoints 4. Final Conclusion.\n"
    "Format the output as a structured markdown document for a "
    "\"Thought Process\" canvas."
)

RESEARCH_INSTRUCTION = (
    "You are a research assistant. Provide a structured research summary with headings."
)

DEEP_RESEARCH_INSTRUCTION = (
    "You are a PhD-level researcher. Conduct a \"Deep Research\" analysis."
)

MATH_INSTRUCTION = "You are a math tutor. Solve the problem step-by-step."

ANALYST_INSTRUCTION = (
    "You are a data analyst. Provide data analysis with summary and metrics."
)

CREATIVE_INSTRUCTION = "You are a creative writer. Write a creative piece."

WRITER_INSTRUCTION = "You are a professional editor. Write a long-form article."

GUIDED_INSTRUCTION = "You are a teacher. Create a Learning Guide."


# =========================================================
# CODEX PROMPT
# =========================================================
# Prompt component order:
#   1) Quoted user request
#   2) Output constraints (code in markdown blocks, short explanation)
#   3) JSON field contract consumed by `registry.parse_codex_response`

def build_codex_prompt(message: str) -> str:
    """Build the code-generation request wrapping the user message."""
    return (
        f"Generate code for the following request: \"{message}\".\n"
        "Return ONLY the code logic wrapped in markdown code blocks.\n"
        "Also provide a brief explanation.\n"
        "Format: JSON with fields \"code\", \"language\", \"explanation\"."
    )
