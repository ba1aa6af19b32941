"""Prompt helpers shared by providers.

Math detection scans the whole conversation so that a formatting
instruction can be injected before the history is sent.
"""

import logging
import re
from pathlib import Path

from delfin_chat.llm.base import LLMMessage

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_PATH = Path(__file__).parent / "prompt.txt"
FALLBACK_SYSTEM_PROMPT = "You are Delfin Chatbot, a helpful AI assistant."

MATH_KEYWORDS = re.compile(
    r"\b(equation|formula|math|solve|calculate|quadratic|algebra|geometry|calculus"
    r"|function|derivative|integral|matrix|vector|polynomial|coefficient|variable"
    r"|solution|theorem|proof|x\^|\^2|sqrt|fraction|percent)\b"
)

# Short form for APIs with a dedicated system role
MATH_SYSTEM_INSTRUCTION = (
    "When providing mathematical expressions, always use LaTeX syntax with dollar "
    "signs: $expression$ for inline math and $$expression$$ for block math."
)

MATH_TURN_INSTRUCTION = """IMPORTANT: When providing mathematical expressions, always use LaTeX syntax with dollar signs for proper rendering:
- For inline math: $expression$
- For block math: $$expression$$

Examples:
- Quadratic formula: $x = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}$
- Equation: $ax^2 + bx + c = 0$
- Fractions: $\\frac{1}{2}$
- Square roots: $\\sqrt{x}$
- Superscripts: $x^2$
- Subscripts: $H_2O$

Always format ALL mathematical content this way."""


def conversation_text(messages: list[LLMMessage]) -> str:
    """Join all turn texts, lower-cased, for keyword scanning."""
    return " ".join(m.content for m in messages).lower()


def detect_math_content(text: str) -> bool:
    """Return True if the text mentions any math keyword."""
    return MATH_KEYWORDS.search(text) is not None


def load_system_prompt(path: str | Path | None = None) -> str:
    """Read the system prompt file.

    Args:
        path: Prompt file location. Defaults to the bundled prompt.txt.

    Returns:
        The prompt text, or the fallback prompt if the file is missing or empty.
    """
    prompt_path = Path(path) if path else DEFAULT_PROMPT_PATH
    try:
        prompt = prompt_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning(f"Failed to load system prompt from {prompt_path}, using fallback: {e}")
        return FALLBACK_SYSTEM_PROMPT

    return prompt or FALLBACK_SYSTEM_PROMPT
