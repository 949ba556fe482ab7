"""Response template tables.

Templates are plain `str.format` strings. Slots:

- brief_video: {timestamp}, {excerpt}
- detailed_video: {timestamp}, {text}, {followup}
- detailed_followup: {second_timestamp}
- *_not_found, greetings: {title}

Tables keyed by category fall back to their "default" (or "general") entry when
a category has no templates of its own.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ResponseTemplates(BaseModel):
    """All canned text the local responder can produce."""

    brief_video: dict[str, list[str]]
    detailed_video: dict[str, list[str]]
    detailed_followup: dict[str, str]
    brief_not_found: list[str]
    detailed_not_found: list[str]
    brief_general: dict[str, list[str]]
    detailed_general: dict[str, list[str]]
    credential_nudge: str
    greeting_main: str
    greeting_new_chat: str
    error_apology: str
    suggestions: dict[str, list[str]]

    def pick_table(self, table: dict[str, list[str]], key: str, fallback: str) -> list[str]:
        """Get templates for key, or for fallback if key has none."""
        return table.get(key) or table[fallback]

    @classmethod
    def from_file(cls, path: Path) -> "ResponseTemplates":
        """Load templates from a JSON file (same shape as DEFAULT_TEMPLATES)."""
        return cls.model_validate_json(path.read_text(encoding="utf-8"))


BRIEF_VIDEO = {
    "summary": [
        'At {timestamp}: "{excerpt}..." This covers the main points.',
        'Key content at {timestamp}: "{excerpt}..."',
    ],
    "explanation": [
        'The video explains at {timestamp}: "{excerpt}..."',
        'At {timestamp}, it\'s explained: "{excerpt}..."',
    ],
    "example": [
        'Example at {timestamp}: "{excerpt}..."',
        'The video shows at {timestamp}: "{excerpt}..."',
    ],
    "default": [
        'At {timestamp}: "{excerpt}..."',
        'Video content at {timestamp}: "{excerpt}..."',
    ],
}

DETAILED_VIDEO = {
    "summary": [
        "Based on my analysis of the video content, here's a detailed summary of what's "
        'covered at {timestamp}:\n\n"{text}"\n\n'
        "This section provides a thorough overview of the key concepts discussed. The video "
        "breaks the topic into digestible components, offering both theoretical foundations "
        "and practical applications. {followup}\n\n"
        "This approach gives viewers both a surface-level understanding and deeper insight "
        "into the subject matter.",
        "Here's an in-depth summary of the content discussed at {timestamp}:\n\n"
        '"{text}"\n\n'
        "This segment is a crucial part of the video's framework. The presenter addresses the "
        "core principles while keeping complex concepts accessible to viewers with varying "
        "levels of expertise.\n\n{followup} The structure favours real understanding over "
        "superficial coverage of the topic.",
    ],
    "explanation": [
        'The video provides a detailed explanation starting at {timestamp}:\n\n"{text}"\n\n'
        "This explanation is valuable because it breaks complex concepts into understandable "
        "components. The presenter first establishes the foundational principles before "
        "building on them with more advanced ideas. {followup}\n\n"
        "The result is content that is both accessible and thorough.",
        "Here's a breakdown of the explanation provided at {timestamp}:\n\n"
        '"{text}"\n\n'
        "The explanation begins with fundamental concepts and gradually introduces more "
        "sophisticated elements, so each new idea is grounded in what came before. It covers "
        "not only what something is but why it matters and how it applies in practice. "
        "{followup}",
    ],
    "example": [
        'The video presents a practical example at {timestamp}:\n\n"{text}"\n\n'
        "This example is effective because it demonstrates real-world application of the "
        "concepts being discussed, grounding the theory in concrete, relatable scenarios. "
        "{followup}\n\n"
        "Combining theory with examples like this helps viewers turn understanding into "
        "actionable insight.",
        'Let me walk you through the example provided at {timestamp}:\n\n"{text}"\n\n'
        "The presenter explains not just what happens in the example but why each step "
        "matters and how it contributes to the outcome. {followup}",
    ],
    "default": [
        'Based on my analysis of the video content at {timestamp}:\n\n"{text}"\n\n'
        "This section is a significant part of the video's overall value. The content is "
        "presented with attention to both depth and accessibility. {followup}\n\n"
        "Viewers can engage with complex ideas here without becoming overwhelmed.",
        'Here\'s an analysis of the content discussed at {timestamp}:\n\n"{text}"\n\n'
        "This segment reflects the video's overall approach: thorough, thoughtful, and "
        "designed to provide lasting value. {followup}",
    ],
}

DETAILED_FOLLOWUP = {
    "summary": "Additional context is provided at {second_timestamp}, where the discussion "
    "expands on related concepts and provides supporting examples.",
    "explanation": "Further elaboration occurs at {second_timestamp}, where additional nuances "
    "and practical applications are explored.",
    "example": "Additional examples are presented at {second_timestamp}, further reinforcing "
    "the practical applications.",
    "default": "The discussion continues at {second_timestamp} with complementary information "
    "that expands on these themes.",
}

BRIEF_NOT_FOUND = [
    'I couldn\'t find specific details about that in "{title}". Try asking about main topics '
    "discussed.",
    "That topic isn't clearly covered in the video transcript. Ask about specific concepts "
    "mentioned.",
    'No specific information found about that in "{title}". Try a different question about '
    "the content.",
]

DETAILED_NOT_FOUND = [
    'I\'ve analyzed "{title}" and couldn\'t locate information directly addressing your '
    "question in the transcript.\n\n"
    "The video focuses on several key areas that might be related to your inquiry. To get "
    "the most relevant answer, try asking about the main themes discussed, specific concepts "
    "that are explained, or particular examples that are provided. Rephrasing your question "
    "around what the video covers may also help.",
    'After going through the transcript of "{title}", I wasn\'t able to find content that '
    "directly addresses your question.\n\n"
    "The video combines theoretical foundations with practical applications, so related "
    "information may still be useful. Try asking about the main topics covered, the methods "
    "discussed, or the examples and case studies presented.",
]

BRIEF_GENERAL = {
    "technology": [
        "That's a tech question that requires current documentation for accurate details.",
        "For technical topics, I'd recommend checking official docs and expert resources.",
        "Tech questions need up-to-date sources for the most accurate information.",
    ],
    "business": [
        "Business strategies depend on specific contexts. Consult current business resources.",
        "That's a business question best answered by industry experts and current market data.",
        "Business topics require context-specific advice from professional sources.",
    ],
    "learning": [
        "Learning approaches vary by person. Explore educational platforms for your style.",
        "That's a learning question - check reputable educational resources for guidance.",
        "Learning strategies are personal. Find what works best for your goals.",
    ],
    "general": [
        "That's an interesting question. Check authoritative sources for detailed information.",
        "For comprehensive info on that topic, consult expert sources and documentation.",
        "That requires detailed research from reliable, current sources.",
    ],
}

DETAILED_GENERAL = {
    "technology": [
        "That's a technology question touching on a rapidly evolving field. Answers depend on "
        "current best practices, emerging trends and practical implementation details.\n\n"
        "For accurate guidance, check official documentation from the relevant providers, "
        "recent industry publications, and community forums where practitioners share "
        "real-world experience. What counts as best practice changes quickly, so prefer "
        "sources that are actively maintained.",
        "Your technology question involves interactions between systems, tools and "
        "methodologies that are best understood from several angles.\n\n"
        "Technical documentation gives you the foundations, industry blogs show real-world "
        "applications, and discussion forums show how practitioners solve problems. The right "
        "solution often depends on your specific constraints.",
    ],
    "business": [
        "That's a business question involving market dynamics, organizational capabilities, "
        "customer needs and competitive positioning.\n\n"
        "Research-backed frameworks, current industry reports and case studies from companies "
        "facing similar challenges are good places to start. Business strategy is highly "
        "context-dependent, so adapt what you learn to your own situation.",
        "Your business question addresses a strategic area where priorities compete and "
        "decisions are made with incomplete information.\n\n"
        "Start with foundational business literature, then look at market research and case "
        "studies. Consider the broader environment too: economic conditions, regulation, "
        "technology and social trends.",
    ],
    "learning": [
        "That's a question about learning and skill development. Effective learning depends on "
        "how we process and retain information and on the conditions we learn in.\n\n"
        "Evidence-based techniques such as active recall, spaced repetition and deliberate "
        "practice are a solid foundation. What works best varies from person to person, so "
        "experiment to find your approach.",
        "Your learning question touches on how we acquire knowledge and develop skills.\n\n"
        "Educational research, practical guides from learning experts and examples from "
        "successful learners all help. Treat learning itself as a skill you can improve.",
    ],
    "general": [
        "That's a question with several perspectives worth considering.\n\n"
        "Academic sources give rigorous analysis, reputable publications give current "
        "information, and recognized experts give specialized insight. Compare sources, check "
        "their evidence and be aware of possible bias.",
        "Your question deserves careful research from more than one angle.\n\n"
        "Start with foundational sources for background, then look at specialized material "
        "on the specific aspects you care about. Look for sources that cite their evidence "
        "and acknowledge their limitations.",
    ],
}

CREDENTIAL_NUDGE = (
    "For detailed answers on any topic, add your OpenAI API key "
    "(askvid set-key OPENAI_API_KEY sk-...) to unlock full AI capabilities."
)

GREETING_MAIN = (
    'Hello! I\'ve analyzed "{title}" and I\'m ready to answer your questions. I can discuss '
    "the video content in depth and also talk about any other topics you're curious about. "
    "What would you like to explore?"
)

GREETING_NEW_CHAT = (
    'Hello! I\'m ready to answer questions about "{title}" or any other topics you\'d like to '
    "explore. What would you like to discuss?"
)

ERROR_APOLOGY = (
    "I apologize, but I encountered an error while processing your question. This might be "
    "due to API limits or connectivity issues. Please try asking again or rephrase your "
    "question."
)

SUGGESTIONS = {
    "business": [
        "What are the detailed strategies for building a strong brand?",
        "How do you identify and understand your target audience?",
        "What role does social media play in modern brand building strategies?",
        "What are the most common branding mistakes and how to avoid them?",
    ],
    "programming": [
        "What are all the main React concepts covered in this tutorial?",
        "How do you properly set up a complete React development environment?",
        "What are the best practices and coding standards mentioned?",
        "Can you explain the component architecture and structure in depth?",
    ],
    "learning": [
        "What are the learning objectives and outcomes?",
        "What practical examples and case studies are provided?",
        "How can I apply these concepts in real-world scenarios?",
        "What are the next steps for continued learning and development?",
    ],
    "general": [
        "What are all the main topics discussed in detail?",
        "Can you provide a thorough summary of the key takeaways?",
        "What practical advice and strategies are given?",
        "How does this content relate to current industry trends and developments?",
    ],
    "fallback": [
        "What are the main topics covered in detail?",
        "Can you provide a comprehensive summary?",
        "What detailed examples are given?",
        "Explain the key concepts thoroughly",
    ],
}

DEFAULT_TEMPLATES = ResponseTemplates(
    brief_video=BRIEF_VIDEO,
    detailed_video=DETAILED_VIDEO,
    detailed_followup=DETAILED_FOLLOWUP,
    brief_not_found=BRIEF_NOT_FOUND,
    detailed_not_found=DETAILED_NOT_FOUND,
    brief_general=BRIEF_GENERAL,
    detailed_general=DETAILED_GENERAL,
    credential_nudge=CREDENTIAL_NUDGE,
    greeting_main=GREETING_MAIN,
    greeting_new_chat=GREETING_NEW_CHAT,
    error_apology=ERROR_APOLOGY,
    suggestions=SUGGESTIONS,
)


def load_templates(path: Path | None = None) -> ResponseTemplates:
    """Load templates from a JSON file, falling back to the built-in tables.

    Args:
        path: JSON file with the ResponseTemplates shape (None = built-in)

    Returns:
        ResponseTemplates to compose answers with
    """
    if path is None:
        return DEFAULT_TEMPLATES
    try:
        return ResponseTemplates.from_file(path)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring template file {path}: {e}")
        return DEFAULT_TEMPLATES
