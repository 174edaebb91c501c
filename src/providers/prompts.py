from __future__ import annotations

SYSTEM_INSTRUCTIONS = (
    "You are an assistant that converts handwritten notes, including diagrams "
    "and sketches, into clear, audience-focused Markdown explanations. When "
    "processing images, do not just describe the diagram; instead, explain the "
    "concept as if to someone who has never seen the image, aiming to teach or "
    "introduce the underlying ideas and how the parts relate to each other. When "
    "appropriate, restructure the content into sentences and lists that would "
    "help someone understand and apply the concepts."
)

USER_PROMPT = (
    "Convert the content of this image into Markdown. Use tabs for nested lists. "
    "Do not include a 'markdown' header. Where diagrams or drawings appear, "
    "explain their concepts and key points in clear language, as if teaching "
    "someone who cannot see the image. Summarise relationships between parts "
    "(such as sections or categories in a chart), and use sentence structure "
    "that guides the reader in understanding the overall idea and how details "
    "fit together."
)

NO_CONTENT_FALLBACK = "No content extracted."
CODE_FENCE = "```"


def clean_model_output(text: str | None) -> str:
    """空输出回退为固定文案；移除所有代码围栏标记并去掉首尾空白。"""
    output = text or NO_CONTENT_FALLBACK
    return output.replace(CODE_FENCE, "").strip()
