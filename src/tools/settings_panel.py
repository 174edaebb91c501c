from __future__ import annotations

from dataclasses import dataclass

from ..utils.log import mask_secret


@dataclass(slots=True)
class CredentialField:
    """设置面板中的密钥输入项：默认遮蔽显示，可切换明文。"""

    name: str = "OpenAI API Key"
    description: str = "Enter your OpenAI API Key (must have GPT access)."
    placeholder: str = "sk-..."
    masked: bool = True

    def toggle(self) -> bool:
        """切换显示状态，返回切换后是否遮蔽。"""
        self.masked = not self.masked
        return self.masked

    @property
    def toggle_label(self) -> str:
        return "Show" if self.masked else "Hide"

    def display_value(self, value: str) -> str:
        if not value:
            return f"(not set, e.g. {self.placeholder})"
        return mask_secret(value) if self.masked else value

    def render(self, value: str) -> str:
        return "\n".join(
            [
                "Picture to Markdown",
                f"{self.name}: {self.display_value(value)}",
                self.description,
                f"/p2m key <value> to change, /p2m key toggle to {self.toggle_label.lower()}.",
            ]
        )
