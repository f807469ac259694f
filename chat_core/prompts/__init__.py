"""提示词加载工具。

- load_system_prompt: 按语言(locale) 从 prompts/<locale> 目录读取人设 system prompt。
- build_project_summary_prompt: 把项目描述原样嵌入摘要请求。
- WELCOME_MESSAGE: 聊天窗口打开时展示的引导语（不进入会话记录）。
"""

from pathlib import Path

from chat_core.domain.models import ProjectDescriptor


PROMPTS_DIR = Path(__file__).resolve().parent

WELCOME_MESSAGE = "Welcome! Ask me about these projects, the code behind them, or the tech they use."


def load_system_prompt(locale: str = "en") -> str:
    fname = PROMPTS_DIR / locale / "portfolio_system.md"
    return fname.read_text(encoding="utf-8").strip()


def build_project_summary_prompt(project: ProjectDescriptor) -> str:
    tags = ", ".join(project.tags)
    return (
        "Give a friendly, 3-sentence summary of this project for a portfolio:\n"
        f"Title: {project.title}\n"
        f"Desc: {project.blurb}\n"
        f"Tags: {tags}\n"
        f"Link: {project.link or 'n/a'}\n"
        f"GitHub: {project.github or 'n/a'}"
    )
