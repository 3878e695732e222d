from collections.abc import Mapping, Sequence

from repo_scope.models.analysis import AnalysisInput
from repo_scope.models.repository.tree import FileNode, flatten_file_tree
from repo_scope.servers.prompts.analyze_repository import ANALYSIS_INSTRUCTIONS, WHO_YOU_ARE

MAX_PROMPT_FILES = 100
MAX_README_CHARACTERS = 5000
MAX_KEY_FILE_CHARACTERS = 3000

TRUNCATION_MARKER = "\n...(truncated)"


def truncate_text(text: str, max_characters: int) -> str:
    """Cut the text to `max_characters`, marking the cut."""

    if len(text) > max_characters:
        return text[:max_characters] + TRUNCATION_MARKER

    return text


def format_key_file_contents(key_file_contents: Mapping[str, str]) -> str:
    sections: list[str] = [
        f"--- {path} ---\n{truncate_text(content, MAX_KEY_FILE_CHARACTERS)}" for path, content in key_file_contents.items()
    ]

    return "\n\n".join(sections)


def compose_prompt(
    repo_name: str,
    description: str | None,
    language: str | None,
    topics: Sequence[str],
    readme: str | None,
    file_tree: Sequence[FileNode],
    key_file_contents: Mapping[str, str],
) -> str:
    """Compose the analysis prompt sent to every provider."""

    file_list: str = "\n".join(flatten_file_tree(file_tree)[:MAX_PROMPT_FILES])

    readme_section: str = (
        f"### README Content\n{truncate_text(readme, MAX_README_CHARACTERS)}" if readme else "### README\nNo README found."
    )

    key_files_section: str = format_key_file_contents(key_file_contents) or "No configuration files found."

    return f"""# GitHub Repository Analysis
{WHO_YOU_ARE}
## Repository Information
- **Name**: {repo_name}
- **Primary Language**: {language or "Unknown"}
- **Topics**: {", ".join(topics) or "None"}
- **Description**: {description or "No description provided"}

## File Structure (first {MAX_PROMPT_FILES} entries)
```
{file_list}
```

## Project Documentation
{readme_section}

## Key Configuration Files
{key_files_section}

{ANALYSIS_INSTRUCTIONS}
"""


def compose_prompt_from_input(analysis_input: AnalysisInput) -> str:
    return compose_prompt(
        repo_name=analysis_input.repo_name,
        description=analysis_input.description,
        language=analysis_input.language,
        topics=analysis_input.topics,
        readme=analysis_input.readme,
        file_tree=analysis_input.file_tree,
        key_file_contents=analysis_input.key_file_contents,
    )
