from repo_scope.models.analysis import RepositoryAnalysis, TechnologyCategory


def bullet_list(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def render_markdown(analysis: RepositoryAnalysis) -> str:
    """Render an analysis as a Markdown report. Technologies are grouped by category in order of first appearance."""

    ai_analysis = analysis.ai_analysis

    technologies_by_category: dict[TechnologyCategory, list[str]] = {}

    for technology in ai_analysis.technologies:
        technologies_by_category.setdefault(technology.category, []).append(technology.name)

    sections: list[str] = [
        f"# {analysis.metadata.full_name}",
        f"## Overview\n{ai_analysis.overview}",
        f"## Purpose\n{ai_analysis.purpose}",
        f"## Architecture\n{ai_analysis.architecture}",
    ]

    if ai_analysis.key_features:
        sections.append(f"## Key Features\n{bullet_list(ai_analysis.key_features)}")

    if technologies_by_category:
        categories: list[str] = [
            f"### {category.capitalize()}\n{bullet_list(names)}" for category, names in technologies_by_category.items()
        ]
        sections.append("## Technology Stack\n\n" + "\n\n".join(categories))

    if ai_analysis.insights:
        sections.append(f"## Insights\n{bullet_list(ai_analysis.insights)}")

    return "\n\n".join(sections) + "\n"
